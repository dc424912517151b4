from __future__ import annotations

from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass
import math
from typing import Literal, TypeAlias

from .geom import Vec2
from .math import clamp01

CurveKind: TypeAlias = Literal["L", "P", "B", "C"]

BEZIER_TOLERANCE = 0.25
CIRCULAR_ARC_TOLERANCE = 0.1
CATMULL_DETAIL = 50

_EPSILON = 1e-3


class CurveError(ValueError):
    pass


def _almost_equal(a: float, b: float, *, epsilon: float = _EPSILON) -> bool:
    return abs(a - b) <= epsilon


def _bezier_is_flat_enough(points: Sequence[Vec2]) -> bool:
    limit = BEZIER_TOLERANCE * BEZIER_TOLERANCE * 4.0
    for idx in range(1, len(points) - 1):
        second_diff = points[idx - 1] - points[idx] * 2.0 + points[idx + 1]
        if second_diff.length_sq() > limit:
            return False
    return True


def _bezier_subdivide(points: Sequence[Vec2]) -> tuple[list[Vec2], list[Vec2]]:
    count = len(points)
    midpoints = list(points)
    left: list[Vec2] = [Vec2()] * count
    right: list[Vec2] = [Vec2()] * count
    for idx in range(count):
        left[idx] = midpoints[0]
        right[count - idx - 1] = midpoints[count - idx - 1]
        for j in range(count - idx - 1):
            midpoints[j] = (midpoints[j] + midpoints[j + 1]) * 0.5
    return left, right


def _bezier_approximate(points: Sequence[Vec2], out: list[Vec2]) -> None:
    count = len(points)
    left, right = _bezier_subdivide(points)
    # Stitch both halves into one `2 * count - 1` control polygon.
    merged = left + right[1:]

    out.append(points[0])
    for idx in range(1, count - 1):
        index = 2 * idx
        out.append((merged[index - 1] + merged[index] * 2.0 + merged[index + 1]) * 0.25)


def bezier_to_polyline(control: Sequence[Vec2]) -> list[Vec2]:
    """Flatten a Bézier curve of arbitrary degree by adaptive subdivision."""

    out: list[Vec2] = []
    if not control:
        return out

    pending: list[list[Vec2]] = [list(control)]
    while pending:
        parent = pending.pop()
        if _bezier_is_flat_enough(parent):
            _bezier_approximate(parent, out)
            continue
        left, right = _bezier_subdivide(parent)
        pending.append(right)
        pending.append(left)

    out.append(control[-1])
    return out


def circular_arc_to_polyline(control: Sequence[Vec2]) -> list[Vec2]:
    """Approximate the circle through three points.

    Returns an empty list when the points are degenerate (coincident or collinear).
    """

    if len(control) != 3:
        return []
    a, b, c = control

    a_sq = (b - c).length_sq()
    b_sq = (a - c).length_sq()
    c_sq = (a - b).length_sq()
    if _almost_equal(a_sq, 0.0) or _almost_equal(b_sq, 0.0) or _almost_equal(c_sq, 0.0):
        return []

    s = a_sq * (b_sq + c_sq - a_sq)
    t = b_sq * (a_sq + c_sq - b_sq)
    u = c_sq * (a_sq + b_sq - c_sq)
    total = s + t + u
    if _almost_equal(total, 0.0):
        return []

    centre = (a * s + b * t + c * u) / total
    d_a = a - centre
    d_c = c - centre
    radius = d_a.length()

    theta_start = math.atan2(d_a.y, d_a.x)
    theta_end = math.atan2(d_c.y, d_c.x)
    while theta_end < theta_start:
        theta_end += math.tau

    direction = 1.0
    theta_range = theta_end - theta_start

    # Flip the sweep when `b` lies on the other side of the chord.
    ortho_a_to_c = c - a
    ortho_a_to_c = Vec2(ortho_a_to_c.y, -ortho_a_to_c.x)
    if ortho_a_to_c.dot(b - a) < 0.0:
        direction = -1.0
        theta_range = math.tau - theta_range

    if 2.0 * radius <= CIRCULAR_ARC_TOLERANCE:
        amount = 2
    else:
        amount = max(2, int(math.ceil(theta_range / (2.0 * math.acos(1.0 - CIRCULAR_ARC_TOLERANCE / radius)))))

    out: list[Vec2] = []
    for idx in range(amount):
        fract = idx / (amount - 1)
        theta = theta_start + direction * fract * theta_range
        out.append(centre + Vec2(math.cos(theta), math.sin(theta)) * radius)
    return out


def _catmull_point(v1: Vec2, v2: Vec2, v3: Vec2, v4: Vec2, t: float) -> Vec2:
    t2 = t * t
    t3 = t * t2

    def _axis(p1: float, p2: float, p3: float, p4: float) -> float:
        return 0.5 * (
            2.0 * p2
            + (-p1 + p3) * t
            + (2.0 * p1 - 5.0 * p2 + 4.0 * p3 - p4) * t2
            + (-p1 + 3.0 * p2 - 3.0 * p3 + p4) * t3
        )

    return Vec2(_axis(v1.x, v2.x, v3.x, v4.x), _axis(v1.y, v2.y, v3.y, v4.y))


def catmull_to_polyline(control: Sequence[Vec2]) -> list[Vec2]:
    out: list[Vec2] = []
    count = len(control)
    for idx in range(count - 1):
        v1 = control[idx - 1] if idx > 0 else control[idx]
        v2 = control[idx]
        v3 = control[idx + 1] if idx < count - 1 else v2 * 2.0 - v1
        v4 = control[idx + 2] if idx < count - 2 else v3 * 2.0 - v2
        for step in range(CATMULL_DETAIL):
            out.append(_catmull_point(v1, v2, v3, v4, step / CATMULL_DETAIL))
            out.append(_catmull_point(v1, v2, v3, v4, (step + 1) / CATMULL_DETAIL))
    return out


def split_segments(points: Sequence[Vec2]) -> list[list[Vec2]]:
    """Split Bézier control points on repeated points ("red anchors")."""

    segments: list[list[Vec2]] = []
    current: list[Vec2] = []
    for point in points:
        if current and point == current[-1]:
            segments.append(current)
            current = [point]
            continue
        current.append(point)
    if current:
        segments.append(current)
    segments = [segment for segment in segments if len(segment) >= 2]
    if not segments and points:
        segments = [list(points)]
    return segments


def approximate(kind: CurveKind, points: Sequence[Vec2]) -> list[Vec2]:
    if kind not in ("L", "P", "B", "C"):
        raise CurveError(f"unknown curve type: {kind!r}")
    if len(points) < 2:
        return list(points)

    if kind == "L":
        return list(points)
    if kind == "C":
        return catmull_to_polyline(points)
    if kind == "P" and len(points) == 3:
        arc = circular_arc_to_polyline(points)
        if arc:
            return arc

    out: list[Vec2] = []
    for segment in split_segments(points):
        for point in bezier_to_polyline(segment):
            if not out or out[-1] != point:
                out.append(point)
    return out


def _fit_to_distance(
    path: list[Vec2],
    control: Sequence[Vec2],
    expected_distance: float | None,
) -> list[float]:
    cumulative = [0.0]
    calculated = 0.0
    for idx in range(len(path) - 1):
        calculated += (path[idx + 1] - path[idx]).length()
        cumulative.append(calculated)

    if expected_distance is None or calculated == expected_distance:
        return cumulative

    expected = float(expected_distance)

    # Paths ending on a doubled control point are never extended.
    if len(control) >= 2 and control[-1] == control[-2] and expected > calculated:
        return cumulative

    cumulative.pop()
    end_index = len(path) - 1

    if calculated > expected:
        while cumulative and cumulative[-1] >= expected:
            cumulative.pop()
            path.pop(end_index)
            end_index -= 1

    if end_index <= 0:
        del path[1:]
        return [0.0]

    direction = (path[end_index] - path[end_index - 1]).normalized()
    path[end_index] = path[end_index - 1] + direction * (expected - cumulative[-1])
    cumulative.append(expected)
    return cumulative


@dataclass(frozen=True, slots=True)
class SliderPath:
    """Polyline approximation of a slider curve, parametrised by travelled distance.

    Points are relative to the slider head. `distance` is the expected pixel length
    when one was supplied, otherwise the approximated length.
    """

    kind: CurveKind
    control_points: tuple[Vec2, ...]
    points: tuple[Vec2, ...]
    cumulative_length: tuple[float, ...]

    @classmethod
    def build(
        cls,
        kind: CurveKind,
        control_points: Sequence[Vec2],
        expected_distance: float | None = None,
    ) -> SliderPath:
        control = tuple(control_points)
        if not control:
            raise CurveError("slider path needs at least one control point")
        path = approximate(kind, control)
        cumulative = _fit_to_distance(path, control, expected_distance)
        return cls(kind=kind, control_points=control, points=tuple(path), cumulative_length=tuple(cumulative))

    @property
    def distance(self) -> float:
        if not self.cumulative_length:
            return 0.0
        return float(self.cumulative_length[-1])

    def position_at(self, progress: float) -> Vec2:
        d = clamp01(float(progress)) * self.distance
        return self._interpolate(bisect_left(self.cumulative_length, d), d)

    def _interpolate(self, index: int, d: float) -> Vec2:
        points = self.points
        if not points:
            return Vec2()
        if index <= 0:
            return points[0]
        if index >= len(points):
            return points[-1]

        p0 = points[index - 1]
        p1 = points[index]
        d0 = self.cumulative_length[index - 1]
        d1 = self.cumulative_length[index]
        if _almost_equal(d0, d1):
            return p0
        return Vec2.lerp(p0, p1, (d - d0) / (d1 - d0))

    def flipped_y(self) -> SliderPath:
        """Mirror the (head-relative) path vertically, as HardRock does."""
        return SliderPath(
            kind=self.kind,
            control_points=tuple(Vec2(p.x, -p.y) for p in self.control_points),
            points=tuple(Vec2(p.x, -p.y) for p in self.points),
            cumulative_length=self.cumulative_length,
        )
