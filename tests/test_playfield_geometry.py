from __future__ import annotations

import math

import pytest

from playfield.curves import (
    CurveError,
    SliderPath,
    approximate,
    bezier_to_polyline,
    catmull_to_polyline,
    circular_arc_to_polyline,
    split_segments,
)
from playfield.geom import Vec2
from playfield.math import clamp, difficulty_range


def test_vec2_arithmetic_and_flip() -> None:
    a = Vec2(3.0, 4.0)
    assert a.length() == 5.0
    assert a + Vec2(1.0, 1.0) == Vec2(4.0, 5.0)
    assert a - Vec2(1.0, 1.0) == Vec2(2.0, 3.0)
    assert 2.0 * a == Vec2(6.0, 8.0)
    assert a / 2.0 == Vec2(1.5, 2.0)
    assert Vec2(0.0, 5.0).normalized() == Vec2(0.0, 1.0)
    assert Vec2().normalized() == Vec2()
    assert Vec2(100.0, 100.0).flipped_y() == Vec2(100.0, 284.0)
    assert Vec2.lerp(Vec2(0.0, 0.0), Vec2(10.0, 20.0), 0.25) == Vec2(2.5, 5.0)


def test_difficulty_range_is_piecewise_linear() -> None:
    assert difficulty_range(0.0, 80.0, 50.0, 20.0) == 80.0
    assert difficulty_range(5.0, 80.0, 50.0, 20.0) == 50.0
    assert difficulty_range(10.0, 80.0, 50.0, 20.0) == 20.0
    assert difficulty_range(7.5, 80.0, 50.0, 20.0) == 35.0
    assert difficulty_range(2.5, 1800.0, 1200.0, 450.0) == 1500.0
    assert clamp(5.0, 0.0, 1.0) == 1.0


def test_linear_path_is_trimmed_to_expected_length() -> None:
    path = SliderPath.build("L", [Vec2(0.0, 0.0), Vec2(100.0, 0.0)], expected_distance=50.0)
    assert path.distance == 50.0
    assert path.position_at(1.0) == Vec2(50.0, 0.0)


def test_linear_path_is_extended_to_expected_length() -> None:
    path = SliderPath.build("L", [Vec2(0.0, 0.0), Vec2(100.0, 0.0)], expected_distance=150.0)
    assert path.distance == 150.0
    assert path.position_at(1.0) == Vec2(150.0, 0.0)


def test_path_ending_on_doubled_point_is_not_extended() -> None:
    control = [Vec2(0.0, 0.0), Vec2(100.0, 0.0), Vec2(100.0, 0.0)]
    path = SliderPath.build("L", control, expected_distance=150.0)
    assert path.distance == 100.0


def test_position_at_clamps_progress() -> None:
    path = SliderPath.build("L", [Vec2(0.0, 0.0), Vec2(100.0, 0.0)])
    assert path.position_at(0.5) == Vec2(50.0, 0.0)
    assert path.position_at(-1.0) == Vec2(0.0, 0.0)
    assert path.position_at(2.0) == Vec2(100.0, 0.0)


def test_perfect_circle_passes_through_middle_point() -> None:
    control = [Vec2(0.0, 0.0), Vec2(50.0, 50.0), Vec2(100.0, 0.0)]
    arc = circular_arc_to_polyline(control)
    assert arc
    assert arc[0].x == pytest.approx(0.0, abs=1e-9)
    assert arc[-1].x == pytest.approx(100.0, abs=1e-9)

    path = SliderPath.build("P", control)
    assert path.distance == pytest.approx(math.pi * 50.0, abs=0.5)
    middle = path.position_at(0.5)
    assert middle.x == pytest.approx(50.0, abs=0.5)
    assert middle.y == pytest.approx(50.0, abs=0.5)


def test_degenerate_perfect_circle_falls_back_to_bezier() -> None:
    control = [Vec2(0.0, 0.0), Vec2(50.0, 0.0), Vec2(100.0, 0.0)]
    assert circular_arc_to_polyline(control) == []
    points = approximate("P", control)
    assert points[0] == Vec2(0.0, 0.0)
    assert points[-1] == Vec2(100.0, 0.0)
    assert SliderPath.build("P", control).distance == pytest.approx(100.0, abs=1e-6)


def test_bezier_keeps_endpoints() -> None:
    control = [Vec2(0.0, 0.0), Vec2(30.0, 80.0), Vec2(70.0, -80.0), Vec2(100.0, 0.0)]
    points = bezier_to_polyline(control)
    assert points[0] == control[0]
    assert points[-1] == control[-1]
    assert len(points) > 4


def test_bezier_segments_split_on_repeated_points() -> None:
    control = [Vec2(0.0, 0.0), Vec2(50.0, 0.0), Vec2(50.0, 0.0), Vec2(100.0, 50.0)]
    assert split_segments(control) == [
        [Vec2(0.0, 0.0), Vec2(50.0, 0.0)],
        [Vec2(50.0, 0.0), Vec2(100.0, 50.0)],
    ]
    points = approximate("B", control)
    assert points[0] == Vec2(0.0, 0.0)
    assert Vec2(50.0, 0.0) in points
    assert points[-1] == Vec2(100.0, 50.0)


def test_catmull_runs_from_first_to_last_point() -> None:
    points = catmull_to_polyline([Vec2(0.0, 0.0), Vec2(100.0, 0.0)])
    assert points[0] == Vec2(0.0, 0.0)
    assert points[-1].x == pytest.approx(100.0)
    assert points[-1].y == pytest.approx(0.0)


def test_unknown_curve_kind_is_rejected() -> None:
    with pytest.raises(CurveError):
        approximate("X", [Vec2(), Vec2(1.0, 1.0)])  # type: ignore[arg-type]
    with pytest.raises(CurveError):
        SliderPath.build("L", [])


def test_flipped_path_mirrors_relative_points() -> None:
    path = SliderPath.build("L", [Vec2(0.0, 0.0), Vec2(0.0, 100.0)])
    flipped = path.flipped_y()
    assert flipped.position_at(1.0) == Vec2(0.0, -100.0)
    assert flipped.distance == path.distance
