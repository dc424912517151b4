from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from playfield.geom import Vec2

STACK_DISTANCE = 3.0
# Format version from which the reverse-order stacking algorithm applies.
STACKING_REVISION_VERSION = 6


@dataclass(frozen=True, slots=True)
class StackItem:
    start_time: float
    end_time: float
    position: Vec2
    # Where the ball finishes (span-aware) and where the path itself ends.
    end_position: Vec2
    path_end_position: Vec2
    is_slider: bool = False
    is_spinner: bool = False


def _close(a: Vec2, b: Vec2) -> bool:
    return a.distance_to(b) < STACK_DISTANCE


def _resolve_reverse(items: Sequence[StackItem], threshold: float) -> list[int]:
    heights = [0] * len(items)

    for i in range(len(items) - 1, -1, -1):
        if heights[i] != 0 or items[i].is_spinner:
            continue

        base = i
        if not items[i].is_slider:
            n = i
            while n > 0:
                n -= 1
                obj_n = items[n]
                if obj_n.is_spinner:
                    continue
                if items[base].start_time - obj_n.end_time > threshold:
                    break

                if obj_n.is_slider and _close(obj_n.end_position, items[base].position):
                    # Objects stacked under a slider end are pushed below it.
                    delta = heights[base] - heights[n] + 1
                    for j in range(n + 1, i + 1):
                        if _close(obj_n.end_position, items[j].position):
                            heights[j] -= delta
                    break

                if _close(obj_n.position, items[base].position):
                    heights[n] = heights[base] + 1
                    base = n
        else:
            n = i
            while n > 0:
                n -= 1
                obj_n = items[n]
                if obj_n.is_spinner:
                    continue
                if items[base].start_time - obj_n.start_time > threshold:
                    break
                if _close(obj_n.end_position, items[base].position):
                    heights[n] = heights[base] + 1
                    base = n

    return heights


def _resolve_forward(items: Sequence[StackItem], threshold: float) -> list[int]:
    heights = [0] * len(items)

    for i, current in enumerate(items):
        if heights[i] != 0 and not current.is_slider:
            continue

        start_time = current.end_time
        slider_stack = 0
        for j in range(i + 1, len(items)):
            other = items[j]
            if other.start_time - threshold > start_time:
                break
            if _close(other.position, current.position):
                heights[i] += 1
                start_time = other.start_time
            elif _close(other.position, current.path_end_position):
                # Objects after a slider end stack down and right.
                slider_stack += 1
                heights[j] -= slider_stack
                start_time = other.start_time

    return heights


def resolve_stack_heights(items: Sequence[StackItem], *, threshold: float, format_version: int) -> list[int]:
    """Stack height per item, in input order. Input must be sorted by start time."""

    if int(format_version) >= STACKING_REVISION_VERSION:
        return _resolve_reverse(items, float(threshold))
    return _resolve_forward(items, float(threshold))


def stack_offset(height: int, radius: float) -> Vec2:
    """Offset added to a stacked position: each level moves up and left by a tenth of the radius."""
    amount = -float(height) * float(radius) / 10.0
    return Vec2(amount, amount)
