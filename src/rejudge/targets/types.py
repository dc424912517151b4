from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import math
from typing import TypeAlias

from playfield.curves import SliderPath
from playfield.geom import Vec2
from playfield.math import clamp01

from ..hit_windows import HitWindows
from ..judgements import HitResult


class SubEventKind(Enum):
    TICK = "tick"
    REPEAT = "repeat"
    TAIL = "tail"


@dataclass(frozen=True, slots=True)
class SubEvent:
    index: int
    kind: SubEventKind
    time: float
    hold_index: int
    span_index: int

    @property
    def best_result(self) -> HitResult:
        if self.kind is SubEventKind.TAIL:
            return HitResult.SLIDER_TAIL_HIT
        return HitResult.LARGE_TICK_HIT


@dataclass(frozen=True, slots=True)
class Circle:
    index: int
    start_time: float
    position: Vec2
    radius: float
    stack_height: int = 0

    @property
    def end_time(self) -> float:
        return self.start_time

    @property
    def best_result(self) -> HitResult:
        return HitResult.GREAT


@dataclass(frozen=True, slots=True)
class Hold:
    """A slider: a head judged like a circle, followed by tracked sub-events along `path`."""

    index: int
    start_time: float
    end_time: float
    # Stacked head position; `path` is relative to it.
    position: Vec2
    radius: float
    path: SliderPath
    span_count: int
    span_duration: float
    sub_events: tuple[SubEvent, ...] = ()
    stack_height: int = 0

    @property
    def best_result(self) -> HitResult:
        return HitResult.GREAT

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def progress_at(self, time: float) -> float:
        duration = self.duration
        if duration <= 0.0:
            return 1.0
        return clamp01((float(time) - self.start_time) / duration)

    def position_at_progress(self, progress: float) -> Vec2:
        """Ball position for whole-hold `progress`; odd spans run the path backwards."""

        scaled = clamp01(float(progress)) * self.span_count
        span = math.floor(scaled)
        span_progress = scaled - span
        if span % 2 == 1:
            span_progress = 1.0 - span_progress
        return self.position + self.path.position_at(span_progress)

    def end_position(self) -> Vec2:
        return self.position_at_progress(1.0)


Target: TypeAlias = Circle | Hold


@dataclass(frozen=True, slots=True)
class TargetModel:
    """Time-ordered targets plus their sub-events, sharing one stable id space."""

    targets: tuple[Target, ...]
    hit_windows: HitWindows
    radius: float

    @property
    def sub_events(self) -> tuple[SubEvent, ...]:
        return tuple(event for target in self.targets if isinstance(target, Hold) for event in target.sub_events)

    @property
    def id_count(self) -> int:
        count = 0
        for target in self.targets:
            count = max(count, target.index + 1)
            if isinstance(target, Hold):
                for event in target.sub_events:
                    count = max(count, event.index + 1)
        return count

    @property
    def circle_count(self) -> int:
        return sum(1 for target in self.targets if isinstance(target, Circle))

    @property
    def hold_count(self) -> int:
        return sum(1 for target in self.targets if isinstance(target, Hold))

    @property
    def first_time(self) -> float:
        if not self.targets:
            return 0.0
        return min(target.start_time for target in self.targets)

    @property
    def last_time(self) -> float:
        if not self.targets:
            return 0.0
        return max(target.end_time for target in self.targets)
