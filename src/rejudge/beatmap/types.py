from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import TypeAlias

from playfield.curves import CurveKind
from playfield.geom import Vec2
from playfield.math import clamp

DEFAULT_BEAT_LENGTH = 1000.0
MIN_BEAT_LENGTH = 6.0
MAX_BEAT_LENGTH = 60000.0

OBJECT_TYPE_CIRCLE = 1 << 0
OBJECT_TYPE_SLIDER = 1 << 1
OBJECT_TYPE_NEW_COMBO = 1 << 2
OBJECT_TYPE_SPINNER = 1 << 3
OBJECT_TYPE_HOLD = 1 << 7


@dataclass(frozen=True, slots=True)
class TimingPoint:
    time: float
    beat_length: float
    uninherited: bool = True

    @property
    def slider_velocity(self) -> float:
        if self.uninherited or not (self.beat_length < 0.0):
            return 1.0
        return clamp(100.0 / -self.beat_length, 0.1, 10.0)


@dataclass(frozen=True, slots=True)
class CircleObject:
    time: float
    position: Vec2
    new_combo: bool = False


@dataclass(frozen=True, slots=True)
class SliderObject:
    time: float
    position: Vec2
    curve_kind: CurveKind
    # Absolute playfield coordinates, head first.
    control_points: tuple[Vec2, ...]
    slides: int
    pixel_length: float | None
    new_combo: bool = False

    @property
    def span_count(self) -> int:
        return max(1, int(self.slides))


@dataclass(frozen=True, slots=True)
class SpinnerObject:
    time: float
    end_time: float
    position: Vec2 = Vec2(256.0, 192.0)
    new_combo: bool = False


HitObject: TypeAlias = CircleObject | SliderObject | SpinnerObject


@dataclass(frozen=True, slots=True)
class Beatmap:
    format_version: int
    hit_objects: tuple[HitObject, ...]
    timing_points: tuple[TimingPoint, ...] = ()
    mode: int = 0
    circle_size: float = 5.0
    overall_difficulty: float = 5.0
    approach_rate: float = 5.0
    hp_drain_rate: float = 5.0
    slider_multiplier: float = 1.4
    slider_tick_rate: float = 1.0
    stack_leniency: float = 0.7
    title: str = ""
    artist: str = ""
    version: str = ""
    md5: str = ""
    _uninherited: tuple[TimingPoint, ...] = field(default=(), init=False, repr=False, compare=False)
    _uninherited_times: tuple[float, ...] = field(default=(), init=False, repr=False, compare=False)
    _velocity_points: tuple[TimingPoint, ...] = field(default=(), init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        uninherited = tuple(sorted((tp for tp in self.timing_points if tp.uninherited), key=lambda tp: tp.time))
        object.__setattr__(self, "_uninherited", uninherited)
        object.__setattr__(self, "_uninherited_times", tuple(tp.time for tp in uninherited))
        # At equal times an inherited point overrides the uninherited one's velocity.
        velocity_points = sorted(self.timing_points, key=lambda tp: (tp.time, 0 if tp.uninherited else 1))
        object.__setattr__(self, "_velocity_points", tuple(velocity_points))

    def beat_length_at(self, time: float) -> float:
        uninherited = self._uninherited
        if not uninherited:
            return DEFAULT_BEAT_LENGTH
        idx = bisect_right(self._uninherited_times, float(time)) - 1
        point = uninherited[max(0, idx)]
        return clamp(float(point.beat_length), MIN_BEAT_LENGTH, MAX_BEAT_LENGTH)

    def slider_velocity_at(self, time: float) -> float:
        velocity = 1.0
        for point in self._velocity_points:
            if point.time > float(time):
                break
            velocity = point.slider_velocity
        return velocity

    @property
    def display_name(self) -> str:
        return f"{self.artist} - {self.title} [{self.version}]"
