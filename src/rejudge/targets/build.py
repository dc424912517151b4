from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import warnings

from playfield.curves import SliderPath
from playfield.geom import Vec2
from playfield.math import clamp, difficulty_range

from ..beatmap.types import Beatmap, CircleObject, SliderObject, SpinnerObject
from ..hit_windows import HitWindows
from ..mods import DifficultySettings, Mod, apply_mods, flips_playfield
from ..trace_log import trace_log
from .stacking import StackItem, resolve_stack_heights, stack_offset
from .types import Circle, Hold, SubEvent, SubEventKind, Target, TargetModel

BASE_SCORING_DISTANCE = 100.0
MIN_SLIDER_MULTIPLIER = 0.4
MAX_SLIDER_MULTIPLIER = 3.6
MIN_TICK_RATE = 0.5
MAX_TICK_RATE = 8.0
MAX_SLIDER_LENGTH = 100000.0
# Ticks closer than this many ms of ball travel to a span end are dropped.
TICK_END_MARGIN_MS = 10.0
# Format version from which ticks no longer scale with slider velocity.
TICK_DISTANCE_FIX_VERSION = 8

PREEMPT_RANGE = (1800.0, 1200.0, 450.0)
# Matches the legacy circle-size scale fudge.
BROKEN_GAMEFIELD_ROUNDING_ALLOWANCE = 1.00041


class UnmodelledObjectWarning(UserWarning):
    """The beatmap contains objects (spinners) that re-judgement ignores."""


def circle_radius(circle_size: float) -> float:
    scale = (1.0 - 0.7 * (float(circle_size) - 5.0) / 5.0) / 2.0 * BROKEN_GAMEFIELD_ROUNDING_ALLOWANCE
    return 64.0 * scale


def preempt_ms(approach_rate: float) -> float:
    return difficulty_range(approach_rate, *PREEMPT_RANGE)


@dataclass(frozen=True, slots=True)
class _SliderTiming:
    path: SliderPath
    velocity: float
    tick_distance: float
    span_duration: float


def _slider_timing(beatmap: Beatmap, slider: SliderObject) -> _SliderTiming:
    slider_multiplier = clamp(float(beatmap.slider_multiplier), MIN_SLIDER_MULTIPLIER, MAX_SLIDER_MULTIPLIER)
    tick_rate = clamp(float(beatmap.slider_tick_rate), MIN_TICK_RATE, MAX_TICK_RATE)
    velocity_multiplier = beatmap.slider_velocity_at(slider.time)
    beat_length = beatmap.beat_length_at(slider.time)

    scoring_distance = BASE_SCORING_DISTANCE * slider_multiplier * velocity_multiplier
    velocity = scoring_distance / beat_length
    tick_distance = scoring_distance / tick_rate
    if beatmap.format_version < TICK_DISTANCE_FIX_VERSION:
        tick_distance /= velocity_multiplier

    head = slider.control_points[0] if slider.control_points else slider.position
    relative = [point - head for point in slider.control_points] or [Vec2()]
    path = SliderPath.build(slider.curve_kind, relative, expected_distance=slider.pixel_length)
    return _SliderTiming(
        path=path,
        velocity=velocity,
        tick_distance=tick_distance,
        span_duration=path.distance / velocity,
    )


def _span_ticks(
    *,
    span: int,
    span_start: float,
    span_duration: float,
    length: float,
    tick_distance: float,
    min_distance_from_end: float,
) -> list[float]:
    reversed_span = span % 2 == 1
    times: list[float] = []
    d = tick_distance
    while d <= length:
        if d >= length - min_distance_from_end:
            break
        path_progress = d / length
        time_progress = 1.0 - path_progress if reversed_span else path_progress
        times.append(span_start + time_progress * span_duration)
        d += tick_distance
    if reversed_span:
        times.reverse()
    return times


def slider_sub_event_times(
    *,
    start_time: float,
    span_count: int,
    span_duration: float,
    length: float,
    velocity: float,
    tick_distance: float,
) -> list[tuple[SubEventKind, float, int]]:
    """(kind, time, span) for every tick, repeat and the tail of one slider, in time order."""

    length = min(MAX_SLIDER_LENGTH, float(length))
    tick_distance = clamp(float(tick_distance), 0.0, length)
    min_distance_from_end = float(velocity) * TICK_END_MARGIN_MS

    out: list[tuple[SubEventKind, float, int]] = []
    if tick_distance != 0.0:
        for span in range(span_count):
            span_start = start_time + span * span_duration
            for time in _span_ticks(
                span=span,
                span_start=span_start,
                span_duration=span_duration,
                length=length,
                tick_distance=tick_distance,
                min_distance_from_end=min_distance_from_end,
            ):
                out.append((SubEventKind.TICK, time, span))
            if span < span_count - 1:
                out.append((SubEventKind.REPEAT, span_start + span_duration, span))

    out.append((SubEventKind.TAIL, start_time + span_count * span_duration, span_count - 1))
    return out


def _stack_item(obj: CircleObject | SliderObject | SpinnerObject, timing: _SliderTiming | None) -> StackItem:
    if isinstance(obj, SpinnerObject):
        return StackItem(
            start_time=obj.time,
            end_time=obj.end_time,
            position=obj.position,
            end_position=obj.position,
            path_end_position=obj.position,
            is_spinner=True,
        )
    if isinstance(obj, SliderObject) and timing is not None:
        spans = obj.span_count
        path_end = obj.position + timing.path.position_at(1.0)
        end_position = path_end if spans % 2 == 1 else obj.position
        return StackItem(
            start_time=obj.time,
            end_time=obj.time + spans * timing.span_duration,
            position=obj.position,
            end_position=end_position,
            path_end_position=path_end,
            is_slider=True,
        )
    return StackItem(
        start_time=obj.time,
        end_time=obj.time,
        position=obj.position,
        end_position=obj.position,
        path_end_position=obj.position,
    )


def build_target_model(beatmap: Beatmap, mods: Iterable[Mod] = ()) -> TargetModel:
    """Convert a decoded beatmap into the immutable target model the simulation consumes.

    Difficulty mods adjust radius, windows and stacking; HardRock mirrors the playfield.
    Spinners are dropped with an `UnmodelledObjectWarning`.
    """

    mods = frozenset(mods)
    settings = apply_mods(
        DifficultySettings(
            circle_size=beatmap.circle_size,
            overall_difficulty=beatmap.overall_difficulty,
            approach_rate=beatmap.approach_rate,
            hp_drain_rate=beatmap.hp_drain_rate,
        ),
        mods,
    )
    radius = circle_radius(settings.circle_size)
    hit_windows = HitWindows.from_overall_difficulty(settings.overall_difficulty)
    flip = flips_playfield(mods)

    objects = list(beatmap.hit_objects)
    timings = [_slider_timing(beatmap, obj) if isinstance(obj, SliderObject) else None for obj in objects]
    heights = resolve_stack_heights(
        [_stack_item(obj, timing) for obj, timing in zip(objects, timings)],
        threshold=preempt_ms(settings.approach_rate) * float(beatmap.stack_leniency),
        format_version=beatmap.format_version,
    )

    targets: list[Target] = []
    next_id = 0
    spinners = 0
    for obj, timing, height in zip(objects, timings, heights):
        if isinstance(obj, SpinnerObject):
            spinners += 1
            continue

        position = obj.position.flipped_y() if flip else obj.position
        position = position + stack_offset(height, radius)

        if not isinstance(obj, SliderObject) or timing is None:
            targets.append(Circle(index=next_id, start_time=obj.time, position=position, radius=radius, stack_height=height))
            next_id += 1
            continue

        hold_id = next_id
        next_id += 1
        path = timing.path.flipped_y() if flip else timing.path
        span_count = obj.span_count
        sub_events: list[SubEvent] = []
        for kind, time, span in slider_sub_event_times(
            start_time=obj.time,
            span_count=span_count,
            span_duration=timing.span_duration,
            length=path.distance,
            velocity=timing.velocity,
            tick_distance=timing.tick_distance,
        ):
            sub_events.append(SubEvent(index=next_id, kind=kind, time=time, hold_index=hold_id, span_index=span))
            next_id += 1

        targets.append(
            Hold(
                index=hold_id,
                start_time=obj.time,
                end_time=obj.time + span_count * timing.span_duration,
                position=position,
                radius=radius,
                path=path,
                span_count=span_count,
                span_duration=timing.span_duration,
                sub_events=tuple(sub_events),
                stack_height=height,
            )
        )

    if spinners:
        warnings.warn(
            f"Beatmap contains {spinners} spinner(s); spinners are not re-judged and are left out of the results.",
            category=UnmodelledObjectWarning,
            stacklevel=2,
        )

    model = TargetModel(targets=tuple(targets), hit_windows=hit_windows, radius=radius)
    trace_log(
        "targets_built",
        circles=model.circle_count,
        holds=model.hold_count,
        sub_events=len(model.sub_events),
        radius=f"{radius:.4f}",
        great=hit_windows.great,
        ok=hit_windows.ok,
        meh=hit_windows.meh,
        mods=",".join(sorted(mod.name for mod in mods)) or "none",
    )
    return model
