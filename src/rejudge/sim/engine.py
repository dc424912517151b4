from __future__ import annotations

import math

from playfield.geom import Vec2

from ..config import DEFAULT_SIMULATION_CONFIG, SimulationConfig
from ..judgements import HitResult, hit_result_label, is_hit
from ..replay.types import NO_BUTTONS, Button
from ..targets.types import Circle, Hold, SubEvent, SubEventKind, TargetModel
from ..trace_log import trace_log, trace_log_enabled
from .input_track import InputTrack
from .result import SimulationResult
from .stats import StatisticsAggregator


class _Run:
    """Mutable per-run state: judgements and hold tracking in arrays indexed by stable id."""

    __slots__ = (
        "model",
        "config",
        "stats",
        "judged",
        "tracking",
        "last_tracking_time",
        "next_sub_event",
        "circles",
        "holds",
        "circle_cursor",
        "hold_cursor",
        "follow_radius",
        "trace",
    )

    def __init__(self, model: TargetModel, config: SimulationConfig) -> None:
        count = model.id_count
        self.model = model
        self.config = config
        self.stats = StatisticsAggregator.for_model(model)
        self.judged: list[HitResult | None] = [None] * count
        self.tracking: list[bool] = [False] * count
        self.last_tracking_time: list[float] = [-math.inf] * count
        self.next_sub_event: list[int] = [0] * count
        self.circles: list[Circle] = [target for target in model.targets if isinstance(target, Circle)]
        self.holds: list[Hold] = [target for target in model.targets if isinstance(target, Hold)]
        self.circle_cursor = 0
        self.hold_cursor = 0
        self.follow_radius = model.radius * float(config.follow_radius_multiplier) + float(
            config.follow_radius_tolerance
        )
        self.trace = trace_log_enabled()

    def judge(self, index: int, result: HitResult, *, kind: str, clock: float, offset: float | None = None) -> None:
        self.judged[index] = result
        self.stats.apply(result)
        if self.trace:
            fields: dict[str, object] = {
                "id": index,
                "kind": kind,
                "result": hit_result_label(result),
                "clock": clock,
                "combo": self.stats.combo,
            }
            if offset is not None:
                fields["offset"] = offset
            trace_log("judgement", **fields)

    def _head_result(self, start_time: float, clock: float) -> HitResult | None:
        return self.model.hit_windows.judge_head(clock - start_time, lenient=self.config.head_leniency)

    def step_circles(self, clock: float, position: Vec2, pressed: bool) -> None:
        miss_window = self.model.hit_windows.miss_window
        circles = self.circles
        judged = self.judged

        idx = self.circle_cursor
        while idx < len(circles):
            circle = circles[idx]
            if circle.start_time - miss_window > clock:
                break
            idx += 1
            if judged[circle.index] is not None:
                continue
            if clock > circle.start_time + miss_window:
                self.judge(circle.index, HitResult.MISS, kind="circle", clock=clock)
                continue
            if pressed and position.distance_to(circle.position) <= circle.radius:
                result = self._head_result(circle.start_time, clock)
                if result is not None:
                    self.judge(circle.index, result, kind="circle", clock=clock, offset=clock - circle.start_time)

        while self.circle_cursor < len(circles) and judged[circles[self.circle_cursor].index] is not None:
            self.circle_cursor += 1

    def _step_head(self, hold: Hold, clock: float, position: Vec2, pressed: bool) -> None:
        miss_window = self.model.hit_windows.miss_window
        if clock > hold.start_time + miss_window:
            self.judge(hold.index, HitResult.MISS, kind="head", clock=clock)
            self.tracking[hold.index] = False
            return
        if clock < hold.start_time - miss_window:
            return
        if pressed and position.distance_to(hold.position) <= hold.radius:
            result = self._head_result(hold.start_time, clock)
            if result is None:
                return
            self.judge(hold.index, result, kind="head", clock=clock, offset=clock - hold.start_time)
            self.tracking[hold.index] = is_hit(result)

    def _update_tracking(self, hold: Hold, clock: float, position: Vec2, buttons: frozenset[Button]) -> None:
        if not self.tracking[hold.index]:
            return
        if not (hold.start_time <= clock <= hold.end_time):
            return
        ball = hold.position_at_progress(hold.progress_at(clock))
        if buttons and position.distance_to(ball) <= self.follow_radius:
            self.last_tracking_time[hold.index] = clock
            return
        # Tracking is never re-acquired once lost.
        self.tracking[hold.index] = False
        if self.trace:
            trace_log("tracking_lost", id=hold.index, clock=clock)

    def judge_sub_event(self, hold: Hold, event: SubEvent, clock: float) -> None:
        tracking = self.tracking[hold.index]
        if event.kind is SubEventKind.TAIL:
            recent = (event.time - self.last_tracking_time[hold.index]) <= float(self.config.tail_grace_ms)
            result = HitResult.SLIDER_TAIL_HIT if (tracking or recent) else HitResult.IGNORE_MISS
        else:
            result = HitResult.LARGE_TICK_HIT if tracking else HitResult.LARGE_TICK_MISS
        self.judge(event.index, result, kind=event.kind.value, clock=clock)

    def _step_sub_events(self, hold: Hold, clock: float) -> None:
        events = hold.sub_events
        ptr = self.next_sub_event[hold.index]
        while ptr < len(events) and events[ptr].time <= clock:
            self.judge_sub_event(hold, events[ptr], clock)
            ptr += 1
        self.next_sub_event[hold.index] = ptr

    def _hold_finished(self, hold: Hold) -> bool:
        return self.judged[hold.index] is not None and self.next_sub_event[hold.index] >= len(hold.sub_events)

    def step_holds(self, clock: float, position: Vec2, buttons: frozenset[Button], pressed: bool) -> None:
        miss_window = self.model.hit_windows.miss_window
        holds = self.holds

        idx = self.hold_cursor
        while idx < len(holds):
            hold = holds[idx]
            if hold.start_time - miss_window > clock:
                break
            idx += 1
            if self.judged[hold.index] is None:
                self._step_head(hold, clock, position, pressed)
            self._update_tracking(hold, clock, position, buttons)
            self._step_sub_events(hold, clock)

        while self.hold_cursor < len(holds) and self._hold_finished(holds[self.hold_cursor]):
            self.hold_cursor += 1

    def sweep(self, clock: float) -> None:
        """Judge whatever the clock range left open: heads miss, sub-events use final tracking state."""

        for circle in self.circles[self.circle_cursor :]:
            if self.judged[circle.index] is None:
                self.judge(circle.index, HitResult.MISS, kind="circle", clock=clock)
        for hold in self.holds[self.hold_cursor :]:
            if self.judged[hold.index] is None:
                self.judge(hold.index, HitResult.MISS, kind="head", clock=clock)
                self.tracking[hold.index] = False
            for event in hold.sub_events[self.next_sub_event[hold.index] :]:
                self.judge_sub_event(hold, event, clock)
            self.next_sub_event[hold.index] = len(hold.sub_events)


def simulate(model: TargetModel, track: InputTrack, *, config: SimulationConfig | None = None) -> SimulationResult:
    """Replay `track` against `model` on a fixed-step clock and aggregate the judgements.

    Pure with respect to its inputs: the same model, track and config always give the same result.
    An empty track is valid and judges every target as missed.
    """

    config = config if config is not None else DEFAULT_SIMULATION_CONFIG
    run = _Run(model, config)
    if not model.targets:
        return run.stats.result()

    start = model.first_time - float(config.lead_in_ms)
    end = model.last_time + float(config.tail_margin_ms)
    step = float(config.step_ms)
    if run.trace:
        trace_log(
            "sim_start",
            start=start,
            end=end,
            step=step,
            targets=len(model.targets),
            frames=len(track),
        )

    cursor = track.cursor()
    previous: frozenset[Button] = NO_BUTTONS
    clock = start
    steps = 0
    while clock <= end:
        position, buttons = cursor.seek(clock)
        pressed = bool(buttons - previous)
        run.step_circles(clock, position, pressed)
        run.step_holds(clock, position, buttons, pressed)
        previous = buttons
        steps += 1
        clock = start + steps * step

    run.sweep(end)
    result = run.stats.result()
    if run.trace:
        trace_log(
            "sim_end",
            steps=steps,
            max_combo=result.max_combo,
            max_possible_combo=result.max_possible_combo,
            accuracy=f"{result.accuracy:.6f}",
        )
    return result
