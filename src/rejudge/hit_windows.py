from __future__ import annotations

from dataclasses import dataclass
import math

from playfield.math import difficulty_range

from .judgements import HitResult

# (od 0, od 5, od 10) in milliseconds of map time.
GREAT_WINDOW_RANGE = (80.0, 50.0, 20.0)
OK_WINDOW_RANGE = (140.0, 100.0, 60.0)
MEH_WINDOW_RANGE = (200.0, 150.0, 100.0)

_TIERS_INNERMOST_FIRST = (HitResult.GREAT, HitResult.OK, HitResult.MEH)


def _window(overall_difficulty: float, window_range: tuple[float, float, float]) -> float:
    return math.floor(difficulty_range(overall_difficulty, *window_range)) - 0.5


@dataclass(frozen=True, slots=True)
class HitWindows:
    great: float
    ok: float
    meh: float

    @classmethod
    def from_overall_difficulty(cls, overall_difficulty: float) -> HitWindows:
        od = float(overall_difficulty)
        return cls(
            great=_window(od, GREAT_WINDOW_RANGE),
            ok=_window(od, OK_WINDOW_RANGE),
            meh=_window(od, MEH_WINDOW_RANGE),
        )

    @property
    def miss_window(self) -> float:
        """Largest |offset| that can still produce a non-miss judgement."""
        return self.meh

    def window_for(self, result: HitResult) -> float:
        if result == HitResult.GREAT:
            return self.great
        if result == HitResult.OK:
            return self.ok
        if result in (HitResult.MEH, HitResult.MISS):
            return self.meh
        raise ValueError(f"no timing window for {HitResult(result).name}")

    def can_be_hit(self, offset: float) -> bool:
        return abs(float(offset)) <= self.meh

    def result_for(self, offset: float) -> HitResult | None:
        """Tier for a press `offset` ms from the nominal time, or None outside every window."""

        distance = abs(float(offset))
        for result in _TIERS_INNERMOST_FIRST:
            if distance <= self.window_for(result):
                return result
        return None

    def judge_head(self, offset: float, *, lenient: bool = True) -> HitResult | None:
        """`result_for` with the re-scoring leniency: MEH on a circle or hold head counts as GREAT."""

        result = self.result_for(offset)
        if lenient and result == HitResult.MEH:
            return HitResult.GREAT
        return result
