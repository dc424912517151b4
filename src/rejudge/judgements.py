from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class HitResult(IntEnum):
    """Judgement tiers, ordered as osu! orders them (worst to best within each family)."""

    NONE = 0
    MISS = 1
    MEH = 2
    OK = 3
    GREAT = 5
    LARGE_TICK_MISS = 9
    LARGE_TICK_HIT = 10
    IGNORE_MISS = 13
    IGNORE_HIT = 14
    SLIDER_TAIL_HIT = 16


@dataclass(frozen=True, slots=True)
class HitResultInfo:
    label: str
    affects_combo: bool
    affects_accuracy: bool
    is_hit: bool
    base_score: int
    # Sub-event misses leave the running combo alone; only head and circle misses reset it.
    breaks_combo: bool = False


HIT_RESULT_TABLE: dict[HitResult, HitResultInfo] = {
    HitResult.NONE: HitResultInfo("none", affects_combo=False, affects_accuracy=False, is_hit=False, base_score=0),
    HitResult.MISS: HitResultInfo(
        "miss", affects_combo=True, affects_accuracy=True, is_hit=False, base_score=0, breaks_combo=True
    ),
    HitResult.MEH: HitResultInfo("meh", affects_combo=True, affects_accuracy=True, is_hit=True, base_score=50),
    HitResult.OK: HitResultInfo("ok", affects_combo=True, affects_accuracy=True, is_hit=True, base_score=100),
    HitResult.GREAT: HitResultInfo("great", affects_combo=True, affects_accuracy=True, is_hit=True, base_score=300),
    HitResult.LARGE_TICK_MISS: HitResultInfo(
        "large_tick_miss", affects_combo=True, affects_accuracy=True, is_hit=False, base_score=0
    ),
    HitResult.LARGE_TICK_HIT: HitResultInfo(
        "large_tick_hit", affects_combo=True, affects_accuracy=True, is_hit=True, base_score=30
    ),
    HitResult.IGNORE_MISS: HitResultInfo(
        "ignore_miss", affects_combo=False, affects_accuracy=False, is_hit=False, base_score=0
    ),
    HitResult.IGNORE_HIT: HitResultInfo("ignore_hit", affects_combo=False, affects_accuracy=False, is_hit=True, base_score=0),
    HitResult.SLIDER_TAIL_HIT: HitResultInfo(
        "slider_tail_hit", affects_combo=True, affects_accuracy=True, is_hit=True, base_score=150
    ),
}

def affects_combo(result: HitResult) -> bool:
    return HIT_RESULT_TABLE[result].affects_combo


def affects_accuracy(result: HitResult) -> bool:
    return HIT_RESULT_TABLE[result].affects_accuracy


def is_hit(result: HitResult) -> bool:
    return HIT_RESULT_TABLE[result].is_hit


def breaks_combo(result: HitResult) -> bool:
    return HIT_RESULT_TABLE[result].breaks_combo


def base_score_for_result(result: HitResult) -> int:
    """Score weight table consulted by the accuracy computation."""
    return HIT_RESULT_TABLE[result].base_score


def hit_result_label(result: HitResult) -> str:
    return HIT_RESULT_TABLE[result].label


__all__ = [
    "HIT_RESULT_TABLE",
    "HitResult",
    "HitResultInfo",
    "affects_accuracy",
    "affects_combo",
    "base_score_for_result",
    "breaks_combo",
    "hit_result_label",
    "is_hit",
]
