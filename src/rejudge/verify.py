from __future__ import annotations

from dataclasses import dataclass

from .judgements import HitResult
from .replay.types import ReplayHeader
from .sim.result import SimulationResult

# Header counter -> re-judged tier.
HEADER_COUNT_FIELDS: tuple[tuple[str, HitResult], ...] = (
    ("count_300", HitResult.GREAT),
    ("count_100", HitResult.OK),
    ("count_50", HitResult.MEH),
    ("count_miss", HitResult.MISS),
)


@dataclass(frozen=True, slots=True)
class VerifyMismatch:
    field: str
    expected: int
    actual: int

    def describe(self) -> str:
        return f"{self.field}: replay={self.expected} rejudged={self.actual}"


@dataclass(frozen=True, slots=True)
class VerifyResult:
    ok: bool
    checked_count: int
    mismatches: tuple[VerifyMismatch, ...] = ()


def compare_with_header(header: ReplayHeader, result: SimulationResult) -> VerifyResult:
    """Check re-judged counts and max combo against what the replay recorded.

    Every field is checked; mismatches are returned, never raised.
    """

    mismatches: list[VerifyMismatch] = []
    checked_count = 0
    for field, tier in HEADER_COUNT_FIELDS:
        checked_count += 1
        expected = int(getattr(header, field))
        actual = result.count(tier)
        if expected != actual:
            mismatches.append(VerifyMismatch(field=field, expected=expected, actual=actual))

    checked_count += 1
    if int(header.max_combo) != int(result.max_combo):
        mismatches.append(VerifyMismatch(field="max_combo", expected=int(header.max_combo), actual=int(result.max_combo)))

    return VerifyResult(ok=not mismatches, checked_count=checked_count, mismatches=tuple(mismatches))
