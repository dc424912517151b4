from __future__ import annotations

from collections.abc import Mapping

from ..judgements import HitResult, affects_accuracy, affects_combo, base_score_for_result, breaks_combo, is_hit
from ..targets.types import Hold, TargetModel
from .result import SimulationResult


def compute_accuracy(statistics: Mapping[HitResult, int], maximum_statistics: Mapping[HitResult, int]) -> float:
    """Weighted ratio of achieved to best-case score over accuracy-affecting tiers; 0 when nothing is scoreable."""

    achieved = 0
    best = 0
    for result, count in statistics.items():
        if affects_accuracy(result):
            achieved += base_score_for_result(result) * int(count)
    for result, count in maximum_statistics.items():
        if affects_accuracy(result):
            best += base_score_for_result(result) * int(count)
    if best <= 0:
        return 0.0
    return achieved / best


class StatisticsAggregator:
    __slots__ = ("statistics", "maximum_statistics", "combo", "max_combo", "max_possible_combo")

    def __init__(self) -> None:
        self.statistics: dict[HitResult, int] = {}
        self.maximum_statistics: dict[HitResult, int] = {}
        self.combo = 0
        self.max_combo = 0
        self.max_possible_combo = 0

    @classmethod
    def for_model(cls, model: TargetModel) -> StatisticsAggregator:
        aggregator = cls()
        for target in model.targets:
            aggregator.add_maximum(target.best_result)
            if isinstance(target, Hold):
                for event in target.sub_events:
                    aggregator.add_maximum(event.best_result)
        return aggregator

    def add_maximum(self, result: HitResult) -> None:
        if affects_combo(result):
            self.max_possible_combo += 1
        if affects_accuracy(result):
            self.maximum_statistics[result] = self.maximum_statistics.get(result, 0) + 1

    def apply(self, result: HitResult) -> None:
        self.statistics[result] = self.statistics.get(result, 0) + 1
        if breaks_combo(result):
            self.combo = 0
        elif affects_combo(result) and is_hit(result):
            self.combo += 1
            if self.combo > self.max_combo:
                self.max_combo = self.combo

    @property
    def accuracy(self) -> float:
        return compute_accuracy(self.statistics, self.maximum_statistics)

    def result(self) -> SimulationResult:
        return SimulationResult(
            statistics=dict(self.statistics),
            maximum_statistics=dict(self.maximum_statistics),
            max_combo=self.max_combo,
            max_possible_combo=self.max_possible_combo,
            accuracy=self.accuracy,
        )
