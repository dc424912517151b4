from __future__ import annotations

from dataclasses import dataclass, field

import msgspec

from ..judgements import HitResult, hit_result_label


@dataclass(frozen=True, slots=True)
class SimulationResult:
    statistics: dict[HitResult, int] = field(default_factory=dict)
    maximum_statistics: dict[HitResult, int] = field(default_factory=dict)
    max_combo: int = 0
    max_possible_combo: int = 0
    accuracy: float = 0.0

    def count(self, result: HitResult) -> int:
        return int(self.statistics.get(result, 0))

    def maximum(self, result: HitResult) -> int:
        return int(self.maximum_statistics.get(result, 0))

    @property
    def judged_count(self) -> int:
        return sum(self.statistics.values())


class ResultDocument(msgspec.Struct, forbid_unknown_fields=True):
    """JSON shape of one analysis; tier keys use lowercase labels (`great`, `large_tick_hit`, ...)."""

    accuracy: float
    max_combo: int
    max_possible_combo: int
    statistics: dict[str, int] = msgspec.field(default_factory=dict)
    maximum_statistics: dict[str, int] = msgspec.field(default_factory=dict)
    beatmap: str = ""
    player: str = ""
    mods: str = ""


_DOCUMENT_DECODER = msgspec.json.Decoder(type=ResultDocument)


def _labelled(counts: dict[HitResult, int]) -> dict[str, int]:
    return {hit_result_label(result): int(counts[result]) for result in sorted(counts) if counts[result]}


def result_document(result: SimulationResult, *, beatmap: str = "", player: str = "", mods: str = "") -> ResultDocument:
    return ResultDocument(
        accuracy=float(result.accuracy),
        max_combo=int(result.max_combo),
        max_possible_combo=int(result.max_possible_combo),
        statistics=_labelled(result.statistics),
        maximum_statistics=_labelled(result.maximum_statistics),
        beatmap=str(beatmap),
        player=str(player),
        mods=str(mods),
    )


def encode_result_json(document: ResultDocument) -> bytes:
    return msgspec.json.format(msgspec.json.encode(document), indent=2)


def decode_result_json(blob: bytes | str) -> ResultDocument:
    return _DOCUMENT_DECODER.decode(blob)
