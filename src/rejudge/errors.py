from __future__ import annotations


class MalformedInputError(ValueError):
    """A map or replay could not be decoded. No partial result is produced."""


class BeatmapFormatError(MalformedInputError):
    pass


class ReplayFormatError(MalformedInputError):
    pass


class UnsupportedRulesetError(ValueError):
    """The input targets a ruleset other than osu! standard."""

    def __init__(self, mode: int) -> None:
        super().__init__(f"only osu! standard (mode 0) is supported, got mode {int(mode)}")
        self.mode = int(mode)


__all__ = [
    "BeatmapFormatError",
    "MalformedInputError",
    "ReplayFormatError",
    "UnsupportedRulesetError",
]
