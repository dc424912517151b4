from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
import warnings

HARD_ROCK_CIRCLE_SIZE_FACTOR = 1.3
HARD_ROCK_DIFFICULTY_FACTOR = 1.4
EASY_DIFFICULTY_FACTOR = 0.5
MAX_DIFFICULTY = 10.0


class Mod(Enum):
    """Legacy (stable) mod bits, as stored in the replay header."""

    NO_FAIL = 1 << 0
    EASY = 1 << 1
    TOUCH_DEVICE = 1 << 2
    HIDDEN = 1 << 3
    HARD_ROCK = 1 << 4
    SUDDEN_DEATH = 1 << 5
    DOUBLE_TIME = 1 << 6
    RELAX = 1 << 7
    HALF_TIME = 1 << 8
    NIGHTCORE = 1 << 9
    FLASHLIGHT = 1 << 10
    AUTOPLAY = 1 << 11
    SPUN_OUT = 1 << 12
    AUTOPILOT = 1 << 13
    PERFECT = 1 << 14
    CINEMA = 1 << 22
    TARGET_PRACTICE = 1 << 23

    @property
    def acronym(self) -> str:
        return _ACRONYMS[self]


_ACRONYMS: dict[Mod, str] = {
    Mod.NO_FAIL: "NF",
    Mod.EASY: "EZ",
    Mod.TOUCH_DEVICE: "TD",
    Mod.HIDDEN: "HD",
    Mod.HARD_ROCK: "HR",
    Mod.SUDDEN_DEATH: "SD",
    Mod.DOUBLE_TIME: "DT",
    Mod.RELAX: "RX",
    Mod.HALF_TIME: "HT",
    Mod.NIGHTCORE: "NC",
    Mod.FLASHLIGHT: "FL",
    Mod.AUTOPLAY: "AT",
    Mod.SPUN_OUT: "SO",
    Mod.AUTOPILOT: "AP",
    Mod.PERFECT: "PF",
    Mod.CINEMA: "CN",
    Mod.TARGET_PRACTICE: "TP",
}

# Mods whose input cannot be reproduced from the recorded frames alone.
UNSUPPORTED_MODS: frozenset[Mod] = frozenset(
    {Mod.RELAX, Mod.AUTOPILOT, Mod.AUTOPLAY, Mod.CINEMA, Mod.TARGET_PRACTICE}
)


class UnsupportedModWarning(UserWarning):
    """The replay uses a mod the re-judgement does not model."""


def mods_from_legacy(bits: int) -> frozenset[Mod]:
    bits = int(bits)
    return frozenset(mod for mod in Mod if bits & mod.value)


def legacy_from_mods(mods: Iterable[Mod]) -> int:
    bits = 0
    for mod in mods:
        bits |= int(mod.value)
    return bits


def format_mods(mods: Iterable[Mod]) -> str:
    ordered = sorted(mods, key=lambda mod: mod.value)
    if not ordered:
        return "NM"
    return "".join(mod.acronym for mod in ordered)


def flips_playfield(mods: Iterable[Mod]) -> bool:
    return Mod.HARD_ROCK in frozenset(mods)


@dataclass(frozen=True, slots=True)
class DifficultySettings:
    circle_size: float
    overall_difficulty: float
    approach_rate: float
    hp_drain_rate: float


def apply_mods(settings: DifficultySettings, mods: Iterable[Mod]) -> DifficultySettings:
    """Return the difficulty values after Easy / HardRock.

    Rate mods do not appear here: windows are measured in map time, so DT/HT leave them unchanged.
    """

    mods = frozenset(mods)
    cs = float(settings.circle_size)
    od = float(settings.overall_difficulty)
    ar = float(settings.approach_rate)
    hp = float(settings.hp_drain_rate)

    if Mod.EASY in mods:
        cs *= EASY_DIFFICULTY_FACTOR
        od *= EASY_DIFFICULTY_FACTOR
        ar *= EASY_DIFFICULTY_FACTOR
        hp *= EASY_DIFFICULTY_FACTOR

    if Mod.HARD_ROCK in mods:
        cs = min(cs * HARD_ROCK_CIRCLE_SIZE_FACTOR, MAX_DIFFICULTY)
        od = min(od * HARD_ROCK_DIFFICULTY_FACTOR, MAX_DIFFICULTY)
        ar = min(ar * HARD_ROCK_DIFFICULTY_FACTOR, MAX_DIFFICULTY)
        hp = min(hp * HARD_ROCK_DIFFICULTY_FACTOR, MAX_DIFFICULTY)

    return DifficultySettings(circle_size=cs, overall_difficulty=od, approach_rate=ar, hp_drain_rate=hp)


def warn_on_unsupported_mods(mods: Iterable[Mod]) -> bool:
    """Warn once if `mods` contains anything the re-judgement cannot reproduce.

    Returns True if a warning was emitted.
    """

    unsupported = frozenset(mods) & UNSUPPORTED_MODS
    if not unsupported:
        return False
    warnings.warn(
        f"Replay uses unsupported mods ({format_mods(unsupported)}); re-judged results will diverge.",
        category=UnsupportedModWarning,
        stacklevel=2,
    )
    return True


__all__ = [
    "DifficultySettings",
    "Mod",
    "UNSUPPORTED_MODS",
    "UnsupportedModWarning",
    "apply_mods",
    "flips_playfield",
    "format_mods",
    "legacy_from_mods",
    "mods_from_legacy",
    "warn_on_unsupported_mods",
]
