from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from playfield.geom import Vec2

# Raw `.osr` button bits: mouse 1/2 and keyboard 1/2 (keys also set the mouse bit).
BUTTON_MOUSE_LEFT: Final[int] = 1 << 0
BUTTON_MOUSE_RIGHT: Final[int] = 1 << 1
BUTTON_KEY_LEFT: Final[int] = 1 << 2
BUTTON_KEY_RIGHT: Final[int] = 1 << 3
BUTTON_SMOKE: Final[int] = 1 << 4

# Leading frame carrying the RNG seed instead of input.
SEED_FRAME_MARKER: Final[str] = "-12345"


class Button(Enum):
    LEFT = "left"
    RIGHT = "right"


NO_BUTTONS: Final[frozenset[Button]] = frozenset()


def buttons_from_bits(bits: int) -> frozenset[Button]:
    bits = int(bits)
    held: set[Button] = set()
    if bits & (BUTTON_MOUSE_LEFT | BUTTON_KEY_LEFT):
        held.add(Button.LEFT)
    if bits & (BUTTON_MOUSE_RIGHT | BUTTON_KEY_RIGHT):
        held.add(Button.RIGHT)
    return frozenset(held)


def bits_from_buttons(buttons: frozenset[Button]) -> int:
    bits = 0
    if Button.LEFT in buttons:
        bits |= BUTTON_MOUSE_LEFT
    if Button.RIGHT in buttons:
        bits |= BUTTON_MOUSE_RIGHT
    return bits


@dataclass(frozen=True, slots=True)
class ReplayFrame:
    time: float
    position: Vec2
    buttons: frozenset[Button] = NO_BUTTONS


@dataclass(frozen=True, slots=True)
class ReplayHeader:
    mode: int
    version: int
    beatmap_md5: str
    player_name: str
    replay_md5: str
    count_300: int = 0
    count_100: int = 0
    count_50: int = 0
    count_geki: int = 0
    count_katu: int = 0
    count_miss: int = 0
    score: int = 0
    max_combo: int = 0
    perfect: bool = False
    mods: int = 0
    life_bar: str = ""
    # .NET ticks (100ns since 0001-01-01).
    timestamp: int = 0
    online_score_id: int = 0


@dataclass(frozen=True, slots=True)
class Replay:
    header: ReplayHeader
    frames: tuple[ReplayFrame, ...] = ()
