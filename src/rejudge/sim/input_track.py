from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
import math

from playfield.geom import Vec2
from playfield.math import clamp

from ..replay.types import NO_BUTTONS, Button, ReplayFrame


@dataclass(frozen=True, slots=True)
class InputTrack:
    """Recorded cursor samples, sorted by time. Immutable; query through `cursor()`."""

    frames: tuple[ReplayFrame, ...] = ()

    @classmethod
    def from_frames(cls, frames: Iterable[ReplayFrame]) -> InputTrack:
        return cls(frames=tuple(sorted(frames, key=lambda frame: frame.time)))

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def is_empty(self) -> bool:
        return not self.frames

    def cursor(self) -> InputCursor:
        return InputCursor(self.frames)

    def position_at(self, time: float) -> Vec2:
        """One-off lookup from a fresh cursor, O(n). Sequential queries go through `cursor()`."""
        return self.cursor().position_at(time)

    def held_buttons_at(self, time: float) -> frozenset[Button]:
        return self.cursor().held_buttons_at(time)


class InputCursor:
    """Per-run bracket pointer over an input track.

    Queries are amortized O(1) when time only moves forward. Moving backwards only rewinds
    while the cursor is parked exactly on the current frame's start, so a query slightly
    before a frame boundary does not jump back across it.
    """

    __slots__ = ("_frames", "_index", "_current_time")

    def __init__(self, frames: tuple[ReplayFrame, ...]) -> None:
        self._frames = frames
        self._index = -1
        self._current_time = -math.inf

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_time(self) -> float:
        return self._current_time

    def _frame_time(self, index: int) -> float:
        if index < 0:
            return -math.inf
        if index >= len(self._frames):
            return math.inf
        return float(self._frames[index].time)

    def _set_time(self, time: float) -> None:
        time = float(time)
        count = len(self._frames)
        if count == 0:
            self._current_time = time
            return

        frame_start = self._frame_time(self._index)
        frame_end = self._frame_time(self._index + 1)

        while frame_end <= time and self._index < count - 1:
            self._index += 1
            frame_start = self._frame_time(self._index)
            frame_end = self._frame_time(self._index + 1)

        while time < frame_start and self._index > 0 and self._current_time == frame_start:
            self._index -= 1
            frame_start = self._frame_time(self._index)
            frame_end = self._frame_time(self._index + 1)

        self._current_time = clamp(time, frame_start, frame_end)

    def _position(self) -> Vec2:
        frames = self._frames
        if not frames:
            return Vec2()
        if self._index < 0:
            return frames[0].position
        if self._index >= len(frames) - 1:
            return frames[-1].position

        start = frames[self._index]
        end = frames[self._index + 1]
        duration = float(end.time) - float(start.time)
        elapsed = self._current_time - float(start.time)
        if duration == 0.0 or elapsed == 0.0:
            return start.position
        return Vec2.lerp(start.position, end.position, elapsed / duration)

    def _buttons(self) -> frozenset[Button]:
        if 0 <= self._index < len(self._frames):
            return self._frames[self._index].buttons
        return NO_BUTTONS

    def seek(self, time: float) -> tuple[Vec2, frozenset[Button]]:
        self._set_time(time)
        return self._position(), self._buttons()

    def position_at(self, time: float) -> Vec2:
        return self.seek(time)[0]

    def held_buttons_at(self, time: float) -> frozenset[Button]:
        return self.seek(time)[1]
