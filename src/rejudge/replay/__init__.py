from __future__ import annotations

from .checks import BeatmapHashMismatchWarning, warn_on_beatmap_mismatch
from .codec import dump_replay, dump_replay_file, format_frames, load_replay, load_replay_file, parse_frames
from .types import NO_BUTTONS, Button, Replay, ReplayFrame, ReplayHeader, buttons_from_bits

__all__ = [
    "BeatmapHashMismatchWarning",
    "Button",
    "NO_BUTTONS",
    "Replay",
    "ReplayFrame",
    "ReplayHeader",
    "buttons_from_bits",
    "dump_replay",
    "dump_replay_file",
    "format_frames",
    "load_replay",
    "load_replay_file",
    "parse_frames",
    "warn_on_beatmap_mismatch",
]
