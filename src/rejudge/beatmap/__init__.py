from __future__ import annotations

from .codec import load_beatmap, load_beatmap_file
from .types import Beatmap, CircleObject, HitObject, SliderObject, SpinnerObject, TimingPoint

__all__ = [
    "Beatmap",
    "CircleObject",
    "HitObject",
    "SliderObject",
    "SpinnerObject",
    "TimingPoint",
    "load_beatmap",
    "load_beatmap_file",
]
