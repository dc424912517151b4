from __future__ import annotations

import hashlib
import math
from pathlib import Path
import re
from typing import Any

from playfield.geom import Vec2

from ..errors import BeatmapFormatError, UnsupportedRulesetError
from .types import (
    OBJECT_TYPE_CIRCLE,
    OBJECT_TYPE_HOLD,
    OBJECT_TYPE_NEW_COMBO,
    OBJECT_TYPE_SLIDER,
    OBJECT_TYPE_SPINNER,
    Beatmap,
    CircleObject,
    HitObject,
    SliderObject,
    SpinnerObject,
    TimingPoint,
)

_VERSION_RE = re.compile(r"^osu file format v(\d+)\s*$")
_SECTION_RE = re.compile(r"^\[(\w+)\]\s*$")
_KEY_VALUE_SECTIONS = frozenset({"General", "Metadata", "Difficulty", "Editor"})
_LIST_SECTIONS = frozenset({"TimingPoints", "HitObjects"})

MAX_COORDINATE_VALUE = 131072.0
MAX_SLIDES = 9000
# Pre-v5 maps were timed against a different audio offset.
EARLY_VERSION_TIMING_OFFSET = 24.0


def _parse_float(value: str, *, what: str, limit: float | None = None, allow_nan: bool = False) -> float:
    try:
        out = float(value.strip())
    except ValueError:
        raise BeatmapFormatError(f"{what} should be a number, got {value!r}") from None
    if math.isnan(out):
        if allow_nan:
            return out
        raise BeatmapFormatError(f"{what} is not a number: {value!r}")
    if math.isinf(out):
        raise BeatmapFormatError(f"{what} is not finite: {value!r}")
    if limit is not None and abs(out) > limit:
        raise BeatmapFormatError(f"{what} out of range: {value!r}")
    return out


def _parse_int(value: str, *, what: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        pass
    return int(_parse_float(value, what=what))


def _split_sections(lines: list[str]) -> dict[str, Any]:
    sections: dict[str, Any] = {}
    current: str | None = None
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        match = _SECTION_RE.match(line)
        if match is not None:
            current = match.group(1)
            if current in _LIST_SECTIONS:
                sections.setdefault(current, [])
            else:
                sections.setdefault(current, {})
            continue
        if current is None:
            continue
        bucket = sections[current]
        if isinstance(bucket, list):
            bucket.append(line)
        elif current in _KEY_VALUE_SECTIONS:
            key, sep, value = line.partition(":")
            if sep:
                bucket[key.strip()] = value.strip()
    return sections


def _get_float(section: dict[str, str], key: str, default: float) -> float:
    raw = section.get(key)
    if raw is None or raw == "":
        return float(default)
    return _parse_float(raw, what=key)


def _timing_point_from_line(line: str, *, time_offset: float) -> TimingPoint:
    fields = line.split(",")
    if len(fields) < 2:
        raise BeatmapFormatError(f"timing point needs at least time and beat length: {line!r}")
    time = _parse_float(fields[0], what="timing point time") + time_offset
    beat_length = _parse_float(fields[1], what="beat length", allow_nan=True)
    uninherited = True
    if len(fields) >= 7 and fields[6].strip():
        uninherited = fields[6].strip()[0] == "1"
    elif beat_length < 0.0:
        uninherited = False
    if uninherited and math.isnan(beat_length):
        raise BeatmapFormatError(f"beat length is not a number: {line!r}")
    return TimingPoint(time=time, beat_length=beat_length, uninherited=uninherited)


def _position(x_raw: str, y_raw: str) -> Vec2:
    x = _parse_float(x_raw, what="x", limit=MAX_COORDINATE_VALUE)
    y = _parse_float(y_raw, what="y", limit=MAX_COORDINATE_VALUE)
    return Vec2(float(int(x)), float(int(y)))


def _is_linear(a: Vec2, b: Vec2, c: Vec2) -> bool:
    return abs((b.y - a.y) * (c.x - a.x) - (b.x - a.x) * (c.y - a.y)) < 1e-3


def _slider_from_fields(fields: list[str], *, position: Vec2, time: float, new_combo: bool) -> SliderObject:
    if len(fields) < 8:
        raise BeatmapFormatError(f"slider needs curve, slides and length fields: {','.join(fields)!r}")

    curve_kind, *raw_points = fields[5].split("|")
    curve_kind = curve_kind.strip().upper()
    if curve_kind not in ("L", "P", "B", "C"):
        raise BeatmapFormatError(f"unknown slider curve type: {curve_kind!r}")

    points = [position]
    for raw in raw_points:
        x_raw, sep, y_raw = raw.partition(":")
        if not sep:
            raise BeatmapFormatError(f"expected slider point as x:y, got {raw!r}")
        points.append(_position(x_raw, y_raw))

    slides = _parse_int(fields[6], what="slides")
    if slides < 1:
        slides = 1
    if slides > MAX_SLIDES:
        raise BeatmapFormatError(f"slider has too many repeats: {slides}")

    pixel_length: float | None = _parse_float(fields[7], what="slider length", allow_nan=True)
    if pixel_length is not None and (math.isnan(pixel_length) or pixel_length < 0.0):
        pixel_length = None

    if curve_kind == "P":
        if len(points) != 3:
            curve_kind = "B"
        elif _is_linear(points[0], points[1], points[2]):
            curve_kind = "L"

    return SliderObject(
        time=time,
        position=position,
        curve_kind=curve_kind,  # type: ignore[arg-type]
        control_points=tuple(points),
        slides=slides,
        pixel_length=pixel_length,
        new_combo=new_combo,
    )


def _hit_object_from_line(line: str, *, time_offset: float) -> HitObject | None:
    fields = line.split(",")
    if len(fields) < 4:
        raise BeatmapFormatError(f"hit object needs x,y,time,type: {line!r}")
    position = _position(fields[0], fields[1])
    time = _parse_float(fields[2], what="hit object time") + time_offset
    type_bits = _parse_int(fields[3], what="hit object type")
    new_combo = bool(type_bits & OBJECT_TYPE_NEW_COMBO)

    if type_bits & OBJECT_TYPE_CIRCLE:
        return CircleObject(time=time, position=position, new_combo=new_combo)
    if type_bits & OBJECT_TYPE_SLIDER:
        return _slider_from_fields(fields, position=position, time=time, new_combo=new_combo)
    if type_bits & OBJECT_TYPE_SPINNER:
        if len(fields) < 6:
            raise BeatmapFormatError(f"spinner needs an end time: {line!r}")
        end_time = _parse_float(fields[5], what="spinner end time") + time_offset
        return SpinnerObject(time=time, end_time=max(time, end_time), new_combo=new_combo)
    if type_bits & OBJECT_TYPE_HOLD:
        # Mania holds have no standard-mode meaning.
        return None
    raise BeatmapFormatError(f"unknown hit object type bits: {type_bits}")


def load_beatmap(data: bytes | str) -> Beatmap:
    """Decode a `.osu` beatmap. Raises `BeatmapFormatError` on any malformed input."""

    if isinstance(data, bytes):
        md5 = hashlib.md5(data).hexdigest()
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise BeatmapFormatError(f"beatmap is not valid utf-8: {exc}") from exc
    else:
        md5 = hashlib.md5(data.encode("utf-8")).hexdigest()
        text = data.removeprefix("\ufeff")

    lines = text.lstrip().splitlines()
    if not lines:
        raise BeatmapFormatError("empty beatmap")
    match = _VERSION_RE.match(lines[0].strip())
    if match is None:
        raise BeatmapFormatError(f"missing osu file format specifier in: {lines[0]!r}")
    format_version = int(match.group(1))

    sections = _split_sections(lines[1:])
    general: dict[str, str] = sections.get("General", {})
    metadata: dict[str, str] = sections.get("Metadata", {})
    difficulty: dict[str, str] = sections.get("Difficulty", {})

    mode = int(_get_float(general, "Mode", 0))
    if mode != 0:
        raise UnsupportedRulesetError(mode)

    time_offset = EARLY_VERSION_TIMING_OFFSET if format_version < 5 else 0.0

    timing_points = tuple(
        _timing_point_from_line(line, time_offset=time_offset) for line in sections.get("TimingPoints", [])
    )

    hit_objects: list[HitObject] = []
    for line in sections.get("HitObjects", []):
        obj = _hit_object_from_line(line, time_offset=time_offset)
        if obj is not None:
            hit_objects.append(obj)
    hit_objects.sort(key=lambda obj: obj.time)

    overall_difficulty = _get_float(difficulty, "OverallDifficulty", 5.0)
    return Beatmap(
        format_version=format_version,
        hit_objects=tuple(hit_objects),
        timing_points=timing_points,
        mode=mode,
        circle_size=_get_float(difficulty, "CircleSize", 5.0),
        overall_difficulty=overall_difficulty,
        approach_rate=_get_float(difficulty, "ApproachRate", overall_difficulty),
        hp_drain_rate=_get_float(difficulty, "HPDrainRate", 5.0),
        slider_multiplier=_get_float(difficulty, "SliderMultiplier", 1.4),
        slider_tick_rate=_get_float(difficulty, "SliderTickRate", 1.0),
        stack_leniency=_get_float(general, "StackLeniency", 0.7),
        title=str(metadata.get("Title", "")),
        artist=str(metadata.get("Artist", "")),
        version=str(metadata.get("Version", "")),
        md5=md5,
    )


def load_beatmap_file(path: Path) -> Beatmap:
    path = Path(path)
    return load_beatmap(path.read_bytes())
