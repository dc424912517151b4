from __future__ import annotations

import io
import lzma
import math
from pathlib import Path
from typing import Any, Final, Iterable

from construct import Byte, ConstructError, Flag, If, Int16ul, Int32sl, Int32ul, Int64sl, PascalString
from construct import StreamError, Struct, VarInt, this

from playfield.geom import Vec2

from ..errors import ReplayFormatError, UnsupportedRulesetError
from ..trace_log import trace_log
from .types import SEED_FRAME_MARKER, Replay, ReplayFrame, ReplayHeader, bits_from_buttons, buttons_from_bits

STRING_ABSENT: Final[int] = 0x00
STRING_PRESENT: Final[int] = 0x0B

_OSU_STRING = Struct(
    "marker" / Byte,
    "value" / If(this.marker == STRING_PRESENT, PascalString(VarInt, "utf8")),
)

_HEADER = Struct(
    "mode" / Byte,
    "version" / Int32sl,
    "beatmap_md5" / _OSU_STRING,
    "player_name" / _OSU_STRING,
    "replay_md5" / _OSU_STRING,
    "count_300" / Int16ul,
    "count_100" / Int16ul,
    "count_50" / Int16ul,
    "count_geki" / Int16ul,
    "count_katu" / Int16ul,
    "count_miss" / Int16ul,
    "score" / Int32sl,
    "max_combo" / Int16ul,
    "perfect" / Flag,
    "mods" / Int32ul,
    "life_bar" / _OSU_STRING,
    "timestamp" / Int64sl,
    "replay_length" / Int32sl,
)

_ONLINE_SCORE_ID = Int64sl


def _string_value(raw: Any, *, what: str) -> str:
    marker = int(raw["marker"])
    if marker == STRING_ABSENT:
        return ""
    if marker != STRING_PRESENT:
        raise ReplayFormatError(f"invalid string marker for {what}: 0x{marker:02x}")
    return str(raw["value"])


def _string_raw(value: str) -> dict[str, object]:
    if not value:
        return {"marker": STRING_ABSENT, "value": None}
    return {"marker": STRING_PRESENT, "value": str(value)}


def _parse_number(raw: str, *, what: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ReplayFormatError(f"replay frame {what} should be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ReplayFormatError(f"replay frame {what} is not finite: {raw!r}")
    return value


def parse_frames(text: str) -> tuple[ReplayFrame, ...]:
    """Decode the decompressed `w|x|y|z,...` frame string into absolute-time frames."""

    frames: list[ReplayFrame] = []
    current_time = 0.0
    for chunk in text.split(","):
        fields = chunk.split("|")
        if len(fields) < 4:
            continue
        if fields[0].strip() == SEED_FRAME_MARKER:
            continue
        current_time += _parse_number(fields[0], what="time delta")
        x = _parse_number(fields[1], what="x")
        y = _parse_number(fields[2], what="y")
        bits = int(_parse_number(fields[3], what="buttons"))
        frames.append(ReplayFrame(time=current_time, position=Vec2(x, y), buttons=buttons_from_bits(bits)))

    # `sorted` is stable: equal-time frames keep their recorded order.
    return tuple(sorted(frames, key=lambda frame: frame.time))


def _format_number(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_frames(frames: Iterable[ReplayFrame]) -> str:
    parts: list[str] = []
    previous = 0.0
    for frame in frames:
        delta = float(frame.time) - previous
        previous = float(frame.time)
        parts.append(
            "|".join(
                (
                    _format_number(delta),
                    _format_number(frame.position.x),
                    _format_number(frame.position.y),
                    str(bits_from_buttons(frame.buttons)),
                )
            )
        )
    return ",".join(parts)


def _decompress_frames(blob: bytes) -> str:
    if not blob:
        return ""
    try:
        raw = lzma.decompress(blob, format=lzma.FORMAT_ALONE)
    except lzma.LZMAError as exc:
        raise ReplayFormatError(f"replay frame data is not valid LZMA: {exc}") from exc
    try:
        return raw.decode("ascii")
    except UnicodeDecodeError as exc:
        raise ReplayFormatError("replay frame data is not ASCII text") from exc


def load_replay(data: bytes) -> Replay:
    """Decode an `.osr` replay.

    Raises `UnsupportedRulesetError` for non-standard replays and
    `ReplayFormatError` for anything truncated or malformed.
    """

    stream = io.BytesIO(bytes(data))
    try:
        header_raw = _HEADER.parse_stream(stream)
    except StreamError as exc:
        raise ReplayFormatError("unexpected EOF in replay header") from exc
    except UnicodeDecodeError as exc:
        raise ReplayFormatError(f"replay string is not valid utf-8: {exc}") from exc
    except ConstructError as exc:
        raise ReplayFormatError(str(exc)) from exc

    mode = int(header_raw["mode"])
    if mode != 0:
        raise UnsupportedRulesetError(mode)

    replay_length = int(header_raw["replay_length"])
    blob = b""
    if replay_length > 0:
        blob = stream.read(replay_length)
        if len(blob) != replay_length:
            raise ReplayFormatError(
                f"unexpected EOF in replay frame data: expected {replay_length} bytes, got {len(blob)}"
            )

    online_score_id = 0
    tail = stream.read()
    if len(tail) >= 8:
        online_score_id = int(_ONLINE_SCORE_ID.parse(tail[:8]))

    header = ReplayHeader(
        mode=mode,
        version=int(header_raw["version"]),
        beatmap_md5=_string_value(header_raw["beatmap_md5"], what="beatmap hash"),
        player_name=_string_value(header_raw["player_name"], what="player name"),
        replay_md5=_string_value(header_raw["replay_md5"], what="replay hash"),
        count_300=int(header_raw["count_300"]),
        count_100=int(header_raw["count_100"]),
        count_50=int(header_raw["count_50"]),
        count_geki=int(header_raw["count_geki"]),
        count_katu=int(header_raw["count_katu"]),
        count_miss=int(header_raw["count_miss"]),
        score=int(header_raw["score"]),
        max_combo=int(header_raw["max_combo"]),
        perfect=bool(header_raw["perfect"]),
        mods=int(header_raw["mods"]),
        life_bar=_string_value(header_raw["life_bar"], what="life bar"),
        timestamp=int(header_raw["timestamp"]),
        online_score_id=online_score_id,
    )
    frames = parse_frames(_decompress_frames(blob))
    trace_log(
        "replay_loaded",
        player=header.player_name,
        version=header.version,
        mods=header.mods,
        frames=len(frames),
    )
    return Replay(header=header, frames=frames)


def load_replay_file(path: Path) -> Replay:
    path = Path(path)
    return load_replay(path.read_bytes())


def dump_replay(replay: Replay) -> bytes:
    header = replay.header
    blob = b""
    if replay.frames:
        blob = lzma.compress(format_frames(replay.frames).encode("ascii"), format=lzma.FORMAT_ALONE)

    header_raw = {
        "mode": int(header.mode) & 0xFF,
        "version": int(header.version),
        "beatmap_md5": _string_raw(header.beatmap_md5),
        "player_name": _string_raw(header.player_name),
        "replay_md5": _string_raw(header.replay_md5),
        "count_300": int(header.count_300),
        "count_100": int(header.count_100),
        "count_50": int(header.count_50),
        "count_geki": int(header.count_geki),
        "count_katu": int(header.count_katu),
        "count_miss": int(header.count_miss),
        "score": int(header.score),
        "max_combo": int(header.max_combo),
        "perfect": bool(header.perfect),
        "mods": int(header.mods) & 0xFFFF_FFFF,
        "life_bar": _string_raw(header.life_bar),
        "timestamp": int(header.timestamp),
        "replay_length": len(blob),
    }

    out = bytearray()
    try:
        out += _HEADER.build(header_raw)
        out += blob
        out += _ONLINE_SCORE_ID.build(int(header.online_score_id))
    except ConstructError as exc:
        raise ReplayFormatError(str(exc)) from exc
    return bytes(out)


def dump_replay_file(replay: Replay, path: Path) -> None:
    Path(path).write_bytes(dump_replay(replay))
