"""Per-run judgement trace: one `key=value` line per event, keys sorted.

Off unless `init_trace_log` was called; `trace_log` is then a cheap no-op. Events written by a run:

- `init`: command, replay and beatmap paths, pid.
- `replay_loaded` / `targets_built`: loader facts (player, mods, frame count; target counts, radius, windows).
- `sim_start` / `sim_end`: clock range, step, target and frame counts; steps taken, max combo, accuracy.
- `judgement`: one per target or sub-event id, with `id`, `kind`, `result`, `clock`, running `combo`
  and `offset` for timed presses.
- `tracking_lost`: hold id and the clock at which its tracking dropped.
"""

from __future__ import annotations

import datetime as dt
from enum import Enum
import os
from pathlib import Path
from threading import Lock
from typing import TextIO


_TRACE_LOCK = Lock()
_TRACE_PATH: Path | None = None
_TRACE_HANDLE: TextIO | None = None


def _format_value(value: object) -> str:
    if isinstance(value, Enum):
        text = str(value.name).lower()
    elif isinstance(value, float):
        text = f"{value:.1f}"
    else:
        text = str(value).replace("\n", "\\n")
    # Paths with spaces stay one token.
    if any(ch.isspace() for ch in text):
        text = '"' + text.replace('"', '\\"') + '"'
    return text


def _format_line(event: str, fields: dict[str, object]) -> str:
    timestamp = dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds")
    parts = [timestamp, f"event={str(event).strip()}"]
    parts.extend(f"{key}={_format_value(fields[key])}" for key in sorted(fields))
    return " ".join(parts) + "\n"


def trace_log_path() -> Path | None:
    with _TRACE_LOCK:
        return _TRACE_PATH


def trace_log_enabled() -> bool:
    with _TRACE_LOCK:
        return _TRACE_HANDLE is not None


def init_trace_log(
    *,
    base_dir: Path,
    command: str,
    replay_path: Path | str,
    beatmap_path: Path | str,
) -> Path:
    """Start a fresh trace file under `base_dir/logs`, closing any previous one."""

    command_name = str(command).strip().lower() or "unknown"
    timestamp = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%S.%fZ")
    path = Path(base_dir) / "logs" / f"rejudge-{command_name}-pid{os.getpid()}-{timestamp}.log"
    path.parent.mkdir(parents=True, exist_ok=True)

    close_trace_log()
    with _TRACE_LOCK:
        global _TRACE_PATH, _TRACE_HANDLE
        _TRACE_HANDLE = path.open("w", encoding="utf-8")
        _TRACE_PATH = path

    trace_log(
        "init",
        command=command_name,
        replay=str(replay_path),
        beatmap=str(beatmap_path),
        pid=int(os.getpid()),
    )
    return path


def trace_log(event: str, **fields: object) -> None:
    with _TRACE_LOCK:
        handle = _TRACE_HANDLE
        if handle is None:
            return
        handle.write(_format_line(event, fields))


def close_trace_log() -> None:
    with _TRACE_LOCK:
        global _TRACE_PATH, _TRACE_HANDLE
        handle = _TRACE_HANDLE
        _TRACE_HANDLE = None
        _TRACE_PATH = None
    if handle is not None:
        handle.flush()
        handle.close()


__all__ = [
    "close_trace_log",
    "init_trace_log",
    "trace_log",
    "trace_log_enabled",
    "trace_log_path",
]
