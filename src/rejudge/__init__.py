from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("replay-rejudge")
except PackageNotFoundError:  # pragma: no cover
    # Allow running from source (e.g. `PYTHONPATH=src`) without installed package metadata.
    __version__ = "0.0.0+dev"

__all__ = [
    "beatmap",
    "config",
    "errors",
    "hit_windows",
    "judgements",
    "mods",
    "replay",
    "sim",
    "targets",
    "trace_log",
    "verify",
]
