from __future__ import annotations

__all__ = [
    "curves",
    "geom",
    "math",
]
