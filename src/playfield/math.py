from __future__ import annotations

# Playfield extents in osu! pixels.
PLAYFIELD_HEIGHT = 384.0


def clamp(value: float, low: float, high: float) -> float:
    if value < low:
        return low
    if value > high:
        return high
    return value


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def difficulty_range(difficulty: float, low: float, mid: float, high: float) -> float:
    """Map a 0..10 difficulty value onto a `(0, 5, 10) -> (low, mid, high)` range."""

    difficulty = float(difficulty)
    if difficulty > 5.0:
        return mid + (high - mid) * (difficulty - 5.0) / 5.0
    if difficulty < 5.0:
        return mid - (mid - low) * (5.0 - difficulty) / 5.0
    return mid
