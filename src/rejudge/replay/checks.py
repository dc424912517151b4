from __future__ import annotations

import warnings

from .types import Replay


class BeatmapHashMismatchWarning(UserWarning):
    """The replay was recorded against a different revision of the beatmap."""


def warn_on_beatmap_mismatch(replay: Replay, beatmap_md5: str, *, action: str = "re-judgement") -> bool:
    """Warn if the replay's recorded beatmap hash does not match `beatmap_md5`.

    Returns True if a warning was emitted. Replays without a recorded hash are accepted silently.
    """

    recorded = str(replay.header.beatmap_md5).strip().lower()
    expected = str(beatmap_md5).strip().lower()
    if not recorded or not expected or recorded == expected:
        return False

    warnings.warn(
        f"Replay beatmap hash mismatch; {action} may diverge (replay={recorded!r}, beatmap={expected!r}).",
        category=BeatmapHashMismatchWarning,
        stacklevel=2,
    )
    return True
