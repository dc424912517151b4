from __future__ import annotations

import pytest

from rejudge.hit_windows import HitWindows
from rejudge.judgements import (
    HitResult,
    affects_accuracy,
    affects_combo,
    base_score_for_result,
    breaks_combo,
    hit_result_label,
    is_hit,
)


@pytest.mark.parametrize(
    ("od", "great", "ok", "meh"),
    [
        (0.0, 79.5, 139.5, 199.5),
        (5.0, 49.5, 99.5, 149.5),
        (7.5, 34.5, 79.5, 124.5),
        (10.0, 19.5, 59.5, 99.5),
    ],
)
def test_windows_from_overall_difficulty(od: float, great: float, ok: float, meh: float) -> None:
    windows = HitWindows.from_overall_difficulty(od)
    assert (windows.great, windows.ok, windows.meh) == (great, ok, meh)
    assert windows.miss_window == meh


def test_result_for_prefers_innermost_tier() -> None:
    windows = HitWindows.from_overall_difficulty(5.0)
    assert windows.result_for(0.0) == HitResult.GREAT
    assert windows.result_for(49.5) == HitResult.GREAT
    assert windows.result_for(-49.5) == HitResult.GREAT
    assert windows.result_for(50.0) == HitResult.OK
    assert windows.result_for(-99.5) == HitResult.OK
    assert windows.result_for(100.0) == HitResult.MEH
    assert windows.result_for(149.5) == HitResult.MEH
    assert windows.result_for(150.0) is None
    assert windows.can_be_hit(-149.5)
    assert not windows.can_be_hit(-150.0)


def test_head_leniency_upgrades_meh_only() -> None:
    windows = HitWindows.from_overall_difficulty(5.0)
    assert windows.judge_head(120.0) == HitResult.GREAT
    assert windows.judge_head(120.0, lenient=False) == HitResult.MEH
    assert windows.judge_head(80.0) == HitResult.OK
    assert windows.judge_head(200.0) is None


def test_window_for_rejects_tick_tiers() -> None:
    windows = HitWindows.from_overall_difficulty(5.0)
    assert windows.window_for(HitResult.MISS) == windows.meh
    with pytest.raises(ValueError):
        windows.window_for(HitResult.LARGE_TICK_HIT)


def test_tier_properties_come_from_the_table() -> None:
    assert affects_combo(HitResult.MISS) and not is_hit(HitResult.MISS)
    assert breaks_combo(HitResult.MISS)
    assert not breaks_combo(HitResult.LARGE_TICK_MISS)
    assert affects_combo(HitResult.LARGE_TICK_MISS)
    assert not breaks_combo(HitResult.IGNORE_MISS)
    assert not affects_combo(HitResult.IGNORE_MISS)
    assert not affects_accuracy(HitResult.IGNORE_HIT)
    assert is_hit(HitResult.IGNORE_HIT)
    assert is_hit(HitResult.SLIDER_TAIL_HIT) and affects_combo(HitResult.SLIDER_TAIL_HIT)


def test_score_weights() -> None:
    assert [base_score_for_result(result) for result in HitResult] == [0, 0, 50, 100, 300, 0, 30, 0, 0, 150]


def test_labels_are_unique_lowercase_names() -> None:
    labels = [hit_result_label(result) for result in HitResult]
    assert len(set(labels)) == len(labels)
    assert hit_result_label(HitResult.LARGE_TICK_HIT) == "large_tick_hit"
    assert all(label == result.name.lower() for label, result in zip(labels, HitResult))
