from __future__ import annotations

from pathlib import Path

from rejudge.judgements import HitResult
from rejudge.sim import analyze
from rejudge.trace_log import close_trace_log, init_trace_log, trace_log, trace_log_enabled, trace_log_path


def test_trace_log_is_a_noop_until_initialised(tmp_path: Path) -> None:
    assert not trace_log_enabled()
    trace_log("ignored", value=1)
    assert not (tmp_path / "logs").exists()


def test_trace_log_writes_sorted_key_value_lines(tmp_path: Path) -> None:
    path = init_trace_log(base_dir=tmp_path, command="Analyze", replay_path="a.osr", beatmap_path="b.osu")
    try:
        assert trace_log_path() == path
        assert path.parent == tmp_path / "logs"
        assert path.name.startswith("rejudge-analyze-pid")
        trace_log("custom", zeta=2, alpha="multi\nline")
    finally:
        close_trace_log()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "event=init" in lines[0]
    assert "beatmap=b.osu command=analyze" in lines[0]
    assert lines[1].endswith("event=custom alpha=multi\\nline zeta=2")
    assert not trace_log_enabled()


def test_simulation_traces_judgements(tmp_path: Path, sample_replay, sample_beatmap) -> None:  # noqa: ANN001
    path = init_trace_log(base_dir=tmp_path, command="analyze", replay_path="r", beatmap_path="b")
    try:
        analyze(sample_replay, sample_beatmap)
    finally:
        close_trace_log()

    text = path.read_text(encoding="utf-8")
    assert "event=targets_built" in text
    assert "event=sim_start" in text
    assert text.count("event=judgement") == 5
    assert "event=sim_end" in text
    assert "max_combo=5" in text


def test_values_are_formatted_as_single_tokens(tmp_path: Path) -> None:
    path = init_trace_log(base_dir=tmp_path, command="verify", replay_path="my replay.osr", beatmap_path="b.osu")
    try:
        trace_log("judgement", clock=1000.34, result=HitResult.LARGE_TICK_HIT, id=3)
    finally:
        close_trace_log()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert 'replay="my replay.osr"' in lines[0]
    assert lines[1].endswith("event=judgement clock=1000.3 id=3 result=large_tick_hit")


def test_reinit_closes_the_previous_file(tmp_path: Path) -> None:
    first = init_trace_log(base_dir=tmp_path / "a", command="analyze", replay_path="r", beatmap_path="b")
    trace_log("first_only")
    second = init_trace_log(base_dir=tmp_path / "b", command="analyze", replay_path="r", beatmap_path="b")
    try:
        trace_log("second_only")
    finally:
        close_trace_log()

    assert "event=first_only" in first.read_text(encoding="utf-8")
    second_text = second.read_text(encoding="utf-8")
    assert "event=second_only" in second_text
    assert "event=first_only" not in second_text
    assert trace_log_path() is None
