from __future__ import annotations

import dataclasses
from pathlib import Path

from typer.testing import CliRunner

from rejudge.cli import app
from rejudge.replay import dump_replay_file
from rejudge.sim import decode_result_json

runner = CliRunner()

SAMPLE_SUMMARY = [
    "Accuracy: 81.48%",
    "Max Combo: 5/5",
    "",
    "GREAT: 2",
    "OK: 1",
    "MEH: 0",
    "MISS: 0",
    "",
    "SLIDER TICK: 1/1",
    "SLIDER END: 1/1",
]


def test_analyze_prints_summary(sample_files: tuple[Path, Path]) -> None:
    replay_path, beatmap_path = sample_files
    result = runner.invoke(app, ["analyze", str(replay_path), str(beatmap_path)])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == SAMPLE_SUMMARY


def test_analyze_json_output(sample_files: tuple[Path, Path]) -> None:
    replay_path, beatmap_path = sample_files
    result = runner.invoke(app, ["analyze", str(replay_path), str(beatmap_path), "--json"])
    assert result.exit_code == 0, result.output

    document = decode_result_json(result.output)
    assert document.max_combo == 5
    assert document.max_possible_combo == 5
    assert document.statistics == {"great": 2, "ok": 1, "large_tick_hit": 1, "slider_tail_hit": 1}
    assert document.player == "tester"
    assert document.mods == "NM"
    assert document.beatmap == "Tester - Test Song [Normal]"


def test_analyze_writes_trace_log(sample_files: tuple[Path, Path], tmp_path: Path) -> None:
    replay_path, beatmap_path = sample_files
    trace_dir = tmp_path / "trace"
    result = runner.invoke(app, ["analyze", str(replay_path), str(beatmap_path), "--trace-log", str(trace_dir)])
    assert result.exit_code == 0, result.output
    assert "trace log:" in result.output

    logs = list((trace_dir / "logs").glob("rejudge-analyze-*.log"))
    assert len(logs) == 1
    assert "event=sim_end" in logs[0].read_text(encoding="utf-8")


def test_analyze_rejects_negative_tail_grace(sample_files: tuple[Path, Path]) -> None:
    replay_path, beatmap_path = sample_files
    result = runner.invoke(app, ["analyze", str(replay_path), str(beatmap_path), "--tail-grace-ms=-1"])
    assert result.exit_code == 1
    assert "tail_grace_ms must be non-negative" in result.output


def test_verify_ok(sample_files: tuple[Path, Path]) -> None:
    replay_path, beatmap_path = sample_files
    result = runner.invoke(app, ["verify", str(replay_path), str(beatmap_path)])
    assert result.exit_code == 0, result.output
    assert "ok: 5 fields match" in result.output


def test_verify_reports_mismatches(sample_files: tuple[Path, Path], sample_replay) -> None:  # noqa: ANN001
    replay_path, beatmap_path = sample_files
    header = dataclasses.replace(sample_replay.header, count_300=3, count_100=0)
    dump_replay_file(dataclasses.replace(sample_replay, header=header), replay_path)

    result = runner.invoke(app, ["verify", str(replay_path), str(beatmap_path)])
    assert result.exit_code == 1
    assert "verify failed: 2 of 5 fields differ" in result.output
    assert "count_300: replay=3 rejudged=2" in result.output
    assert "count_100: replay=0 rejudged=1" in result.output


def test_missing_replay_file(tmp_path: Path, sample_files: tuple[Path, Path]) -> None:
    _, beatmap_path = sample_files
    missing = tmp_path / "missing.osr"
    result = runner.invoke(app, ["analyze", str(missing), str(beatmap_path)])
    assert result.exit_code == 1
    assert "error: replay file not found" in result.output


def test_malformed_beatmap(sample_files: tuple[Path, Path]) -> None:
    replay_path, beatmap_path = sample_files
    beatmap_path.write_text("not a beatmap\n", encoding="utf-8")
    result = runner.invoke(app, ["analyze", str(replay_path), str(beatmap_path)])
    assert result.exit_code == 1
    assert "error: missing osu file format specifier" in result.output


def test_non_standard_replay_is_rejected(sample_files: tuple[Path, Path], sample_replay) -> None:  # noqa: ANN001
    replay_path, beatmap_path = sample_files
    header = dataclasses.replace(sample_replay.header, mode=1)
    dump_replay_file(dataclasses.replace(sample_replay, header=header), replay_path)

    result = runner.invoke(app, ["verify", str(replay_path), str(beatmap_path)])
    assert result.exit_code == 1
    assert "error: only osu! standard (mode 0) is supported, got mode 1" in result.output
