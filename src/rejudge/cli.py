from __future__ import annotations

import dataclasses
from pathlib import Path

import typer

from .config import DEFAULT_SIMULATION_CONFIG, SimulationConfig, default_runtime_dir
from .errors import MalformedInputError, UnsupportedRulesetError
from .judgements import HitResult
from .sim import Analysis, SimulationResult, analyze_files, encode_result_json
from .trace_log import close_trace_log, init_trace_log
from .verify import compare_with_header

app = typer.Typer(add_completion=False)


def _check_inputs(replay_file: Path, beatmap_file: Path) -> None:
    if not Path(replay_file).is_file():
        typer.echo(f"error: replay file not found: {replay_file}", err=True)
        raise typer.Exit(code=1)
    if not Path(beatmap_file).is_file():
        typer.echo(f"error: beatmap file not found: {beatmap_file}", err=True)
        raise typer.Exit(code=1)


def _simulation_config(*, leniency: bool, tail_grace_ms: float | None) -> SimulationConfig:
    config = DEFAULT_SIMULATION_CONFIG
    if not leniency:
        config = dataclasses.replace(config, head_leniency=False)
    if tail_grace_ms is not None:
        try:
            config = dataclasses.replace(config, tail_grace_ms=float(tail_grace_ms))
        except ValueError as exc:
            typer.echo(f"error: {exc}", err=True)
            raise typer.Exit(code=1) from exc
    return config


def _run_analysis(
    command: str,
    replay_file: Path,
    beatmap_file: Path,
    *,
    config: SimulationConfig,
    trace_dir: Path | None,
) -> Analysis:
    _check_inputs(replay_file, beatmap_file)
    if trace_dir is not None:
        path = init_trace_log(
            base_dir=Path(trace_dir),
            command=command,
            replay_path=replay_file,
            beatmap_path=beatmap_file,
        )
        typer.echo(f"trace log: {path}", err=True)
    try:
        return analyze_files(replay_file, beatmap_file, config=config)
    except (MalformedInputError, UnsupportedRulesetError) as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        if trace_dir is not None:
            close_trace_log()


def format_summary(result: SimulationResult) -> list[str]:
    lines = [
        f"Accuracy: {result.accuracy * 100.0:.2f}%",
        f"Max Combo: {result.max_combo}/{result.max_possible_combo}",
        "",
        f"GREAT: {result.count(HitResult.GREAT)}",
        f"OK: {result.count(HitResult.OK)}",
        f"MEH: {result.count(HitResult.MEH)}",
        f"MISS: {result.count(HitResult.MISS)}",
    ]
    tick_max = result.maximum(HitResult.LARGE_TICK_HIT)
    tail_max = result.maximum(HitResult.SLIDER_TAIL_HIT)
    if tick_max or tail_max:
        lines.append("")
    if tick_max:
        lines.append(f"SLIDER TICK: {result.count(HitResult.LARGE_TICK_HIT)}/{tick_max}")
    if tail_max:
        lines.append(f"SLIDER END: {result.count(HitResult.SLIDER_TAIL_HIT)}/{tail_max}")
    return lines


def _trace_dir(trace: bool, trace_log_dir: Path | None) -> Path | None:
    if trace_log_dir is not None:
        return trace_log_dir
    if trace:
        return default_runtime_dir()
    return None


@app.command("analyze")
def cmd_analyze(
    replay_file: Path = typer.Argument(..., help="replay file path (.osr)"),
    beatmap_file: Path = typer.Argument(..., help="beatmap file path (.osu)"),
    json_output: bool = typer.Option(False, "--json", help="print the result as JSON"),
    leniency: bool = typer.Option(
        True,
        "--leniency/--no-leniency",
        help="count MEH on circles and slider heads as GREAT (default: on)",
    ),
    tail_grace_ms: float | None = typer.Option(
        None,
        "--tail-grace-ms",
        help=f"slider end grace after losing tracking (default: {DEFAULT_SIMULATION_CONFIG.tail_grace_ms:g}ms)",
    ),
    trace: bool = typer.Option(
        False,
        "--trace",
        help="write a judgement trace log under the runtime dir (override with REJUDGE_RUNTIME_DIR)",
    ),
    trace_log_dir: Path | None = typer.Option(None, "--trace-log", help="write a judgement trace log under DIR/logs"),
) -> None:
    """Re-judge a replay against its beatmap and print the statistics."""
    config = _simulation_config(leniency=leniency, tail_grace_ms=tail_grace_ms)
    analysis = _run_analysis(
        "analyze",
        replay_file,
        beatmap_file,
        config=config,
        trace_dir=_trace_dir(trace, trace_log_dir),
    )
    if json_output:
        typer.echo(encode_result_json(analysis.document()).decode("utf-8"))
        return
    for line in format_summary(analysis.result):
        typer.echo(line)


@app.command("verify")
def cmd_verify(
    replay_file: Path = typer.Argument(..., help="replay file path (.osr)"),
    beatmap_file: Path = typer.Argument(..., help="beatmap file path (.osu)"),
    leniency: bool = typer.Option(
        True,
        "--leniency/--no-leniency",
        help="count MEH on circles and slider heads as GREAT (default: on)",
    ),
    trace_log_dir: Path | None = typer.Option(None, "--trace-log", help="write a judgement trace log under DIR/logs"),
) -> None:
    """Re-judge a replay and compare the counts with the ones recorded in its header."""
    config = _simulation_config(leniency=leniency, tail_grace_ms=None)
    analysis = _run_analysis("verify", replay_file, beatmap_file, config=config, trace_dir=trace_log_dir)
    diff = compare_with_header(analysis.replay.header, analysis.result)
    if not diff.ok:
        typer.echo(f"verify failed: {len(diff.mismatches)} of {diff.checked_count} fields differ", err=True)
        for mismatch in diff.mismatches:
            typer.echo(f"  {mismatch.describe()}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"ok: {diff.checked_count} fields match")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="rejudge", args=argv)


if __name__ == "__main__":
    main()
