from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..beatmap import Beatmap, load_beatmap_file
from ..config import SimulationConfig
from ..mods import Mod, format_mods, mods_from_legacy, warn_on_unsupported_mods
from ..replay import Replay, load_replay_file, warn_on_beatmap_mismatch
from ..targets import TargetModel, build_target_model
from .engine import simulate
from .input_track import InputTrack
from .result import ResultDocument, SimulationResult, result_document


@dataclass(frozen=True, slots=True)
class Analysis:
    replay: Replay
    beatmap: Beatmap
    mods: frozenset[Mod]
    model: TargetModel
    result: SimulationResult

    def document(self) -> ResultDocument:
        return result_document(
            self.result,
            beatmap=self.beatmap.display_name,
            player=self.replay.header.player_name,
            mods=format_mods(self.mods),
        )


def analyze(replay: Replay, beatmap: Beatmap, *, config: SimulationConfig | None = None) -> Analysis:
    mods = mods_from_legacy(replay.header.mods)
    warn_on_unsupported_mods(mods)
    warn_on_beatmap_mismatch(replay, beatmap.md5)
    model = build_target_model(beatmap, mods)
    result = simulate(model, InputTrack.from_frames(replay.frames), config=config)
    return Analysis(replay=replay, beatmap=beatmap, mods=mods, model=model, result=result)


def analyze_files(
    replay_path: Path,
    beatmap_path: Path,
    *,
    config: SimulationConfig | None = None,
) -> Analysis:
    beatmap = load_beatmap_file(Path(beatmap_path))
    replay = load_replay_file(Path(replay_path))
    return analyze(replay, beatmap, config=config)
