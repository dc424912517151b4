from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_configure(config: pytest.Config) -> None:
    # Ensure the local `src/` tree wins over any other editable install that may exist
    # (e.g. a different git worktree pointing at the same project).
    src_dir = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_dir)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


SAMPLE_BEATMAP = """osu file format v14

[General]
AudioFilename: audio.mp3
Mode: 0
StackLeniency: 0.7

[Metadata]
Title:Test Song
Artist:Tester
Version:Normal

[Difficulty]
HPDrainRate:5
CircleSize:4
OverallDifficulty:5
ApproachRate:5
SliderMultiplier:1
SliderTickRate:1

[TimingPoints]
0,400,4,2,0,100,1,0

[HitObjects]
100,100,1000,5,0,0:0:0:0:
300,100,2000,1,0,0:0:0:0:
100,300,3000,2,0,L|300:300,1,200
"""

# (time, x, y, held buttons) hitting circle 1 on time, circle 2 at +80ms and following the slider.
SAMPLE_FRAMES: tuple[tuple[float, float, float, str], ...] = (
    (0.0, 100.0, 100.0, ""),
    (1000.0, 100.0, 100.0, "L"),
    (1050.0, 100.0, 100.0, ""),
    (2000.0, 300.0, 100.0, ""),
    (2080.0, 300.0, 100.0, "L"),
    (2130.0, 300.0, 100.0, ""),
    (2950.0, 100.0, 300.0, ""),
    (3000.0, 100.0, 300.0, "L"),
    (3800.0, 300.0, 300.0, "L"),
    (3900.0, 300.0, 300.0, ""),
)


def make_frames(rows):  # noqa: ANN001, ANN201
    from playfield.geom import Vec2
    from rejudge.replay import Button, ReplayFrame

    names = {"L": Button.LEFT, "R": Button.RIGHT}
    return tuple(
        ReplayFrame(time=float(t), position=Vec2(float(x), float(y)), buttons=frozenset(names[ch] for ch in held))
        for t, x, y, held in rows
    )


@pytest.fixture
def sample_beatmap_text() -> str:
    return SAMPLE_BEATMAP


@pytest.fixture
def sample_beatmap(sample_beatmap_text: str):  # noqa: ANN201
    from rejudge.beatmap import load_beatmap

    return load_beatmap(sample_beatmap_text.encode("utf-8"))


@pytest.fixture
def sample_frames():  # noqa: ANN201
    return make_frames(SAMPLE_FRAMES)


@pytest.fixture
def sample_replay(sample_frames):  # noqa: ANN001, ANN201
    from rejudge.replay import Replay, ReplayHeader

    header = ReplayHeader(
        mode=0,
        version=20240101,
        beatmap_md5="",
        player_name="tester",
        replay_md5="",
        count_300=2,
        count_100=1,
        count_50=0,
        count_miss=0,
        score=12345,
        max_combo=5,
        perfect=True,
        mods=0,
    )
    return Replay(header=header, frames=sample_frames)


@pytest.fixture
def sample_files(tmp_path: Path, sample_beatmap_text: str, sample_replay) -> tuple[Path, Path]:  # noqa: ANN001
    from rejudge.replay import dump_replay_file

    beatmap_path = tmp_path / "sample.osu"
    beatmap_path.write_text(sample_beatmap_text, encoding="utf-8")
    replay_path = tmp_path / "sample.osr"
    dump_replay_file(sample_replay, replay_path)
    return replay_path, beatmap_path


@pytest.fixture
def frames_from_rows():  # noqa: ANN201
    return make_frames
