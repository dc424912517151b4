from __future__ import annotations

from playfield.geom import Vec2
from rejudge.replay import NO_BUTTONS, Button
from rejudge.sim import InputTrack

ROWS = (
    (0, 0, 0, ""),
    (100, 100, 0, "L"),
    (200, 100, 100, ""),
)


def test_empty_track_reports_origin_and_no_buttons() -> None:
    track = InputTrack()
    assert track.is_empty
    assert len(track) == 0
    assert track.position_at(500.0) == Vec2()
    assert track.held_buttons_at(500.0) == NO_BUTTONS


def test_queries_before_first_frame_use_first_position(frames_from_rows) -> None:  # noqa: ANN001
    track = InputTrack.from_frames(frames_from_rows(ROWS))
    assert track.position_at(-50.0) == Vec2(0.0, 0.0)
    assert track.held_buttons_at(-50.0) == NO_BUTTONS


def test_position_interpolates_and_buttons_step(frames_from_rows) -> None:  # noqa: ANN001
    track = InputTrack.from_frames(frames_from_rows(ROWS))
    assert track.position_at(50.0) == Vec2(50.0, 0.0)
    assert track.held_buttons_at(50.0) == NO_BUTTONS
    assert track.position_at(100.0) == Vec2(100.0, 0.0)
    assert track.held_buttons_at(100.0) == frozenset({Button.LEFT})
    assert track.position_at(150.0) == Vec2(100.0, 50.0)
    assert track.held_buttons_at(150.0) == frozenset({Button.LEFT})
    assert track.position_at(500.0) == Vec2(100.0, 100.0)
    assert track.held_buttons_at(500.0) == NO_BUTTONS


def test_from_frames_sorts_by_time(frames_from_rows) -> None:  # noqa: ANN001
    track = InputTrack.from_frames(reversed(frames_from_rows(ROWS)))
    assert [frame.time for frame in track.frames] == [0.0, 100.0, 200.0]


def test_cursor_moves_forward_through_frames(frames_from_rows) -> None:  # noqa: ANN001
    cursor = InputTrack.from_frames(frames_from_rows(ROWS)).cursor()
    seen = [cursor.seek(float(t)) for t in range(-10, 260, 10)]
    assert seen[0] == (Vec2(0.0, 0.0), NO_BUTTONS)
    assert seen[-1] == (Vec2(100.0, 100.0), NO_BUTTONS)
    assert cursor.index == 2


def test_cursor_does_not_rewind_mid_frame(frames_from_rows) -> None:  # noqa: ANN001
    cursor = InputTrack.from_frames(frames_from_rows(ROWS)).cursor()
    cursor.seek(150.0)
    assert cursor.index == 1

    position, buttons = cursor.seek(99.0)
    assert cursor.index == 1
    assert cursor.current_time == 100.0
    assert position == Vec2(100.0, 0.0)
    assert buttons == frozenset({Button.LEFT})


def test_cursor_rewinds_from_frame_start(frames_from_rows) -> None:  # noqa: ANN001
    cursor = InputTrack.from_frames(frames_from_rows(ROWS)).cursor()
    cursor.seek(100.0)
    assert cursor.index == 1

    position, buttons = cursor.seek(99.0)
    assert cursor.index == 0
    assert position == Vec2(99.0, 0.0)
    assert buttons == NO_BUTTONS
