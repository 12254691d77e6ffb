"""Tests for the playback state machine driven by a manual clock."""

from __future__ import annotations

import pytest

from conftest import FakeTimer, text_item
from signage.models.display import PlaybackMode
from signage.services.playback import PlaybackEngine


def _engine(timer: FakeTimer, durations: list[int]) -> PlaybackEngine:
    engine = PlaybackEngine(timer)
    engine.load([text_item(f"c{i}", d) for i, d in enumerate(durations)])
    return engine


def test_auto_advance_follows_item_durations_and_wraps(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3, 7])
    assert engine.current_index == 0
    assert engine.mode is PlaybackMode.PLAYING

    fake_timer.advance(5)
    assert engine.current_index == 1
    fake_timer.advance(3)
    assert engine.current_index == 2
    fake_timer.advance(7)
    assert engine.current_index == 0


def test_does_not_advance_before_deadline(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3])
    fake_timer.advance(4.9)
    assert engine.current_index == 0
    assert engine.remaining_seconds() == pytest.approx(0.1)


def test_pause_then_next_keeps_paused(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3, 7])
    fake_timer.advance(5)
    assert engine.current_index == 1

    engine.toggle()
    assert engine.mode is PlaybackMode.PAUSED
    assert not engine.has_pending_deadline

    engine.next()
    assert engine.current_index == 2
    assert engine.mode is PlaybackMode.PAUSED

    fake_timer.advance(60)
    assert engine.current_index == 2


def test_resume_restarts_full_duration(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3])
    fake_timer.advance(4)
    engine.toggle()
    fake_timer.advance(100)
    engine.toggle()
    assert engine.mode is PlaybackMode.PLAYING

    fake_timer.advance(4)
    assert engine.current_index == 0
    fake_timer.advance(1)
    assert engine.current_index == 1


def test_manual_navigation_wraps_and_rearms(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3, 7])
    engine.previous()
    assert engine.current_index == 2

    fake_timer.advance(4)
    engine.next()
    assert engine.current_index == 0
    # Fresh 5s deadline for item 0, not the 3s left from the old one.
    fake_timer.advance(4)
    assert engine.current_index == 0
    fake_timer.advance(1)
    assert engine.current_index == 1


def test_jump_to_selects_and_rearms(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3, 7])
    fake_timer.advance(2)
    engine.jump_to(2)
    assert engine.current_index == 2
    fake_timer.advance(6)
    assert engine.current_index == 2
    fake_timer.advance(1)
    assert engine.current_index == 0


def test_jump_to_out_of_range(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3])
    with pytest.raises(IndexError):
        engine.jump_to(2)
    with pytest.raises(IndexError):
        engine.jump_to(-1)


def test_only_one_deadline_outstanding(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3, 7])
    engine.next()
    engine.next()
    engine.previous()
    engine.jump_to(0)
    engine.toggle()
    engine.toggle()
    engine.load([text_item("x", 2), text_item("y", 2)])
    assert len(fake_timer.pending) == 1


def test_single_item_sequence_repeats(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [4])
    changes: list[int | None] = []
    engine.add_listener(lambda e: changes.append(e.current_index))

    fake_timer.advance(12)
    assert engine.current_index == 0
    assert changes == [0, 0, 0]
    assert len(fake_timer.pending) == 1


def test_empty_sequence_is_idle(fake_timer: FakeTimer) -> None:
    engine = PlaybackEngine(fake_timer)
    engine.load([])
    assert engine.mode is PlaybackMode.IDLE
    assert engine.current_item is None
    assert engine.current_index is None

    engine.next()
    engine.previous()
    engine.toggle()
    assert engine.mode is PlaybackMode.IDLE
    assert fake_timer.pending == []


def test_load_resets_index(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3, 7])
    fake_timer.advance(8)
    assert engine.current_index == 2
    engine.load([text_item("a", 2), text_item("b", 2)])
    assert engine.current_index == 0
    assert engine.current_item is not None and engine.current_item.id == "a"


def test_load_while_paused_starts_playing(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3])
    engine.toggle()
    engine.load([text_item("a", 2)])
    assert engine.mode is PlaybackMode.PLAYING


def test_dispose_cancels_deadline(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3])
    engine.dispose()
    assert fake_timer.pending == []
    fake_timer.advance(20)
    assert engine.current_index == 0
    with pytest.raises(RuntimeError):
        engine.load([text_item("a", 1)])


def test_navigation_after_dispose_arms_nothing(fake_timer: FakeTimer) -> None:
    engine = _engine(fake_timer, [5, 3, 4])
    engine.pause()
    engine.dispose()

    engine.next()
    engine.previous()
    engine.jump_to(2)
    engine.resume()

    assert fake_timer.pending == []
    assert not engine.has_pending_deadline


def test_listener_failure_does_not_stop_playback(fake_timer: FakeTimer) -> None:
    engine = PlaybackEngine(fake_timer)

    def broken(_engine: PlaybackEngine) -> None:
        raise RuntimeError("boom")

    engine.add_listener(broken)
    engine.load([text_item("a", 1), text_item("b", 1)])
    fake_timer.advance(1)
    assert engine.current_index == 1
