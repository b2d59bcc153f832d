"""Tests for the stopwatch (watchsim/stopwatch.py)."""

from __future__ import annotations

import pytest
from watchsim.cues import AudioCue
from watchsim.stopwatch import Stopwatch


@pytest.fixture
def stopwatch(arena, cues):
    return Stopwatch(arena, cues)


def test_elapsed_follows_clock_while_running(stopwatch, arena):
    stopwatch.start()
    arena.advance(1.5)

    assert stopwatch.running
    assert stopwatch.elapsed_ms == 1500
    assert stopwatch.state().elapsed_ms == 1500


def test_resume_continues_from_stopped_value(stopwatch, arena):
    stopwatch.start()
    arena.advance(1.5)
    stopwatch.record_lap()
    stopwatch.stop()
    arena.advance(2)

    assert stopwatch.elapsed_ms == 1500

    stopwatch.start()
    arena.advance(0.5)

    assert stopwatch.elapsed_ms == 2000
    assert [lap.elapsed_ms for lap in stopwatch.laps] == [1500]


def test_start_twice_is_noop(stopwatch, arena):
    stopwatch.start()
    arena.advance(1)
    stopwatch.start()
    arena.advance(1)

    assert stopwatch.elapsed_ms == 2000


def test_elapsed_is_monotonic_while_running(stopwatch, arena):
    stopwatch.start()
    samples = []
    for _ in range(20):
        arena.advance(0.037)
        samples.append(stopwatch.elapsed_ms)

    assert samples == sorted(samples)
    assert len(set(samples)) == len(samples)


def test_lap_ids_survive_deletes(stopwatch, arena, cue_backend):
    stopwatch.start()
    first = stopwatch.record_lap()
    arena.advance(1)
    stopwatch.record_lap()
    stopwatch.delete_lap(first.id)
    arena.advance(1)
    stopwatch.record_lap()

    assert [lap.id for lap in stopwatch.laps] == [2, 3]
    assert [lap.elapsed_ms for lap in stopwatch.laps] == [1000, 2000]
    assert cue_backend.plays(AudioCue.BEEP) == 3


def test_reset_restarts_lap_counter(stopwatch, arena):
    stopwatch.start()
    for _ in range(3):
        stopwatch.record_lap()
    arena.advance(4)

    stopwatch.reset()

    assert not stopwatch.running
    assert stopwatch.elapsed_ms == 0
    assert stopwatch.laps == ()

    stopwatch.start()
    assert stopwatch.record_lap().id == 1


def test_record_lap_requires_running(stopwatch):
    assert stopwatch.record_lap() is None
    assert stopwatch.laps == ()


def test_delete_missing_lap_is_noop(stopwatch):
    stopwatch.start()
    lap = stopwatch.record_lap()

    assert stopwatch.delete_lap(lap.id) is True
    assert stopwatch.delete_lap(lap.id) is False
    assert stopwatch.delete_lap(999) is False


def test_refresh_timer_only_while_running(stopwatch, arena):
    stopwatch.start()
    assert arena.is_active(Stopwatch.REFRESH_TIMER)

    stopwatch.stop()
    stopwatch.stop()

    assert not arena.is_active(Stopwatch.REFRESH_TIMER)


def test_state_serializes_laps(stopwatch, arena):
    stopwatch.start()
    arena.advance(61.25)
    stopwatch.record_lap()

    payload = stopwatch.state().to_dict()

    assert payload["elapsed"] == "01:01.25"
    assert payload["laps"] == [{"id": 1, "elapsed_ms": 61250, "label": "01:01.25"}]
