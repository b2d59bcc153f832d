"""Tests for the logical clock and timer arena (watchsim/clock.py)."""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import Mock

import pytest
from watchsim.clock import (
    ORDER_ALARM,
    ORDER_BATTERY,
    PRIORITY_SCHEDULE,
    PRIORITY_TICK,
    PRIORITY_UI,
    ClockTicker,
    TimerArena,
)

# Timer Arena Tests


def test_call_later_fires_when_due(arena):
    callback = Mock()
    arena.call_later("popup", 1.5, callback)

    arena.advance(1.4)
    callback.assert_not_called()

    arena.advance(0.1)
    callback.assert_called_once()
    assert arena.now_ms == 1500
    assert not arena.is_active("popup")


def test_registering_same_name_replaces_timer(arena):
    first = Mock()
    second = Mock()
    handle = arena.call_later("popup", 3, first)
    arena.advance(1)
    arena.call_later("popup", 3, second)

    arena.advance(5)

    first.assert_not_called()
    second.assert_called_once()
    assert handle.disposed


def test_dispose_twice_is_noop(arena):
    callback = Mock()
    handle = arena.call_later("sound", 1, callback)

    handle.dispose()
    handle.dispose()
    arena.advance(2)

    callback.assert_not_called()
    assert arena.cancel("sound") is False


def test_same_instant_fires_by_priority(arena):
    order: list[str] = []
    arena.call_later("ui", 1, lambda: order.append("ui"), priority=PRIORITY_UI)
    arena.call_later("schedule", 1, lambda: order.append("schedule"), priority=PRIORITY_SCHEDULE)
    arena.call_later("tick", 1, lambda: order.append("tick"), priority=PRIORITY_TICK)

    arena.advance(1)

    assert order == ["tick", "schedule", "ui"]


def test_call_every_repeats(arena):
    callback = Mock()
    arena.call_every("refresh", 1, callback)

    arena.advance(3.5)

    assert callback.call_count == 3
    assert arena.get("refresh").remaining_ms() == 500


def test_call_every_rejects_zero_interval(arena):
    with pytest.raises(ValueError):
        arena.call_every("bad", 0, Mock())


def test_timer_registered_inside_callback_fires_in_same_advance(arena):
    nested = Mock()
    arena.call_later("outer", 1, lambda: arena.call_later("inner", 0.5, nested))

    arena.advance(2)

    nested.assert_called_once()
    assert arena.now_ms == 2000


def test_advance_to_rejects_going_backwards(arena):
    arena.advance(1)
    with pytest.raises(ValueError):
        arena.advance_to(500)


def test_callback_failure_is_logged_and_swallowed(mock_logger):
    arena = TimerArena(logger=mock_logger)
    survivor = Mock()
    arena.call_later("broken", 1, Mock(side_effect=RuntimeError("boom")))
    arena.call_later("survivor", 1, survivor)

    arena.advance(1)

    survivor.assert_called_once()
    mock_logger.error.assert_called_once()
    assert "broken" in str(mock_logger.error.call_args)


def test_fired_counts_every_callback_run(mock_logger):
    arena = TimerArena(logger=mock_logger)
    arena.call_every("refresh", 0.25, Mock())
    arena.call_later("broken", 0.5, Mock(side_effect=RuntimeError("boom")))

    arena.advance(0.1)
    assert arena.fired == 0

    arena.advance(0.4)
    assert arena.fired == 3


def test_dispose_all_clears_every_timer(arena):
    arena.call_later("a", 1, Mock())
    arena.call_every("b", 1, Mock())

    arena.dispose_all()

    assert arena.active_names() == []


# Clock Ticker Tests


def test_ticker_now_tracks_logical_time(clock, origin):
    clock.start()
    clock.advance(2.5)

    assert clock.now() == origin + timedelta(milliseconds=2500)
    assert clock.tick_count == 2


def test_ticker_calls_listeners_in_order(clock, origin):
    seen: list[tuple[str, datetime]] = []
    clock.subscribe("default", lambda now: seen.append(("default", now)))
    clock.subscribe("alarm", lambda now: seen.append(("alarm", now)), order=ORDER_ALARM)
    clock.subscribe("battery", lambda now: seen.append(("battery", now)), order=ORDER_BATTERY)
    clock.start()

    clock.advance(1)

    assert [name for name, _ in seen] == ["battery", "alarm", "default"]
    assert all(now == origin + timedelta(seconds=1) for _, now in seen)


def test_ticker_listener_failure_does_not_stop_others(arena, origin, mock_logger):
    clock = ClockTicker(arena, origin=origin, logger=mock_logger)
    after = Mock()
    clock.subscribe("broken", Mock(side_effect=ValueError("bad")), order=ORDER_BATTERY)
    clock.subscribe("after", after)
    clock.start()

    clock.advance(1)

    after.assert_called_once()
    mock_logger.error.assert_called_once()


def test_ticker_stop_and_unsubscribe(clock):
    listener = Mock()
    clock.subscribe("listener", listener)
    clock.start()
    clock.advance(1)

    assert clock.unsubscribe("listener") is True
    assert clock.unsubscribe("listener") is False
    clock.advance(1)
    clock.stop()
    clock.advance(5)

    listener.assert_called_once()
    assert clock.tick_count == 2
    assert not clock.running


def test_ticker_localizes_naive_origin(arena):
    clock = ClockTicker(arena, origin=datetime(2025, 1, 15, 8, 0, 0))
    assert clock.now().tzinfo is not None
