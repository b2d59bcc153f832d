"""Tests for the notification center (watchsim/notifications.py)."""

from __future__ import annotations

import random
from unittest.mock import Mock

import pytest
from watchsim.cues import AudioCue
from watchsim.notifications import (
    HEALTH_TIPS,
    SYSTEM_MESSAGES,
    NotificationCenter,
    NotificationKind,
    NotificationMode,
)


@pytest.fixture
def power():
    return {"on": True}


@pytest.fixture
def make_center(clock, cues, power):
    def _create(**overrides) -> NotificationCenter:
        options = {
            "powered": lambda: power["on"],
            "rng": random.Random(7),
            "mode": NotificationMode.MANUAL,
        }
        options.update(overrides)
        return NotificationCenter(clock, cues, **options)

    return _create


@pytest.fixture
def center(make_center):
    return make_center()


def _forced_rng(roll: float) -> Mock:
    rng = Mock(spec=random.Random)
    rng.random.return_value = roll
    rng.choice.side_effect = lambda pool: pool[0]
    return rng


# Delivery Tests


def test_send_prepends_with_increasing_ids(center):
    first = center.send_notification("First")
    second = center.send_notification("Second")

    assert [item.id for item in center.notifications] == [second.id, first.id]
    assert second.id > first.id
    assert center.unread_count == 2


def test_blank_message_is_rejected(center):
    assert center.send_notification("   ") is None
    assert center.notifications == ()


def test_created_at_comes_from_logical_clock(center, clock, origin):
    clock.start()
    clock.advance(5)

    notification = center.send_notification("Hello")

    assert notification.created_at == clock.now()
    assert notification.created_at > origin


def test_second_notification_replaces_popup_and_timer(center, arena):
    center.send_notification("First")
    arena.advance(1)
    second = center.send_notification("Second")

    # The first popup's dismiss timer would have fired at 3s
    arena.advance(2.5)
    assert center.active_popup is second

    arena.advance(0.5)
    assert center.active_popup is None


def test_notify_sound_stops_after_window(center, arena, cues):
    center.send_notification("Ping")
    assert cues.is_playing(AudioCue.NOTIFY)

    arena.advance(2.9)
    assert cues.is_playing(AudioCue.NOTIFY)

    arena.advance(0.1)
    assert not cues.is_playing(AudioCue.NOTIFY)


def test_vibration_lasts_half_a_second(center, arena):
    center.send_notification("Buzz")
    assert center.vibrating

    arena.advance(0.5)
    assert not center.vibrating


def test_charge_notifications_do_not_pop_up(center, cue_backend):
    center.send_notification("Charger connected", NotificationKind.CHARGE)

    assert center.active_popup is None
    assert not center.vibrating
    assert cue_backend.plays(AudioCue.NOTIFY) == 0
    assert center.unread_count == 1


def test_no_popup_while_powered_off(center, power, cue_backend):
    power["on"] = False

    center.send_notification("Quiet")

    assert center.active_popup is None
    assert cue_backend.started == []
    assert len(center.notifications) == 1


# List Management Tests


def test_mark_all_read_keeps_popup(center):
    notification = center.send_notification("Read me")

    center.mark_all_read()

    assert center.unread_count == 0
    assert all(item.read for item in center.notifications)
    assert center.active_popup is notification


def test_delete_notification_is_idempotent(center):
    keep = center.send_notification("Keep")
    drop = center.send_notification("Drop")

    assert center.delete_notification(drop.id) is True
    assert center.delete_notification(drop.id) is False
    assert center.notifications == (keep,)
    assert center.active_popup is None


def test_clear_resets_sequence_but_not_ids(make_center):
    center = make_center(mode=NotificationMode.AUTO, powered=lambda: False)
    center.send_notification("One")
    second = center.send_notification("Two")
    assert second.sequence_count == 2

    center.clear_all_notifications()
    third = center.send_notification("Three")

    assert third.sequence_count == 1
    assert third.id == second.id + 1


def test_sequence_count_absent_in_manual_mode(center):
    assert center.send_notification("Manual").sequence_count is None


# Mode and Auto-generation Tests


def test_set_mode_same_value_is_noop(center, arena):
    assert center.set_mode("manual") is False
    assert not center.auto_generation_active
    assert center.notifications == ()


def test_switch_to_auto_sends_welcome_and_starts_timer(center):
    changed = Mock()
    center._on_mode_changed = changed

    assert center.set_mode(NotificationMode.AUTO) is True

    assert center.auto_generation_active
    assert len(center.notifications) == 1
    assert center.notifications[0].kind is NotificationKind.HEALTH
    assert center.notifications[0].message in HEALTH_TIPS
    changed.assert_called_once_with(NotificationMode.AUTO)


def test_switch_to_manual_cancels_timer(make_center, arena):
    center = make_center(mode=NotificationMode.AUTO)
    center.start_auto_generation(welcome=False)

    center.set_mode("manual")
    arena.advance(400)

    assert not center.auto_generation_active
    assert center.notifications == ()


def test_auto_tick_with_system_message(make_center, arena):
    center = make_center(mode=NotificationMode.AUTO, rng=_forced_rng(0.1))
    center.start_auto_generation(welcome=False)

    arena.advance(180)

    kinds = [item.kind for item in center.notifications]
    assert kinds == [NotificationKind.HEALTH, NotificationKind.SYSTEM]
    assert center.notifications[1].message == SYSTEM_MESSAGES[0]


def test_auto_tick_without_system_message(make_center, arena):
    center = make_center(mode=NotificationMode.AUTO, rng=_forced_rng(0.9))
    center.start_auto_generation(welcome=False)

    arena.advance(179)
    assert center.notifications == ()

    arena.advance(1)
    assert [item.kind for item in center.notifications] == [NotificationKind.HEALTH]


def test_auto_generation_requires_power(make_center, power):
    power["on"] = False
    center = make_center(mode=NotificationMode.AUTO)

    assert center.start_auto_generation() is False
    assert not center.auto_generation_active


def test_suspend_cancels_owned_timers(make_center, arena):
    center = make_center(mode=NotificationMode.AUTO)
    center.start_auto_generation()

    center.suspend()

    assert center.active_popup is None
    assert not center.vibrating
    for name in (center.AUTO_TIMER, center.POPUP_TIMER, center.SOUND_TIMER, center.VIBRATION_TIMER):
        assert not arena.is_active(name)


def test_parse_mode_rejects_unknown_value():
    with pytest.raises(ValueError):
        NotificationMode.parse("sometimes")
