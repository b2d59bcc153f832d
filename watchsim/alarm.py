"""Daily recurring alarm driven by the clock tick."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .clock import ORDER_ALARM, PRIORITY_UI, ClockTicker
from .cues import AudioCue, AudioCueManager
from .datetime_utils import next_occurrence, parse_time_string, validate_time_of_day
from .notifications import NotificationCenter, NotificationKind

LOGGER = logging.getLogger(__name__)

ALARM_MESSAGE = "Alarm! Time to wake up!"


@dataclass(frozen=True, slots=True)
class Alarm:
    hour: int
    minute: int
    armed: bool = True
    next_trigger: datetime | None = None

    @property
    def time_label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time_label,
            "hour": self.hour,
            "minute": self.minute,
            "armed": self.armed,
            "next_trigger": self.next_trigger.isoformat() if self.next_trigger else None,
        }


class AlarmScheduler:
    """Holds zero or one alarm and checks it on every tick.

    Firing never disarms the alarm: the next trigger rolls to the following
    day at the same time of day. While checks are suspended (device off) the
    alarm keeps its arming, so a missed trigger fires on the first tick after
    checks resume.
    """

    LISTENER_NAME = "alarm"
    RING_TIMER = "alarm.ring"

    def __init__(
        self,
        clock: ClockTicker,
        cues: AudioCueManager,
        notifications: NotificationCenter,
        *,
        vibration_seconds: float = 1.0,
        ring_seconds: float = 60.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._clock = clock
        self._cues = cues
        self._notifications = notifications
        self._vibration_seconds = vibration_seconds
        self._ring_seconds = ring_seconds
        self._logger = logger or LOGGER
        self._alarm: Alarm | None = None

    @property
    def alarm(self) -> Alarm | None:
        return self._alarm

    @property
    def armed(self) -> bool:
        return bool(self._alarm and self._alarm.armed)

    @property
    def next_trigger(self) -> datetime | None:
        return self._alarm.next_trigger if self._alarm else None

    @property
    def checking(self) -> bool:
        return self._clock.is_subscribed(self.LISTENER_NAME)

    @property
    def ringing(self) -> bool:
        return self._cues.is_playing(AudioCue.ALARM)

    def set_alarm(self, hour: int, minute: int) -> Alarm:
        """Arm the alarm for hour:minute; raises InvalidTime before touching state."""
        hour, minute = validate_time_of_day(hour, minute)
        trigger = next_occurrence(hour, minute, after=self._clock.now())
        self._alarm = Alarm(hour=hour, minute=minute, armed=True, next_trigger=trigger)
        self._logger.info("[alarm] Armed for %s (next %s)", self._alarm.time_label, trigger.isoformat())
        return self._alarm

    def set_alarm_from_string(self, value: str) -> Alarm:
        hour, minute = parse_time_string(value)
        return self.set_alarm(hour, minute)

    def cancel_alarm(self) -> None:
        if self._alarm is not None:
            self._alarm = Alarm(hour=self._alarm.hour, minute=self._alarm.minute, armed=False)
            self._logger.info("[alarm] Cancelled")
        self._stop_ringing()

    def dismiss_alarm(self) -> bool:
        """Silence a ringing alarm without disarming it."""
        ringing = self.ringing
        self._stop_ringing()
        return ringing

    def suspend_checks(self) -> None:
        self._clock.unsubscribe(self.LISTENER_NAME)
        self._clock.arena.cancel(self.RING_TIMER)

    def resume_checks(self) -> None:
        self._clock.subscribe(self.LISTENER_NAME, self._on_tick, order=ORDER_ALARM)

    def _on_tick(self, now: datetime) -> None:
        alarm = self._alarm
        if alarm is None or not alarm.armed or alarm.next_trigger is None:
            return
        if now < alarm.next_trigger:
            return
        self._alarm = Alarm(
            hour=alarm.hour,
            minute=alarm.minute,
            armed=True,
            next_trigger=next_occurrence(alarm.hour, alarm.minute, after=now),
        )
        self._logger.info("[alarm] Firing %s; next trigger %s", alarm.time_label, self._alarm.next_trigger)
        self._notifications.send_notification(ALARM_MESSAGE, NotificationKind.ALARM)
        self._cues.play(AudioCue.ALARM)
        self._notifications.vibrate(self._vibration_seconds)
        self._clock.arena.call_later(self.RING_TIMER, self._ring_seconds, self._auto_stop, priority=PRIORITY_UI)

    def _auto_stop(self) -> None:
        if self._cues.stop(AudioCue.ALARM):
            self._logger.info("[alarm] Ringing stopped after %.0fs", self._ring_seconds)

    def _stop_ringing(self) -> None:
        self._clock.arena.cancel(self.RING_TIMER)
        self._cues.stop(AudioCue.ALARM)
