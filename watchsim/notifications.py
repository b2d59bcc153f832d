"""
Notification list, popup slot and automatic notification generation

- Ids come from a counter that only ever grows, so two notifications created
  on the same tick never collide.
- The list is ordered most recent first.
- A single popup slot shows the newest notification for a few seconds; a new
  arrival replaces both the popup and its dismiss timer.
- In auto mode a recurring timer delivers a health tip (and sometimes a system
  message) through the same ``send_notification`` path as everything else.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .clock import PRIORITY_SCHEDULE, PRIORITY_UI, ClockTicker
from .cues import AudioCue, AudioCueManager

LOGGER = logging.getLogger(__name__)

HEALTH_TIPS = (
    "Stay hydrated! Drink water regularly.",
    "MindScape: Your mental health matters",
    "Take a 5-minute break and stretch",
    "MindScape: Practice deep breathing",
    "Remember to stand up and move around",
    "MindScape: Track your mood today",
)

SYSTEM_MESSAGES = (
    "System update available",
    "Storage almost full",
    "Connected to WiFi",
    "Bluetooth device connected",
    "Backup completed",
)

SYSTEM_MESSAGE_PROBABILITY = 0.3


class NotificationKind(Enum):
    HEALTH = "health"
    SYSTEM = "system"
    ALARM = "alarm"
    MESSAGE = "message"
    CHARGE = "charge"


class NotificationMode(Enum):
    AUTO = "auto"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: NotificationMode | str) -> NotificationMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown notification mode: {value!r}") from None


@dataclass(frozen=True, slots=True)
class Notification:
    id: int
    message: str
    created_at: datetime
    kind: NotificationKind
    read: bool = False
    sequence_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "created_at": self.created_at.isoformat(),
            "kind": self.kind.value,
            "read": self.read,
            "sequence_count": self.sequence_count,
        }


class NotificationCenter:
    """Owns the notification list, popup slot, vibration flag and auto timer."""

    POPUP_TIMER = "notifications.popup"
    SOUND_TIMER = "notifications.sound"
    VIBRATION_TIMER = "notifications.vibration"
    AUTO_TIMER = "notifications.auto"

    def __init__(
        self,
        clock: ClockTicker,
        cues: AudioCueManager,
        *,
        powered: Callable[[], bool],
        rng: random.Random | None = None,
        mode: NotificationMode = NotificationMode.AUTO,
        popup_seconds: float = 3.0,
        sound_seconds: float = 3.0,
        vibration_seconds: float = 0.5,
        auto_interval_seconds: float = 180.0,
        on_mode_changed: Callable[[NotificationMode], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._clock = clock
        self._arena = clock.arena
        self._cues = cues
        self._powered = powered
        self._rng = rng or random.Random()
        self._mode = mode
        self._popup_seconds = popup_seconds
        self._sound_seconds = sound_seconds
        self._vibration_seconds = vibration_seconds
        self._auto_interval_seconds = auto_interval_seconds
        self._on_mode_changed = on_mode_changed
        self._logger = logger or LOGGER
        self._notifications: list[Notification] = []
        self._last_id = 0
        self._sequence = 0
        self._popup: Notification | None = None
        self._vibrating = False

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return tuple(self._notifications)

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._notifications if not item.read)

    @property
    def active_popup(self) -> Notification | None:
        return self._popup

    @property
    def vibrating(self) -> bool:
        return self._vibrating

    @property
    def mode(self) -> NotificationMode:
        return self._mode

    @property
    def auto_generation_active(self) -> bool:
        return self._arena.is_active(self.AUTO_TIMER)

    def send_notification(
        self,
        message: str,
        kind: NotificationKind = NotificationKind.MESSAGE,
    ) -> Notification | None:
        text = (message or "").strip()
        if not text:
            self._logger.debug("[notifications] Ignoring empty notification")
            return None
        self._last_id += 1
        self._sequence += 1
        notification = Notification(
            id=self._last_id,
            message=text,
            created_at=self._clock.now(),
            kind=kind,
            sequence_count=self._sequence if self._mode is NotificationMode.AUTO else None,
        )
        self._notifications.insert(0, notification)
        self._logger.debug("[notifications] #%d (%s): %s", notification.id, kind.value, text)
        if self._powered() and kind is not NotificationKind.CHARGE:
            self._show_popup(notification)
            self._play_sound()
            self.vibrate(self._vibration_seconds)
        return notification

    def mark_all_read(self) -> None:
        self._notifications = [item if item.read else replace(item, read=True) for item in self._notifications]

    def delete_notification(self, notification_id: int) -> bool:
        before = len(self._notifications)
        self._notifications = [item for item in self._notifications if item.id != notification_id]
        if self._popup is not None and self._popup.id == notification_id:
            self.dismiss_popup()
        return len(self._notifications) != before

    def clear_all_notifications(self) -> None:
        self._notifications.clear()
        self._sequence = 0
        self.dismiss_popup()

    def dismiss_popup(self) -> None:
        self._arena.cancel(self.POPUP_TIMER)
        self._popup = None

    def vibrate(self, seconds: float) -> None:
        self._vibrating = True
        self._arena.call_later(self.VIBRATION_TIMER, seconds, self._stop_vibration, priority=PRIORITY_UI)

    def set_mode(self, mode: NotificationMode | str) -> bool:
        """Switch between auto and manual generation; returns False when unchanged."""
        mode = NotificationMode.parse(mode)
        if mode is self._mode:
            return False
        self._mode = mode
        self._logger.info("[notifications] Mode set to %s", mode.value)
        if mode is NotificationMode.MANUAL:
            self.stop_auto_generation()
        else:
            self.start_auto_generation()
        if self._on_mode_changed:
            self._on_mode_changed(mode)
        return True

    def start_auto_generation(self, *, welcome: bool = True) -> bool:
        if self._mode is not NotificationMode.AUTO or not self._powered():
            return False
        self._arena.call_every(
            self.AUTO_TIMER,
            self._auto_interval_seconds,
            self._generate,
            priority=PRIORITY_SCHEDULE,
        )
        if welcome:
            self.send_notification(self._rng.choice(HEALTH_TIPS), NotificationKind.HEALTH)
        return True

    def stop_auto_generation(self) -> None:
        self._arena.cancel(self.AUTO_TIMER)

    def suspend(self) -> None:
        """Cancel every timer this center owns (power-off)."""
        self.stop_auto_generation()
        self._arena.cancel(self.SOUND_TIMER)
        self._arena.cancel(self.VIBRATION_TIMER)
        self.dismiss_popup()
        self._vibrating = False

    def resume(self) -> None:
        self.start_auto_generation()

    def _generate(self) -> None:
        if self._rng.random() < SYSTEM_MESSAGE_PROBABILITY:
            self.send_notification(self._rng.choice(SYSTEM_MESSAGES), NotificationKind.SYSTEM)
        self.send_notification(self._rng.choice(HEALTH_TIPS), NotificationKind.HEALTH)

    def _show_popup(self, notification: Notification) -> None:
        self._popup = notification
        self._arena.call_later(self.POPUP_TIMER, self._popup_seconds, self._expire_popup, priority=PRIORITY_UI)

    def _expire_popup(self) -> None:
        self._popup = None

    def _play_sound(self) -> None:
        self._cues.play(AudioCue.NOTIFY)
        self._arena.call_later(
            self.SOUND_TIMER,
            self._sound_seconds,
            lambda: self._cues.stop(AudioCue.NOTIFY),
            priority=PRIORITY_UI,
        )

    def _stop_vibration(self) -> None:
        self._vibrating = False
