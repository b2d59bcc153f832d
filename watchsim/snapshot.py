"""Immutable engine state handed to listeners and the MQTT bridge."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .alarm import Alarm
from .battery import BatteryStatus
from .health import HeartRateState
from .media import MusicState
from .navigation import DeviceView
from .notifications import Notification, NotificationMode
from .power import PowerState
from .stopwatch import StopwatchState

DEFAULT_BRIGHTNESS = 80


@dataclass(frozen=True, slots=True)
class DisplaySettings:
    dark_mode: bool = False
    brightness: int = DEFAULT_BRIGHTNESS

    def to_dict(self) -> dict[str, Any]:
        return {"dark_mode": self.dark_mode, "brightness": self.brightness}


@dataclass(frozen=True, slots=True)
class Connectivity:
    wifi_connected: bool = True
    bluetooth_connected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"wifi_connected": self.wifi_connected, "bluetooth_connected": self.bluetooth_connected}


@dataclass(frozen=True)
class WatchSnapshot:
    power_state: PowerState
    current_time: datetime
    battery: BatteryStatus
    alarm: Alarm | None
    stopwatch: StopwatchState
    notifications: tuple[Notification, ...]
    unread_count: int
    current_view: DeviceView
    active_popup: Notification | None
    vibrating: bool
    notification_mode: NotificationMode
    heart_rate: HeartRateState
    music: MusicState
    display: DisplaySettings
    connectivity: Connectivity
    has_wallpaper: bool

    @property
    def powered(self) -> bool:
        return self.power_state.powered

    def to_dict(self) -> dict[str, Any]:
        return {
            "power_state": self.power_state.value,
            "current_time": self.current_time.isoformat(),
            "battery": self.battery.to_dict(),
            "alarm": self.alarm.to_dict() if self.alarm else None,
            "stopwatch": self.stopwatch.to_dict(),
            "notifications": [item.to_dict() for item in self.notifications],
            "unread_count": self.unread_count,
            "current_view": self.current_view.value,
            "active_popup": self.active_popup.to_dict() if self.active_popup else None,
            "vibrating": self.vibrating,
            "notification_mode": self.notification_mode.value,
            "heart_rate": self.heart_rate.to_dict(),
            "music": self.music.to_dict(),
            "display": self.display.to_dict(),
            "connectivity": self.connectivity.to_dict(),
            "has_wallpaper": self.has_wallpaper,
        }
