"""
Power lifecycle for the simulated device

``PowerController`` owns the Off / On / TransientCharging state and is the only
place that starts or stops other subsystems' timers and audio on a power
transition. TransientCharging is a short overlay entered when a charger is
present at power-on or connected while on; it reverts to On by itself and is
never persisted.
"""

from __future__ import annotations

import logging
from enum import Enum

from .alarm import AlarmScheduler
from .battery import BatteryMonitor
from .clock import PRIORITY_UI, TimerArena
from .cues import AudioCueManager
from .health import HeartRateMonitor
from .media import MusicPlayer
from .navigation import ViewNavigator
from .notifications import NotificationCenter
from .stopwatch import Stopwatch

LOGGER = logging.getLogger(__name__)


class PowerState(Enum):
    OFF = "off"
    ON = "on"
    TRANSIENT_CHARGING = "transient_charging"

    @property
    def powered(self) -> bool:
        return self is not PowerState.OFF


class PowerController:
    TRANSIENT_TIMER = "power.transient_charging"

    def __init__(
        self,
        arena: TimerArena,
        *,
        cues: AudioCueManager,
        battery: BatteryMonitor,
        notifications: NotificationCenter,
        alarm: AlarmScheduler,
        stopwatch: Stopwatch,
        navigator: ViewNavigator,
        heart_rate: HeartRateMonitor | None = None,
        music: MusicPlayer | None = None,
        transient_seconds: float = 2.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._arena = arena
        self._cues = cues
        self._battery = battery
        self._notifications = notifications
        self._alarm = alarm
        self._stopwatch = stopwatch
        self._navigator = navigator
        self._heart_rate = heart_rate
        self._music = music
        self._transient_seconds = transient_seconds
        self._logger = logger or LOGGER
        self._state = PowerState.OFF

    @property
    def state(self) -> PowerState:
        return self._state

    @property
    def powered(self) -> bool:
        return self._state.powered

    def power_on(self) -> bool:
        if self.powered:
            return False
        # Polled while still off: a charger plugged in meanwhile is not announced.
        status = self._battery.poll()
        self._set_state(PowerState.ON)
        self._alarm.resume_checks()
        if status.charging:
            self.enter_transient_charging()
        self._notifications.resume()
        self._logger.info("[power] Powered on (battery %d%%)", status.level_percent)
        return True

    def power_off(self) -> bool:
        if not self.powered:
            return False
        self._arena.cancel(self.TRANSIENT_TIMER)
        self._set_state(PowerState.OFF)
        self._stopwatch.stop()
        self._alarm.suspend_checks()
        if self._heart_rate is not None:
            self._heart_rate.stop()
        if self._music is not None:
            self._music.pause()
        self._notifications.suspend()
        self._cues.stop_all()
        self._navigator.force_home()
        self._logger.info("[power] Powered off")
        return True

    def toggle_power(self) -> bool:
        if self.powered:
            self.power_off()
        else:
            self.power_on()
        return self.powered

    def enter_transient_charging(self) -> bool:
        if not self.powered:
            return False
        self._set_state(PowerState.TRANSIENT_CHARGING)
        self._arena.call_later(
            self.TRANSIENT_TIMER,
            self._transient_seconds,
            self._end_transient_charging,
            priority=PRIORITY_UI,
        )
        return True

    def _end_transient_charging(self) -> None:
        if self._state is PowerState.TRANSIENT_CHARGING:
            self._set_state(PowerState.ON)

    def _set_state(self, state: PowerState) -> None:
        if state is self._state:
            return
        self._logger.debug("[power] %s -> %s", self._state.value, state.value)
        self._state = state
