"""
Simulation engine facade

``WatchEngine`` wires every subsystem onto one logical clock and exposes the
command surface used by tests, the daemon and the MQTT bridge. Every command
runs synchronously to completion and is followed by a single snapshot push to
registered listeners, so a listener never observes a half-applied transition.

Tick order within one instant:
1. battery poll (charger transitions)
2. alarm check
3. auto-notification timer
4. UI timers (popup, sound, vibration, transient charging)
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from datetime import datetime

from .alarm import Alarm, AlarmScheduler
from .audio import PlayerCueBackend
from .battery import BatteryMonitor, BatterySource, BatterySourceKind, create_battery_source
from .clock import ORDER_BATTERY, ClockTicker, TimerArena
from .config import TimingConfig, WatchConfig
from .cues import AudioCueManager, CueBackend
from .errors import AudioUnavailable
from .health import HeartRateMonitor
from .media import MusicPlayer, Track
from .navigation import DeviceView, ViewNavigator
from .notifications import Notification, NotificationCenter, NotificationKind, NotificationMode
from .power import PowerController, PowerState
from .snapshot import DEFAULT_BRIGHTNESS, Connectivity, DisplaySettings, WatchSnapshot
from .sound_library import CueLibrary
from .stopwatch import Lap, Stopwatch
from .storage import SettingsStore
from .utils import clamp

LOGGER = logging.getLogger(__name__)

SnapshotListener = Callable[[WatchSnapshot], None]


def _persisted_mode(value: object, fallback: NotificationMode | str) -> NotificationMode:
    if value:
        try:
            return NotificationMode.parse(str(value))
        except ValueError:
            LOGGER.warning("[engine] Ignoring stored notification mode %r", value)
    return NotificationMode.parse(fallback)


def _persisted_brightness(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return DEFAULT_BRIGHTNESS
    return int(clamp(value, 0, 100))


class WatchEngine:
    """Single-threaded smartwatch state machine driven by ``advance``."""

    def __init__(
        self,
        *,
        timings: TimingConfig | None = None,
        origin: datetime | None = None,
        seed: int | None = None,
        rng: random.Random | None = None,
        notification_mode: NotificationMode | str = NotificationMode.AUTO,
        battery_source: BatterySource | None = None,
        battery_source_kind: BatterySourceKind = "simulated",
        cue_backend: CueBackend | None = None,
        store: SettingsStore | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._logger = logger or LOGGER
        self.timings = timings or TimingConfig()
        self.rng = rng or random.Random(seed)
        self.store = store or SettingsStore(logger=self._logger)
        persisted = self.store.load()

        self.arena = TimerArena(logger=self._logger)
        self.clock = ClockTicker(
            self.arena,
            origin=origin,
            tick_seconds=self.timings.tick_seconds,
            logger=self._logger,
        )
        self.cues = AudioCueManager(cue_backend, logger=self._logger)
        self.notifications = NotificationCenter(
            self.clock,
            self.cues,
            powered=self._powered,
            rng=self.rng,
            mode=_persisted_mode(persisted.get("notification_mode"), notification_mode),
            popup_seconds=self.timings.popup_seconds,
            sound_seconds=self.timings.notify_sound_seconds,
            vibration_seconds=self.timings.vibration_seconds,
            auto_interval_seconds=self.timings.auto_notification_seconds,
            on_mode_changed=self._persist_mode,
            logger=self._logger,
        )
        source = battery_source or create_battery_source(
            battery_source_kind,
            self.clock.now_ms,
            step_seconds=self.timings.battery_step_seconds,
            logger=self._logger,
        )
        self.battery = BatteryMonitor(
            source,
            clock_ms=self.clock.now_ms,
            notifications=self.notifications,
            cues=self.cues,
            powered=self._powered,
            on_charger_connected=self._on_charger_connected,
            step_seconds=self.timings.battery_step_seconds,
            logger=self._logger,
        )
        self.alarm = AlarmScheduler(
            self.clock,
            self.cues,
            self.notifications,
            vibration_seconds=self.timings.alarm_vibration_seconds,
            ring_seconds=self.timings.alarm_ring_seconds,
            logger=self._logger,
        )
        self.stopwatch = Stopwatch(
            self.arena,
            self.cues,
            refresh_seconds=self.timings.stopwatch_refresh_seconds,
            logger=self._logger,
        )
        self.navigator = ViewNavigator(powered=self._powered, logger=self._logger)
        self.heart_rate = HeartRateMonitor(
            self.arena,
            self.cues,
            rng=self.rng,
            update_seconds=self.timings.heart_rate_seconds,
            logger=self._logger,
        )
        self.music = MusicPlayer(logger=self._logger)
        self.power = PowerController(
            self.arena,
            cues=self.cues,
            battery=self.battery,
            notifications=self.notifications,
            alarm=self.alarm,
            stopwatch=self.stopwatch,
            navigator=self.navigator,
            heart_rate=self.heart_rate,
            music=self.music,
            transient_seconds=self.timings.transient_charging_seconds,
            logger=self._logger,
        )

        self._display = DisplaySettings(
            dark_mode=bool(persisted.get("dark_mode", False)),
            brightness=_persisted_brightness(persisted.get("brightness")),
        )
        self._connectivity = Connectivity()
        self._listeners: list[SnapshotListener] = []

        self.clock.subscribe("battery", self.battery.poll, order=ORDER_BATTERY)

    @classmethod
    def from_config(
        cls,
        config: WatchConfig,
        *,
        origin: datetime | None = None,
        logger: logging.Logger | None = None,
    ) -> WatchEngine:
        log = logger or LOGGER
        cue_backend: CueBackend | None = None
        if config.sounds.player != "none":
            library = CueLibrary(custom_dir=config.sounds.custom_dir)
            try:
                cue_backend = PlayerCueBackend(library, player=config.sounds.player, logger=log)
            except AudioUnavailable as exc:
                log.warning("[engine] Audio playback unavailable (%s); cues will be silent", exc)
            else:
                for sound in library.custom_sounds():
                    log.info("[engine] Using custom %s cue: %s", sound.cue.value, sound.path)
        return cls(
            timings=config.timings,
            origin=origin,
            seed=config.seed,
            notification_mode=config.notification_mode,
            battery_source_kind=config.battery_source,
            cue_backend=cue_backend,
            store=SettingsStore(config.storage_path, logger=log),
            logger=log,
        )

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def start(self, *, powered_on: bool = True) -> None:
        """Start the clock and, optionally, power the device on."""
        self.clock.start()
        if powered_on:
            self.power.power_on()
        self._publish()

    def shutdown(self) -> None:
        self.power.power_off()
        self.clock.stop()
        self.cues.stop_all()
        self.arena.dispose_all()
        self._publish()

    def advance(self, seconds: float) -> None:
        """Move logical time forward, firing every timer that falls due.

        Listeners get one snapshot per call when at least one timer fired.
        """
        if seconds < 0:
            raise ValueError("Cannot advance by a negative duration")
        fired = self.arena.fired
        self.arena.advance(seconds)
        if self.arena.fired != fired:
            self._publish()

    def now(self) -> datetime:
        return self.clock.now()

    # ========================================================================
    # Listeners and snapshots
    # ========================================================================

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> WatchSnapshot:
        return WatchSnapshot(
            power_state=self.power.state,
            current_time=self.clock.now(),
            battery=self.battery.status,
            alarm=self.alarm.alarm,
            stopwatch=self.stopwatch.state(),
            notifications=self.notifications.notifications,
            unread_count=self.notifications.unread_count,
            current_view=self.navigator.current_view,
            active_popup=self.notifications.active_popup,
            vibrating=self.notifications.vibrating,
            notification_mode=self.notifications.mode,
            heart_rate=self.heart_rate.state(),
            music=self.music.state(),
            display=self._display,
            connectivity=self._connectivity,
            has_wallpaper=self.store.wallpaper() is not None,
        )

    # ========================================================================
    # Power
    # ========================================================================

    @property
    def power_state(self) -> PowerState:
        return self.power.state

    def power_on(self) -> bool:
        changed = self.power.power_on()
        self._publish()
        return changed

    def power_off(self) -> bool:
        changed = self.power.power_off()
        self._publish()
        return changed

    def toggle_power(self) -> bool:
        powered = self.power.toggle_power()
        self._publish()
        return powered

    # ========================================================================
    # Navigation and hardware buttons
    # ========================================================================

    def navigate(self, view: DeviceView | str) -> bool:
        target = DeviceView.parse(view)
        moved = self.navigator.navigate(target)
        if moved and target is DeviceView.MESSAGES:
            self.notifications.mark_all_read()
        self._publish()
        return moved

    def open_app_drawer(self) -> bool:
        return self.navigate(DeviceView.APP_DRAWER)

    def press_left_button(self) -> DeviceView:
        if self._powered():
            if self.navigator.current_view is DeviceView.HOME:
                self.navigator.navigate(DeviceView.HEART_RATE)
                self.heart_rate.start()
            else:
                self.navigator.navigate(DeviceView.HOME)
                self.heart_rate.stop()
        self._publish()
        return self.navigator.current_view

    def press_right_button(self) -> DeviceView:
        if self.navigator.current_view is DeviceView.HOME:
            self.navigator.navigate(DeviceView.APP_DRAWER)
        else:
            self.navigator.navigate(DeviceView.HOME)
        self._publish()
        return self.navigator.current_view

    # ========================================================================
    # Alarm
    # ========================================================================

    def set_alarm(self, hour: int, minute: int) -> Alarm:
        alarm = self.alarm.set_alarm(hour, minute)
        self._publish()
        return alarm

    def set_alarm_from_string(self, value: str) -> Alarm:
        alarm = self.alarm.set_alarm_from_string(value)
        self._publish()
        return alarm

    def cancel_alarm(self) -> None:
        self.alarm.cancel_alarm()
        self._publish()

    def dismiss_alarm(self) -> bool:
        dismissed = self.alarm.dismiss_alarm()
        self._publish()
        return dismissed

    # ========================================================================
    # Stopwatch
    # ========================================================================

    def start_stopwatch(self) -> bool:
        if not self._powered():
            self._logger.debug("[engine] Ignoring stopwatch start while powered off")
            return False
        self.stopwatch.start()
        self._publish()
        return True

    def stop_stopwatch(self) -> None:
        self.stopwatch.stop()
        self._publish()

    def reset_stopwatch(self) -> None:
        self.stopwatch.reset()
        self._publish()

    def record_lap(self) -> Lap | None:
        lap = self.stopwatch.record_lap()
        self._publish()
        return lap

    def delete_lap(self, lap_id: int) -> bool:
        deleted = self.stopwatch.delete_lap(lap_id)
        self._publish()
        return deleted

    # ========================================================================
    # Notifications
    # ========================================================================

    def send_notification(
        self,
        message: str,
        kind: NotificationKind | str = NotificationKind.MESSAGE,
    ) -> Notification | None:
        if not isinstance(kind, NotificationKind):
            kind = NotificationKind(str(kind).strip().lower())
        notification = self.notifications.send_notification(message, kind)
        self._publish()
        return notification

    def mark_all_read(self) -> None:
        self.notifications.mark_all_read()
        self._publish()

    def delete_notification(self, notification_id: int) -> bool:
        deleted = self.notifications.delete_notification(notification_id)
        self._publish()
        return deleted

    def clear_all_notifications(self) -> None:
        self.notifications.clear_all_notifications()
        self._publish()

    def set_notification_mode(self, mode: NotificationMode | str) -> bool:
        changed = self.notifications.set_mode(mode)
        self._publish()
        return changed

    # ========================================================================
    # Health and media
    # ========================================================================

    def toggle_heart_rate(self) -> bool:
        if not self._powered():
            return False
        monitoring = self.heart_rate.toggle()
        self._publish()
        return monitoring

    def music_play_pause(self) -> bool:
        if not self._powered():
            return False
        playing = self.music.play_pause()
        self._publish()
        return playing

    def music_next(self) -> Track:
        track = self.music.next_track()
        self._publish()
        return track

    def music_previous(self) -> Track:
        track = self.music.previous_track()
        self._publish()
        return track

    # ========================================================================
    # Battery
    # ========================================================================

    def set_charger_connected(self, connected: bool) -> bool:
        applied = self.battery.set_charger_connected(bool(connected))
        self._publish()
        return applied

    # ========================================================================
    # Settings pass-through
    # ========================================================================

    def set_wallpaper(self, data: bytes | None) -> None:
        self.store.set_wallpaper(data)
        self._publish()

    def wallpaper(self) -> bytes | None:
        return self.store.wallpaper()

    def set_dark_mode(self, enabled: bool) -> None:
        self._display = DisplaySettings(dark_mode=bool(enabled), brightness=self._display.brightness)
        self.store.set("dark_mode", self._display.dark_mode)
        self._publish()

    def set_brightness(self, level: int) -> int:
        brightness = int(clamp(int(level), 0, 100))
        self._display = DisplaySettings(dark_mode=self._display.dark_mode, brightness=brightness)
        self.store.set("brightness", brightness)
        self._publish()
        return brightness

    def set_wifi(self, connected: bool) -> None:
        self._connectivity = Connectivity(
            wifi_connected=bool(connected),
            bluetooth_connected=self._connectivity.bluetooth_connected,
        )
        self._publish()

    def set_bluetooth(self, connected: bool) -> None:
        self._connectivity = Connectivity(
            wifi_connected=self._connectivity.wifi_connected,
            bluetooth_connected=bool(connected),
        )
        self._publish()

    # ========================================================================
    # Internals
    # ========================================================================

    def _powered(self) -> bool:
        return self.power.powered

    def _on_charger_connected(self) -> None:
        self.power.enter_transient_charging()

    def _persist_mode(self, mode: NotificationMode) -> None:
        self.store.set("notification_mode", mode.value)

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                self._logger.warning("[engine] Snapshot listener failed", exc_info=True)
