"""Configuration helpers for the watch simulator."""

from __future__ import annotations

import os
import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, cast

from .utils import parse_bool, parse_float, parse_int, parse_optional_int, sanitize_hostname

DEFAULT_STORAGE_PATH = Path.home() / ".local" / "share" / "watchsim" / "settings.json"
BATTERY_SOURCES = {"auto", "sysfs", "simulated"}
NOTIFICATION_MODES = {"auto", "manual"}


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True)
class TimingConfig:
    tick_seconds: float = 1.0
    transient_charging_seconds: float = 2.0
    popup_seconds: float = 3.0
    notify_sound_seconds: float = 3.0
    vibration_seconds: float = 0.5
    alarm_vibration_seconds: float = 1.0
    alarm_ring_seconds: float = 60.0
    auto_notification_seconds: float = 180.0
    stopwatch_refresh_seconds: float = 0.01
    heart_rate_seconds: float = 5.0
    battery_step_seconds: float = 3.0

    @staticmethod
    def from_env(env: dict[str, str] | None = None) -> TimingConfig:
        source = env or os.environ
        defaults = TimingConfig()

        def _seconds(name: str, default: float) -> float:
            value = parse_float(source.get(name), default)
            return value if value > 0 else default

        return TimingConfig(
            tick_seconds=_seconds("WATCHSIM_TICK_SECONDS", defaults.tick_seconds),
            transient_charging_seconds=_seconds(
                "WATCHSIM_TRANSIENT_CHARGING_SECONDS", defaults.transient_charging_seconds
            ),
            popup_seconds=_seconds("WATCHSIM_POPUP_SECONDS", defaults.popup_seconds),
            notify_sound_seconds=_seconds("WATCHSIM_NOTIFY_SOUND_SECONDS", defaults.notify_sound_seconds),
            vibration_seconds=_seconds("WATCHSIM_VIBRATION_SECONDS", defaults.vibration_seconds),
            alarm_vibration_seconds=_seconds("WATCHSIM_ALARM_VIBRATION_SECONDS", defaults.alarm_vibration_seconds),
            alarm_ring_seconds=_seconds("WATCHSIM_ALARM_RING_SECONDS", defaults.alarm_ring_seconds),
            auto_notification_seconds=_seconds(
                "WATCHSIM_AUTO_NOTIFICATION_SECONDS", defaults.auto_notification_seconds
            ),
            stopwatch_refresh_seconds=_seconds(
                "WATCHSIM_STOPWATCH_REFRESH_SECONDS", defaults.stopwatch_refresh_seconds
            ),
            heart_rate_seconds=_seconds("WATCHSIM_HEART_RATE_SECONDS", defaults.heart_rate_seconds),
            battery_step_seconds=_seconds("WATCHSIM_BATTERY_STEP_SECONDS", defaults.battery_step_seconds),
        )


@dataclass(frozen=True)
class CueSoundConfig:
    custom_dir: Path | None
    player: str


@dataclass(frozen=True)
class MqttConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    tls_enabled: bool
    cert: str | None
    key: str | None
    ca_cert: str | None
    topic_base: str

    @property
    def enabled(self) -> bool:
        return bool(self.host)


@dataclass(frozen=True)
class WatchConfig:
    hostname: str
    device_name: str
    storage_path: Path
    seed: int | None
    notification_mode: Literal["auto", "manual"]
    battery_source: Literal["auto", "sysfs", "simulated"]
    start_powered_on: bool
    timings: TimingConfig
    sounds: CueSoundConfig
    mqtt: MqttConfig

    @staticmethod
    def from_env(env: dict[str, str] | None = None) -> WatchConfig:
        source = env or os.environ
        hostname = source.get("WATCHSIM_HOSTNAME") or socket.gethostname()
        device_name = source.get("WATCHSIM_NAME") or hostname.replace("-", " ").title()

        storage_path = Path(source.get("WATCHSIM_STORAGE_PATH") or DEFAULT_STORAGE_PATH).expanduser()

        mode = (source.get("WATCHSIM_NOTIFICATION_MODE") or "auto").strip().lower()
        if mode not in NOTIFICATION_MODES:
            mode = "auto"
        battery_source = (source.get("WATCHSIM_BATTERY_SOURCE") or "auto").strip().lower()
        if battery_source not in BATTERY_SOURCES:
            battery_source = "auto"

        sound_dir = _strip_or_none(source.get("WATCHSIM_SOUND_DIR"))
        sounds = CueSoundConfig(
            custom_dir=Path(sound_dir).expanduser() if sound_dir else None,
            player=(source.get("WATCHSIM_AUDIO_PLAYER") or "none").strip(),
        )

        topic_base = source.get("WATCHSIM_TOPIC_BASE") or f"watchsim/{sanitize_hostname(hostname)}"
        mqtt = MqttConfig(
            host=_strip_or_none(source.get("MQTT_HOST")),
            port=parse_int(source.get("MQTT_PORT"), 1883),
            username=_strip_or_none(source.get("MQTT_USER") or source.get("MQTT_USERNAME")),
            password=_strip_or_none(source.get("MQTT_PASS") or source.get("MQTT_PASSWORD")),
            tls_enabled=parse_bool(source.get("MQTT_TLS_ENABLED"), False),
            cert=_strip_or_none(source.get("MQTT_CERT")),
            key=_strip_or_none(source.get("MQTT_KEY")),
            ca_cert=_strip_or_none(source.get("MQTT_CA_CERT")),
            topic_base=topic_base.rstrip("/"),
        )

        return WatchConfig(
            hostname=hostname,
            device_name=device_name,
            storage_path=storage_path,
            seed=parse_optional_int(source.get("WATCHSIM_SEED")),
            notification_mode=cast(Literal["auto", "manual"], mode),
            battery_source=cast(Literal["auto", "sysfs", "simulated"], battery_source),
            start_powered_on=parse_bool(source.get("WATCHSIM_START_POWERED_ON"), True),
            timings=TimingConfig.from_env(source),
            sounds=sounds,
            mqtt=mqtt,
        )
