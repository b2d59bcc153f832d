"""Tests for watchsim.config: environment parsing and defaults."""

from __future__ import annotations

from pathlib import Path

import pytest
from watchsim.config import DEFAULT_STORAGE_PATH, TimingConfig, WatchConfig

# ---------------------------------------------------------------------------
# Factory helpers
# ---------------------------------------------------------------------------

_BASE_ENV: dict[str, str] = {
    "WATCHSIM_HOSTNAME": "Wrist-Unit.local",
}


def _from_env(overrides: dict[str, str] | None = None) -> WatchConfig:
    """Build a WatchConfig from a minimal env dict."""
    env = dict(_BASE_ENV)
    if overrides:
        env.update(overrides)
    return WatchConfig.from_env(env)


# ---------------------------------------------------------------------------
# WatchConfig
# ---------------------------------------------------------------------------


def test_defaults():
    config = _from_env()

    assert config.hostname == "Wrist-Unit.local"
    assert config.device_name == "Wrist Unit.Local"
    assert config.storage_path == DEFAULT_STORAGE_PATH
    assert config.seed is None
    assert config.notification_mode == "auto"
    assert config.battery_source == "auto"
    assert config.start_powered_on is True
    assert config.sounds.player == "none"
    assert config.sounds.custom_dir is None
    assert config.timings == TimingConfig()


def test_topic_base_derived_from_hostname():
    config = _from_env()

    assert config.mqtt.topic_base == "watchsim/wrist_unit_local"
    assert config.mqtt.enabled is False


def test_explicit_topic_base_strips_trailing_slash():
    assert _from_env({"WATCHSIM_TOPIC_BASE": "home/watch/"}).mqtt.topic_base == "home/watch"


def test_mqtt_settings():
    config = _from_env(
        {
            "MQTT_HOST": " broker.lan ",
            "MQTT_PORT": "8883",
            "MQTT_USERNAME": "watch",
            "MQTT_PASSWORD": "secret",
            "MQTT_TLS_ENABLED": "true",
            "MQTT_CA_CERT": "/etc/ssl/ca.pem",
        }
    )

    assert config.mqtt.enabled is True
    assert config.mqtt.host == "broker.lan"
    assert config.mqtt.port == 8883
    assert config.mqtt.username == "watch"
    assert config.mqtt.password == "secret"
    assert config.mqtt.tls_enabled is True
    assert config.mqtt.ca_cert == "/etc/ssl/ca.pem"
    assert config.mqtt.cert is None


def test_short_mqtt_credential_names_win():
    config = _from_env({"MQTT_USER": "short", "MQTT_USERNAME": "long"})

    assert config.mqtt.username == "short"


def test_bad_port_falls_back():
    assert _from_env({"MQTT_PORT": "eighty"}).mqtt.port == 1883


@pytest.mark.parametrize(("raw", "expected"), [("MANUAL", "manual"), ("auto", "auto"), ("sometimes", "auto")])
def test_notification_mode_choice(raw, expected):
    assert _from_env({"WATCHSIM_NOTIFICATION_MODE": raw}).notification_mode == expected


@pytest.mark.parametrize(("raw", "expected"), [("sysfs", "sysfs"), ("Simulated", "simulated"), ("usb", "auto")])
def test_battery_source_choice(raw, expected):
    assert _from_env({"WATCHSIM_BATTERY_SOURCE": raw}).battery_source == expected


def test_paths_seed_and_power(tmp_path):
    config = _from_env(
        {
            "WATCHSIM_STORAGE_PATH": str(tmp_path / "s.json"),
            "WATCHSIM_SOUND_DIR": str(tmp_path / "sounds"),
            "WATCHSIM_SEED": "42",
            "WATCHSIM_START_POWERED_ON": "no",
            "WATCHSIM_AUDIO_PLAYER": "paplay",
            "WATCHSIM_NAME": "Lab Watch",
        }
    )

    assert config.storage_path == tmp_path / "s.json"
    assert config.sounds.custom_dir == Path(tmp_path / "sounds")
    assert config.seed == 42
    assert config.start_powered_on is False
    assert config.sounds.player == "paplay"
    assert config.device_name == "Lab Watch"


# ---------------------------------------------------------------------------
# TimingConfig
# ---------------------------------------------------------------------------


def test_timing_overrides():
    timings = TimingConfig.from_env({"WATCHSIM_TICK_SECONDS": "0.5", "WATCHSIM_POPUP_SECONDS": "4"})

    assert timings.tick_seconds == 0.5
    assert timings.popup_seconds == 4.0
    assert timings.auto_notification_seconds == 180.0


@pytest.mark.parametrize("raw", ["0", "-3", "soon"])
def test_timing_rejects_non_positive(raw):
    timings = TimingConfig.from_env({"WATCHSIM_ALARM_RING_SECONDS": raw})

    assert timings.alarm_ring_seconds == 60.0


def test_timings_flow_into_watch_config():
    config = _from_env({"WATCHSIM_HEART_RATE_SECONDS": "2"})

    assert config.timings.heart_rate_seconds == 2.0
