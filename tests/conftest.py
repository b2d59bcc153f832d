"""Shared test fixtures and configuration for the watchsim test suite.

This module provides reusable fixtures for common test scenarios including:
- A fixed logical clock origin
- Headless audio cue backends
- Engine factories driven by a seeded random source
- MQTT configuration and client mocking
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any
from unittest.mock import Mock

import paho.mqtt.client as mqtt
import pytest
from watchsim.clock import ClockTicker, TimerArena
from watchsim.config import MqttConfig
from watchsim.cues import AudioCueManager, MemoryCueBackend
from watchsim.engine import WatchEngine
from watchsim.notifications import NotificationMode

# ============================================================================
# Pytest Configuration
# ============================================================================


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


# ============================================================================
# Logging Fixtures
# ============================================================================


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing.

    Returns a Mock with spec=logging.Logger to ensure only valid
    logger methods can be called.
    """
    return Mock(spec=logging.Logger)


# ============================================================================
# Clock and Audio Fixtures
# ============================================================================


@pytest.fixture
def origin():
    """Fixed logical clock origin (Wednesday 2025-01-15 09:30:00 UTC)."""
    return datetime(2025, 1, 15, 9, 30, 0, tzinfo=UTC)


@pytest.fixture
def arena():
    return TimerArena()


@pytest.fixture
def clock(arena, origin):
    return ClockTicker(arena, origin=origin)


@pytest.fixture
def cue_backend():
    """Headless cue backend that records every start."""
    return MemoryCueBackend()


@pytest.fixture
def cues(cue_backend):
    return AudioCueManager(cue_backend)


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def make_engine(origin, cue_backend):
    """Factory fixture for engines with a fixed origin and seeded randomness.

    Usage:
        engine = make_engine(notification_mode="auto")
    """

    def _create(**overrides: Any) -> WatchEngine:
        options: dict[str, Any] = {
            "origin": origin,
            "seed": 1234,
            "notification_mode": NotificationMode.MANUAL,
            "battery_source_kind": "simulated",
            "cue_backend": cue_backend,
        }
        options.update(overrides)
        return WatchEngine(**options)

    return _create


@pytest.fixture
def engine(make_engine):
    """Started, powered-on engine in manual notification mode."""
    instance = make_engine()
    instance.start()
    yield instance
    instance.shutdown()


# ============================================================================
# MQTT Fixtures
# ============================================================================


@pytest.fixture
def mqtt_config():
    """Create a basic MQTT configuration for testing."""
    return MqttConfig(
        host="localhost",
        port=1883,
        topic_base="watchsim/test_watch",
        username=None,
        password=None,
        tls_enabled=False,
        ca_cert=None,
        cert=None,
        key=None,
    )


@pytest.fixture
def mock_mqtt_client():
    """Create a mock paho MQTT client.

    Provides common MQTT client methods as mocks for testing
    MQTT interactions without a real broker.
    """
    client = Mock(spec=mqtt.Client)
    message_info = Mock(spec=mqtt.MQTTMessageInfo)
    message_info.rc = mqtt.MQTT_ERR_SUCCESS
    message_info.mid = 1
    client.publish = Mock(return_value=message_info)
    client.subscribe = Mock(return_value=(mqtt.MQTT_ERR_SUCCESS, 1))
    client.is_connected = Mock(return_value=True)
    return client
