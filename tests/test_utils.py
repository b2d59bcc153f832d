"""Tests for shared parsing helpers (watchsim/utils.py)."""

from __future__ import annotations

import pytest
from watchsim.utils import clamp, parse_bool, parse_float, parse_int, parse_optional_int, sanitize_hostname


@pytest.mark.parametrize(
    ("hostname", "expected"),
    [("Watch-01", "watch_01"), ("wrist.local", "wrist_local"), ("plain", "plain")],
)
def test_sanitize_hostname(hostname, expected):
    assert sanitize_hostname(hostname) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", True), ("TRUE", True), (" yes ", True), ("on", True), ("0", False), ("off", False), ("", False)],
)
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


def test_parse_bool_default_for_missing():
    assert parse_bool(None, True) is True


def test_parse_int_falls_back():
    assert parse_int("42", 0) == 42
    assert parse_int("forty", 7) == 7
    assert parse_int(None, 7) == 7


def test_parse_optional_int():
    assert parse_optional_int("5") == 5
    assert parse_optional_int("  ") is None
    assert parse_optional_int("x") is None
    assert parse_optional_int(None) is None


def test_parse_float_falls_back():
    assert parse_float("0.25", 1.0) == 0.25
    assert parse_float("fast", 1.0) == 1.0


@pytest.mark.parametrize(("value", "expected"), [(-5, 0), (50, 50), (150, 100)])
def test_clamp(value, expected):
    assert clamp(value, 0, 100) == expected
