"""Shared time-of-day parsing and formatting utilities."""

from __future__ import annotations

import re
from datetime import datetime, timedelta

from .errors import InvalidTime

_TIME_KEYWORDS = {
    "noon": (12, 0),
    "midday": (12, 0),
    "midnight": (0, 0),
    "morning": (9, 0),
    "afternoon": (15, 0),
    "evening": (18, 0),
}

_TIME_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$")


def local_now() -> datetime:
    """Get current datetime in the local timezone."""
    return datetime.now().astimezone()


def validate_time_of_day(hour: int, minute: int) -> tuple[int, int]:
    """Return (hour, minute) or raise InvalidTime when out of range."""
    if isinstance(hour, bool) or isinstance(minute, bool):
        raise InvalidTime(f"Invalid alarm time {hour!r}:{minute!r}")
    if not isinstance(hour, int) or not isinstance(minute, int):
        raise InvalidTime(f"Invalid alarm time {hour!r}:{minute!r}")
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise InvalidTime(f"Invalid alarm time {hour:02d}:{minute:02d}")
    return hour, minute


def parse_time_of_day(phrase: str | None) -> tuple[int, int] | None:
    """Parse time of day phrase into (hour, minute) tuple. Returns None if invalid."""
    if not phrase:
        return None
    cleaned = phrase.strip().lower()
    if not cleaned:
        return None
    keyword = _TIME_KEYWORDS.get(cleaned)
    if keyword:
        return keyword
    if cleaned.endswith(" o'clock"):
        cleaned = cleaned[: -len(" o'clock")].strip()
    match = _TIME_PATTERN.match(cleaned)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    suffix = match.group(3)
    if suffix:
        if hour == 0 or hour > 12:
            return None
        if hour == 12:
            hour = 0
        if suffix == "pm":
            hour += 12
    if hour >= 24 or minute >= 60:
        return None
    return hour, minute


def parse_time_string(value: str) -> tuple[int, int]:
    """Parse time string into (hour, minute) tuple. Raises InvalidTime if invalid."""
    result = parse_time_of_day(value)
    if result is None:
        raise InvalidTime(f"Invalid time format: {value!r}")
    return result


def next_occurrence(hour: int, minute: int, *, after: datetime) -> datetime:
    """Next instant at hour:minute:00 strictly after ``after``."""
    candidate = after.replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= after:
        candidate += timedelta(days=1)
    return candidate


def format_elapsed(ms: int) -> str:
    """Format milliseconds as MM:SS.cc, prefixed with hours when needed."""
    ms = max(0, int(ms))
    total_seconds, remainder = divmod(ms, 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    centis = remainder // 10
    if hours:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{centis:02d}"
    return f"{minutes:02d}:{seconds:02d}.{centis:02d}"
