"""Error taxonomy for the simulation engine."""

from __future__ import annotations


class WatchError(Exception):
    """Base class for every engine error."""


class InvalidTime(WatchError, ValueError):
    """Alarm time outside 00:00-23:59 or not parseable."""


class StorageUnavailable(WatchError):
    """Settings storage could not be read or written."""


class AudioUnavailable(WatchError):
    """A cue handle could not be opened, started or stopped."""


class BatterySourceUnavailable(WatchError):
    """The host battery source is missing or unreadable."""


class UnknownCommand(WatchError, ValueError):
    """A bridge command name that the engine does not understand."""
