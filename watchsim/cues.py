"""Audio cue handle table shared by alarm, battery, notification and health subsystems."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Protocol

from .errors import AudioUnavailable

LOGGER = logging.getLogger(__name__)


class AudioCue(Enum):
    ALARM = "alarm"
    BEEP = "beep"
    HEARTBEAT = "heartbeat"
    CHARGE = "charge"
    DISCHARGE = "discharge"
    NOTIFY = "notify"


LOOPING_CUES = frozenset({AudioCue.HEARTBEAT})


class CueHandle(Protocol):
    """Opaque playback resource for one cue kind."""

    @property
    def playing(self) -> bool: ...

    def start(self) -> None: ...

    def pause(self) -> None: ...

    def rewind(self) -> None: ...

    def close(self) -> None: ...


class CueBackend(Protocol):
    def open(self, cue: AudioCue, *, loop: bool = False) -> CueHandle: ...


class MemoryCueHandle:
    """Headless handle that only tracks playback state."""

    def __init__(self, backend: MemoryCueBackend, cue: AudioCue, loop: bool) -> None:
        self._backend = backend
        self.cue = cue
        self.loop = loop
        self.position = 0
        self.closed = False
        self._playing = False

    @property
    def playing(self) -> bool:
        return self._playing

    def start(self) -> None:
        if self.closed:
            raise AudioUnavailable(f"Handle for {self.cue.value} is closed")
        self._playing = True
        self._backend.started.append(self.cue)

    def pause(self) -> None:
        self._playing = False

    def rewind(self) -> None:
        self.position = 0

    def close(self) -> None:
        self._playing = False
        self.closed = True


class MemoryCueBackend:
    """Host stub that records every cue start; the default when no player is configured."""

    def __init__(self) -> None:
        self.opened: list[MemoryCueHandle] = []
        self.started: list[AudioCue] = []

    def open(self, cue: AudioCue, *, loop: bool = False) -> MemoryCueHandle:
        handle = MemoryCueHandle(self, cue, loop)
        self.opened.append(handle)
        return handle

    def plays(self, cue: AudioCue) -> int:
        return sum(1 for started in self.started if started is cue)


class AudioCueManager:
    """Holds at most one live handle per cue kind.

    Handles are created lazily on first play, restarted from position zero on
    replay, and released by ``stop_all`` when the device powers off. Backend
    failures are logged and reported as a False return value; they never
    propagate to the caller.
    """

    def __init__(self, backend: CueBackend | None = None, logger: logging.Logger | None = None) -> None:
        self.backend: CueBackend = backend or MemoryCueBackend()
        self._logger = logger or LOGGER
        self._handles: dict[AudioCue, CueHandle] = {}
        self._lock = threading.Lock()

    def play(self, cue: AudioCue) -> bool:
        with self._lock:
            try:
                handle = self._handles.get(cue)
                if handle is None:
                    handle = self.backend.open(cue, loop=cue in LOOPING_CUES)
                    self._handles[cue] = handle
                elif handle.playing:
                    handle.pause()
                handle.rewind()
                handle.start()
            except (AudioUnavailable, OSError) as exc:
                self._logger.warning("[audio] Failed to play cue %s: %s", cue.value, exc)
                self._discard_locked(cue)
                return False
            return True

    def stop(self, cue: AudioCue) -> bool:
        with self._lock:
            handle = self._handles.get(cue)
            if handle is None or not handle.playing:
                return False
            try:
                handle.pause()
                handle.rewind()
            except (AudioUnavailable, OSError) as exc:
                self._logger.warning("[audio] Failed to stop cue %s: %s", cue.value, exc)
                self._discard_locked(cue)
            return True

    def stop_all(self) -> None:
        with self._lock:
            for cue in list(self._handles):
                handle = self._handles[cue]
                try:
                    if handle.playing:
                        handle.pause()
                    handle.rewind()
                except (AudioUnavailable, OSError) as exc:
                    self._logger.debug("[audio] Failed to stop cue %s during shutdown: %s", cue.value, exc)
                self._discard_locked(cue)

    def is_playing(self, cue: AudioCue) -> bool:
        with self._lock:
            handle = self._handles.get(cue)
            return bool(handle and handle.playing)

    def playing_cues(self) -> frozenset[AudioCue]:
        with self._lock:
            return frozenset(cue for cue, handle in self._handles.items() if handle.playing)

    def handle_count(self) -> int:
        with self._lock:
            return len(self._handles)

    def _discard_locked(self, cue: AudioCue) -> None:
        handle = self._handles.pop(cue, None)
        if handle is None:
            return
        try:
            handle.close()
        except (AudioUnavailable, OSError) as exc:
            self._logger.debug("[audio] Failed to release cue %s: %s", cue.value, exc)
