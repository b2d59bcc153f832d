"""Host audio playback for cues through external player processes."""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import subprocess  # nosec B404 - subprocess used for local player processes
import threading
from collections.abc import Callable

from .cues import AudioCue
from .errors import AudioUnavailable
from .sound_library import CueLibrary

_LOGGER = logging.getLogger("watchsim.audio")
_PLAYER_CANDIDATES = ("pw-play", "paplay", "aplay")


def _runtime_env() -> dict[str, str]:
    env = os.environ.copy()
    if hasattr(os, "getuid"):
        env.setdefault("XDG_RUNTIME_DIR", f"/run/user/{os.getuid()}")
    return env


def find_player(preferred: str | None = None) -> str | None:
    """Pick an installed command line player, honoring an explicit preference."""
    if preferred and preferred not in {"auto", "none"}:
        return preferred if shutil.which(preferred) else None
    if preferred == "none":
        return None
    for candidate in _PLAYER_CANDIDATES:
        if shutil.which(candidate):
            return candidate
    return None


class ProcessCueHandle:
    """Plays one sample through an external player process.

    A looping handle respawns the player from a daemon thread. Each ``start``
    gets its own stop event, so a loop thread left over from an earlier run
    can never respawn the player after ``pause``.
    """

    def __init__(
        self,
        command: list[str],
        *,
        loop: bool = False,
        popen: Callable[..., subprocess.Popen] = subprocess.Popen,
        logger: logging.Logger | None = None,
    ) -> None:
        self.command = command
        self.loop = loop
        self._popen = popen
        self._logger = logger or _LOGGER
        self._proc: subprocess.Popen | None = None
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def playing(self) -> bool:
        if self.loop:
            thread = self._thread
            return bool(thread and thread.is_alive() and not self._stop_event.is_set())
        proc = self._proc
        return bool(proc and proc.poll() is None)

    def start(self) -> None:
        self.pause()
        stop_event = threading.Event()
        self._stop_event = stop_event
        self._spawn(stop_event)
        if not self.loop:
            return
        self._thread = threading.Thread(
            target=self._loop_forever,
            args=(stop_event,),
            name="watchsim-cue-loop",
            daemon=True,
        )
        self._thread.start()

    def pause(self) -> None:
        self._stop_event.set()
        with self._lock:
            proc = self._proc
            self._proc = None
        if proc is not None:
            _terminate(proc)
        thread = self._thread
        self._thread = None
        if thread and thread is not threading.current_thread():
            thread.join(timeout=2)

    def rewind(self) -> None:
        # A fresh process always plays from the start of the sample.
        return

    def close(self) -> None:
        self.pause()

    def _spawn(self, stop_event: threading.Event) -> None:
        try:
            proc = self._popen(  # nosec B603 - command built from resolved player + sample path
                self.command,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                env=_runtime_env(),
            )
        except OSError as exc:
            raise AudioUnavailable(f"Failed to launch {self.command[0]}: {exc}") from exc
        with self._lock:
            if not stop_event.is_set():
                self._proc = proc
                return
        # Paused while the player was launching.
        _terminate(proc)

    def _loop_forever(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            with self._lock:
                proc = self._proc
            if proc is None:
                if stop_event.wait(0.1):
                    break
                continue
            with contextlib.suppress(subprocess.TimeoutExpired):
                proc.wait(timeout=0.5)
                if stop_event.is_set():
                    break
                try:
                    self._spawn(stop_event)
                except AudioUnavailable as exc:
                    self._logger.warning("[audio] Looping cue stopped: %s", exc)
                    break


def _terminate(proc: subprocess.Popen) -> None:
    if proc.poll() is not None:
        return
    proc.terminate()
    try:
        proc.wait(timeout=2)
    except subprocess.TimeoutExpired:
        proc.kill()


class PlayerCueBackend:
    """Cue backend that shells out to ``pw-play``/``paplay``/``aplay``."""

    def __init__(
        self,
        library: CueLibrary,
        *,
        player: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.library = library
        self._logger = logger or _LOGGER
        self.player = find_player(player)
        if self.player is None:
            raise AudioUnavailable("No audio player available")

    def open(self, cue: AudioCue, *, loop: bool = False) -> ProcessCueHandle:
        sound = self.library.resolve(cue)
        if sound is None:
            raise AudioUnavailable(f"No sample available for cue {cue.value}")
        self._logger.debug("[audio] Opening %s cue with %s (%s)", cue.value, self.player, sound.path)
        return ProcessCueHandle([self.player, str(sound.path)], loop=loop, logger=self._logger)
