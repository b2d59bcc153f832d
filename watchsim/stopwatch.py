"""Stopwatch computed from clock deltas, with a per-session lap list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .clock import PRIORITY_UI, TimerArena
from .cues import AudioCue, AudioCueManager
from .datetime_utils import format_elapsed

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Lap:
    id: int
    elapsed_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "elapsed_ms": self.elapsed_ms, "label": format_elapsed(self.elapsed_ms)}


@dataclass(frozen=True, slots=True)
class StopwatchState:
    elapsed_ms: int
    running: bool
    start_ms: int | None
    laps: tuple[Lap, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "elapsed_ms": self.elapsed_ms,
            "elapsed": format_elapsed(self.elapsed_ms),
            "running": self.running,
            "laps": [lap.to_dict() for lap in self.laps],
        }


class Stopwatch:
    """Elapsed time is always ``now - start_ms`` while running.

    The refresh timer only updates the displayed value; correctness never
    depends on how often it fires.
    """

    REFRESH_TIMER = "stopwatch.refresh"

    def __init__(
        self,
        arena: TimerArena,
        cues: AudioCueManager | None = None,
        *,
        refresh_seconds: float = 0.01,
        logger: logging.Logger | None = None,
    ) -> None:
        self._arena = arena
        self._cues = cues
        self._refresh_seconds = refresh_seconds
        self._logger = logger or LOGGER
        self._elapsed_ms = 0
        self._start_ms: int | None = None
        self._laps: list[Lap] = []
        self._lap_counter = 0

    @property
    def running(self) -> bool:
        return self._start_ms is not None

    @property
    def elapsed_ms(self) -> int:
        if self._start_ms is not None:
            return self._arena.now_ms - self._start_ms
        return self._elapsed_ms

    @property
    def laps(self) -> tuple[Lap, ...]:
        return tuple(self._laps)

    def state(self) -> StopwatchState:
        return StopwatchState(
            elapsed_ms=self.elapsed_ms,
            running=self.running,
            start_ms=self._start_ms,
            laps=tuple(self._laps),
        )

    def start(self) -> None:
        if self.running:
            return
        self._start_ms = self._arena.now_ms - self._elapsed_ms
        self._arena.call_every(self.REFRESH_TIMER, self._refresh_seconds, self._refresh, priority=PRIORITY_UI)
        self._logger.debug("[stopwatch] Started at %s", format_elapsed(self._elapsed_ms))

    def stop(self) -> None:
        if self._start_ms is not None:
            self._elapsed_ms = self._arena.now_ms - self._start_ms
            self._start_ms = None
            self._logger.debug("[stopwatch] Stopped at %s", format_elapsed(self._elapsed_ms))
        self._arena.cancel(self.REFRESH_TIMER)

    def reset(self) -> None:
        self.stop()
        self._elapsed_ms = 0
        self._laps.clear()
        self._lap_counter = 0

    def record_lap(self) -> Lap | None:
        if not self.running:
            return None
        self._lap_counter += 1
        lap = Lap(id=self._lap_counter, elapsed_ms=self.elapsed_ms)
        self._laps.append(lap)
        if self._cues is not None:
            self._cues.play(AudioCue.BEEP)
        return lap

    def delete_lap(self, lap_id: int) -> bool:
        before = len(self._laps)
        self._laps = [lap for lap in self._laps if lap.id != lap_id]
        return len(self._laps) != before

    def _refresh(self) -> None:
        if self._start_ms is not None:
            self._elapsed_ms = self._arena.now_ms - self._start_ms
