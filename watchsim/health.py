"""Simulated heart-rate monitor."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any

from .clock import PRIORITY_UI, TimerArena
from .cues import AudioCue, AudioCueManager
from .utils import clamp

LOGGER = logging.getLogger(__name__)

MIN_BPM = 60
MAX_BPM = 120
DEFAULT_BPM = 72


@dataclass(frozen=True, slots=True)
class HeartRateState:
    bpm: int
    monitoring: bool

    def to_dict(self) -> dict[str, Any]:
        return {"bpm": self.bpm, "monitoring": self.monitoring}


class HeartRateMonitor:
    """Random walk of one beat per update while monitoring, with a looping heartbeat cue."""

    UPDATE_TIMER = "health.heart_rate"

    def __init__(
        self,
        arena: TimerArena,
        cues: AudioCueManager,
        *,
        rng: random.Random | None = None,
        update_seconds: float = 5.0,
        bpm: int = DEFAULT_BPM,
        logger: logging.Logger | None = None,
    ) -> None:
        self._arena = arena
        self._cues = cues
        self._rng = rng or random.Random()
        self._update_seconds = update_seconds
        self._bpm = int(clamp(bpm, MIN_BPM, MAX_BPM))
        self._logger = logger or LOGGER

    @property
    def bpm(self) -> int:
        return self._bpm

    @property
    def monitoring(self) -> bool:
        return self._arena.is_active(self.UPDATE_TIMER)

    def state(self) -> HeartRateState:
        return HeartRateState(bpm=self._bpm, monitoring=self.monitoring)

    def start(self) -> None:
        if self.monitoring:
            return
        self._arena.call_every(self.UPDATE_TIMER, self._update_seconds, self._update, priority=PRIORITY_UI)
        self._cues.play(AudioCue.HEARTBEAT)
        self._logger.debug("[health] Monitoring started at %d bpm", self._bpm)

    def stop(self) -> None:
        if not self.monitoring:
            return
        self._arena.cancel(self.UPDATE_TIMER)
        self._cues.stop(AudioCue.HEARTBEAT)
        self._logger.debug("[health] Monitoring stopped at %d bpm", self._bpm)

    def toggle(self) -> bool:
        if self.monitoring:
            self.stop()
        else:
            self.start()
        return self.monitoring

    def _update(self) -> None:
        step = 1 if self._rng.random() >= 0.5 else -1
        self._bpm = int(clamp(self._bpm + step, MIN_BPM, MAX_BPM))
