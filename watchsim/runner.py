"""Real-time driver: advances the engine by wall-clock deltas on an asyncio loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable

from .bridge import StateBridge
from .engine import WatchEngine

LOGGER = logging.getLogger(__name__)


class WatchRunner:
    """Ticks the engine in real time and applies bridge commands between ticks."""

    def __init__(
        self,
        engine: WatchEngine,
        *,
        bridge: StateBridge | None = None,
        tick_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self.engine = engine
        self.bridge = bridge
        self.tick_seconds = tick_seconds or engine.timings.tick_seconds
        self._monotonic = monotonic
        self._logger = logger or LOGGER
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None

    def dispatch(self, callback: Callable[[], None]) -> None:
        """Schedule a callback onto the runner loop; safe to call from any thread."""
        loop = self._loop
        if loop is None or loop.is_closed():
            self._logger.debug("[runner] Loop not running; dropping dispatched command")
            return
        loop.call_soon_threadsafe(callback)

    def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()

    async def run(self, *, powered_on: bool = True) -> None:
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        if self.bridge is not None:
            self.bridge.set_dispatch(self.dispatch)
            if not self.bridge.start():
                self._logger.warning("[runner] MQTT bridge unavailable; running without it")
                self.bridge = None
        self.engine.start(powered_on=powered_on)
        self._logger.info("[runner] Simulation started (tick %.2fs)", self.tick_seconds)
        last = self._monotonic()
        try:
            while not self._stop_event.is_set():
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self.tick_seconds)
                now = self._monotonic()
                self.engine.advance(max(0.0, now - last))
                last = now
                if self.bridge is not None:
                    self.bridge.flush()
        finally:
            self.engine.shutdown()
            if self.bridge is not None:
                self.bridge.stop()
            self._loop = None
            self._logger.info("[runner] Simulation stopped")
