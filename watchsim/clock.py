"""
Logical clock and timer arena

Every timer in the simulation is a named, cancellable entry in a single
``TimerArena``. Logical time is an integer millisecond offset from an origin
datetime, so advancing the clock is exact and reproducible:

- ``TimerArena.call_later`` / ``call_every`` register one-shot or recurring timers
- ``TimerHandle.dispose`` cancels a timer; disposing twice is a no-op
- ``TimerArena.advance`` fires due timers in order of (due time, priority, registration)
- ``ClockTicker`` owns the 1Hz tick and fans it out to ordered tick listeners

Registering a timer under a name that is already live replaces the previous
timer, which is how popups and sound stops get "last writer wins" semantics.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from .datetime_utils import local_now

LOGGER = logging.getLogger(__name__)

PRIORITY_TICK = 0
PRIORITY_SCHEDULE = 10
PRIORITY_UI = 20

ORDER_BATTERY = 10
ORDER_ALARM = 20
ORDER_DEFAULT = 50

TickListener = Callable[[datetime], None]


def _to_ms(seconds: float) -> int:
    return max(0, int(round(seconds * 1000)))


class TimerHandle:
    """A registered logical timer."""

    def __init__(
        self,
        arena: TimerArena,
        name: str,
        callback: Callable[[], None],
        due_ms: int,
        interval_ms: int | None,
        priority: int,
    ) -> None:
        self._arena = arena
        self.name = name
        self.callback = callback
        self.due_ms = due_ms
        self.interval_ms = interval_ms
        self.priority = priority
        self.disposed = False
        self._token = 0

    @property
    def active(self) -> bool:
        return not self.disposed

    @property
    def recurring(self) -> bool:
        return self.interval_ms is not None

    def remaining_ms(self) -> int:
        return max(0, self.due_ms - self._arena.now_ms)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        self._arena._forget(self)

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else f"due={self.due_ms}"
        return f"TimerHandle({self.name!r}, {state})"


class TimerArena:
    """Owns every logical timer and the current logical time."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER
        self._now_ms = 0
        self._timers: dict[str, TimerHandle] = {}
        self._queue: list[tuple[int, int, int, TimerHandle]] = []
        self._sequence = itertools.count()
        self.fired = 0

    @property
    def now_ms(self) -> int:
        return self._now_ms

    def call_later(
        self,
        name: str,
        delay_seconds: float,
        callback: Callable[[], None],
        *,
        priority: int = PRIORITY_UI,
    ) -> TimerHandle:
        return self._register(name, callback, _to_ms(delay_seconds), None, priority)

    def call_every(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], None],
        *,
        priority: int = PRIORITY_SCHEDULE,
    ) -> TimerHandle:
        interval_ms = _to_ms(interval_seconds)
        if interval_ms <= 0:
            raise ValueError("Timer interval must be positive")
        return self._register(name, callback, interval_ms, interval_ms, priority)

    def get(self, name: str) -> TimerHandle | None:
        return self._timers.get(name)

    def is_active(self, name: str) -> bool:
        return name in self._timers

    def active_names(self) -> list[str]:
        return sorted(self._timers)

    def cancel(self, name: str) -> bool:
        handle = self._timers.get(name)
        if handle is None:
            return False
        handle.dispose()
        return True

    def advance(self, seconds: float) -> None:
        self.advance_to(self._now_ms + _to_ms(seconds))

    def advance_to(self, target_ms: int) -> None:
        if target_ms < self._now_ms:
            raise ValueError("Logical time cannot move backwards")
        while self._queue:
            due_ms, _priority, _seq, handle = self._queue[0]
            if due_ms > target_ms:
                break
            heapq.heappop(self._queue)
            if handle.disposed or handle._token != _seq:
                continue
            self._now_ms = due_ms
            if handle.interval_ms is not None:
                handle.due_ms = due_ms + handle.interval_ms
                self._push(handle)
            else:
                handle.disposed = True
                self._timers.pop(handle.name, None)
            self._fire(handle)
        self._now_ms = target_ms

    def dispose_all(self) -> None:
        for handle in list(self._timers.values()):
            handle.dispose()

    def _register(
        self,
        name: str,
        callback: Callable[[], None],
        delay_ms: int,
        interval_ms: int | None,
        priority: int,
    ) -> TimerHandle:
        existing = self._timers.get(name)
        if existing is not None:
            existing.dispose()
        handle = TimerHandle(self, name, callback, self._now_ms + delay_ms, interval_ms, priority)
        self._timers[name] = handle
        self._push(handle)
        return handle

    def _push(self, handle: TimerHandle) -> None:
        seq = next(self._sequence)
        handle._token = seq
        heapq.heappush(self._queue, (handle.due_ms, handle.priority, seq, handle))

    def _forget(self, handle: TimerHandle) -> None:
        if self._timers.get(handle.name) is handle:
            del self._timers[handle.name]

    def _fire(self, handle: TimerHandle) -> None:
        self.fired += 1
        try:
            handle.callback()
        except Exception as exc:
            self._logger.error("[clock] Timer '%s' callback failed: %s", handle.name, exc, exc_info=True)


class ClockTicker:
    """1Hz logical clock; the heartbeat for alarm checks and displays."""

    TICK_TIMER = "clock.tick"

    def __init__(
        self,
        arena: TimerArena,
        *,
        origin: datetime | None = None,
        tick_seconds: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.arena = arena
        self.origin = origin or local_now()
        if self.origin.tzinfo is None:
            self.origin = self.origin.astimezone()
        self.tick_seconds = tick_seconds
        self._logger = logger or LOGGER
        self._listeners: dict[str, tuple[int, int, TickListener]] = {}
        self._order = itertools.count()
        self._handle: TimerHandle | None = None
        self.tick_count = 0

    def now_ms(self) -> int:
        return self.arena.now_ms

    def now(self) -> datetime:
        return self.origin + timedelta(milliseconds=self.arena.now_ms)

    @property
    def running(self) -> bool:
        return self._handle is not None and self._handle.active

    def start(self) -> None:
        if self.running:
            return
        self._handle = self.arena.call_every(self.TICK_TIMER, self.tick_seconds, self._tick, priority=PRIORITY_TICK)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.dispose()
            self._handle = None

    def subscribe(self, name: str, listener: TickListener, *, order: int = ORDER_DEFAULT) -> None:
        previous = self._listeners.get(name)
        sequence = previous[1] if previous else next(self._order)
        self._listeners[name] = (order, sequence, listener)

    def unsubscribe(self, name: str) -> bool:
        return self._listeners.pop(name, None) is not None

    def is_subscribed(self, name: str) -> bool:
        return name in self._listeners

    def advance(self, seconds: float) -> None:
        self.arena.advance(seconds)

    def _tick(self) -> None:
        self.tick_count += 1
        now = self.now()
        listeners = sorted(self._listeners.items(), key=lambda item: (item[1][0], item[1][1]))
        for name, (_order, _sequence, listener) in listeners:
            if name not in self._listeners:
                continue
            try:
                listener(now)
            except Exception as exc:
                self._logger.error("[clock] Tick listener '%s' failed: %s", name, exc, exc_info=True)
