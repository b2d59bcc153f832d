"""
Battery sources and charge/discharge transition tracking

The monitor polls its source once per tick (first in tick order) and, on a
change of the charging flag, delivers a charge notification and cue while the
device is powered. Transitions observed while the device is off are recorded
but swallowed rather than queued.

Sources:
- SysfsBatterySource: the host's ``/sys/class/power_supply/BAT*`` entry
- SimulatedBatterySource: deterministic drain/charge driven by the logical clock
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol

from .cues import AudioCue, AudioCueManager
from .errors import BatterySourceUnavailable
from .notifications import NotificationCenter, NotificationKind
from .utils import clamp

LOGGER = logging.getLogger(__name__)

BatterySourceKind = Literal["auto", "sysfs", "simulated"]

CHARGER_CONNECTED_MESSAGE = "Charger connected"
CHARGER_DISCONNECTED_MESSAGE = "Charger disconnected"

_DEFAULT_POWER_SUPPLY_ROOT = Path("/sys/class/power_supply")


@dataclass(frozen=True, slots=True)
class BatteryStatus:
    level_percent: int
    charging: bool

    @classmethod
    def clamped(cls, level: float, charging: bool) -> BatteryStatus:
        return cls(level_percent=int(clamp(level, 0, 100)), charging=bool(charging))

    def to_dict(self) -> dict[str, object]:
        return {"level_percent": self.level_percent, "charging": self.charging}


class BatterySource(Protocol):
    def read(self) -> BatteryStatus: ...


class SimulatedBatterySource:
    """Deterministic battery: steady drain unplugged, steady gain while charging."""

    def __init__(
        self,
        clock_ms: Callable[[], int],
        *,
        level: float = 100.0,
        charging: bool = False,
        step_seconds: float = 3.0,
        charge_step: float = 2.0,
        drain_step: float = 0.1,
    ) -> None:
        if step_seconds <= 0:
            raise ValueError("Battery step must be positive")
        self._clock_ms = clock_ms
        self._level = float(clamp(level, 0, 100))
        self._charging = charging
        self._step_ms = int(step_seconds * 1000)
        self._charge_step = charge_step
        self._drain_step = drain_step
        self._settled_ms = clock_ms()

    @property
    def level(self) -> float:
        self._settle()
        return self._level

    @property
    def charging(self) -> bool:
        return self._charging

    def set_charging(self, charging: bool) -> None:
        self._settle()
        self._charging = bool(charging)

    def read(self) -> BatteryStatus:
        self._settle()
        return BatteryStatus.clamped(self._level, self._charging)

    def _settle(self) -> None:
        now = self._clock_ms()
        steps = (now - self._settled_ms) // self._step_ms
        if steps <= 0:
            return
        self._settled_ms += steps * self._step_ms
        delta = self._charge_step if self._charging else -self._drain_step
        self._level = float(clamp(self._level + steps * delta, 0, 100))


class SysfsBatterySource:
    """Read the first ``BAT*`` power supply exposed by the Linux kernel."""

    def __init__(self, root: Path | None = None) -> None:
        root = root or _DEFAULT_POWER_SUPPLY_ROOT
        candidates = sorted(root.glob("BAT*")) if root.exists() else []
        if not candidates:
            raise BatterySourceUnavailable(f"No battery found under {root}")
        self.path = candidates[0]

    def read(self) -> BatteryStatus:
        try:
            capacity = (self.path / "capacity").read_text(encoding="utf-8").strip()
            status = (self.path / "status").read_text(encoding="utf-8").strip().lower()
            level = int(capacity)
        except (OSError, ValueError) as exc:
            raise BatterySourceUnavailable(f"Unable to read battery at {self.path}: {exc}") from exc
        return BatteryStatus.clamped(level, status in {"charging", "full"})


def create_battery_source(
    kind: BatterySourceKind,
    clock_ms: Callable[[], int],
    *,
    step_seconds: float = 3.0,
    sysfs_root: Path | None = None,
    logger: logging.Logger | None = None,
) -> BatterySource:
    """Build the requested source; ``auto`` prefers the host battery when present."""
    log = logger or LOGGER
    if kind in {"auto", "sysfs"}:
        try:
            source = SysfsBatterySource(sysfs_root)
            source.read()
            return source
        except BatterySourceUnavailable as exc:
            log.info("[battery] Host battery unavailable (%s); using simulated battery", exc)
    return SimulatedBatterySource(clock_ms, step_seconds=step_seconds)


class BatteryMonitor:
    """Observes a battery source and reacts to charger transitions."""

    def __init__(
        self,
        source: BatterySource,
        *,
        clock_ms: Callable[[], int],
        notifications: NotificationCenter,
        cues: AudioCueManager,
        powered: Callable[[], bool],
        on_charger_connected: Callable[[], None] | None = None,
        step_seconds: float = 3.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.source = source
        self._clock_ms = clock_ms
        self._notifications = notifications
        self._cues = cues
        self._powered = powered
        self._on_charger_connected = on_charger_connected
        self._step_seconds = step_seconds
        self._logger = logger or LOGGER
        self._status = self._read()

    @property
    def status(self) -> BatteryStatus:
        return self._status

    @property
    def simulated(self) -> bool:
        return isinstance(self.source, SimulatedBatterySource)

    def poll(self, _now: object | None = None) -> BatteryStatus:
        previous = self._status
        current = self._read()
        self._status = current
        if current.charging != previous.charging:
            self._handle_transition(current.charging)
        return current

    def set_charger_connected(self, connected: bool) -> bool:
        """Plug or unplug the simulated charger; returns False for host batteries."""
        if not isinstance(self.source, SimulatedBatterySource):
            self._logger.warning("[battery] Charger can only be toggled on the simulated battery")
            return False
        self.source.set_charging(connected)
        self.poll()
        return True

    def _handle_transition(self, charging: bool) -> None:
        if not self._powered():
            self._logger.debug("[battery] Charging=%s while powered off; event dropped", charging)
            return
        self._logger.info("[battery] Charger %s", "connected" if charging else "disconnected")
        if charging:
            self._cues.play(AudioCue.CHARGE)
            self._notifications.send_notification(CHARGER_CONNECTED_MESSAGE, NotificationKind.CHARGE)
            if self._on_charger_connected:
                self._on_charger_connected()
        else:
            self._cues.play(AudioCue.DISCHARGE)
            self._notifications.send_notification(CHARGER_DISCONNECTED_MESSAGE, NotificationKind.CHARGE)

    def _read(self) -> BatteryStatus:
        try:
            return self.source.read()
        except BatterySourceUnavailable as exc:
            self._fall_back(exc)
            return self.source.read()

    def _fall_back(self, exc: BatterySourceUnavailable) -> None:
        last = getattr(self, "_status", None)
        self._logger.warning("[battery] Battery source failed (%s); switching to simulated battery", exc)
        self.source = SimulatedBatterySource(
            self._clock_ms,
            level=last.level_percent if last else 100.0,
            charging=last.charging if last else False,
            step_seconds=self._step_seconds,
        )
