"""Screen navigation state."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

LOGGER = logging.getLogger(__name__)


class DeviceView(Enum):
    HOME = "home"
    SETTINGS = "settings"
    ALARM = "alarm"
    MUSIC = "music"
    HEART_RATE = "heart_rate"
    MESSAGES = "messages"
    APP_DRAWER = "app_drawer"

    @classmethod
    def parse(cls, value: DeviceView | str) -> DeviceView:
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown view: {value!r}") from None


class ViewNavigator:
    """Tracks the current view; every call is ignored while the device is off."""

    def __init__(
        self,
        *,
        powered: Callable[[], bool],
        logger: logging.Logger | None = None,
    ) -> None:
        self._powered = powered
        self._logger = logger or LOGGER
        self._view = DeviceView.HOME

    @property
    def current_view(self) -> DeviceView:
        return self._view

    def navigate(self, view: DeviceView | str) -> bool:
        target = DeviceView.parse(view)
        if not self._powered():
            self._logger.debug("[nav] Ignoring navigate(%s) while powered off", target.value)
            return False
        self._set(target)
        return True

    def force_home(self) -> None:
        self._set(DeviceView.HOME)

    def _set(self, view: DeviceView) -> None:
        if view is not self._view:
            self._logger.debug("[nav] %s -> %s", self._view.value, view.value)
        self._view = view
