"""Durable key/value settings stored as a JSON document."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any

from .errors import StorageUnavailable

LOGGER = logging.getLogger(__name__)

PERSISTED_KEYS = ("wallpaper", "notification_mode", "dark_mode", "brightness")


class SettingsStore:
    """Settings kept in memory and mirrored to disk on every change.

    Failed reads or writes mark the store as degraded and keep going with the
    in-memory values. A store created without a path never touches disk.
    """

    def __init__(self, path: Path | None = None, logger: logging.Logger | None = None) -> None:
        self.path = path
        self._logger = logger or LOGGER
        self._values: dict[str, Any] = {}
        self.degraded = False

    def load(self) -> dict[str, Any]:
        try:
            self._values = self._read()
        except StorageUnavailable as exc:
            self._logger.warning("[storage] %s; continuing with in-memory settings", exc)
            self.degraded = True
        return dict(self._values)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        if key not in PERSISTED_KEYS:
            raise KeyError(f"Unknown setting: {key}")
        if key in self._values and self._values[key] == value:
            return
        self._values[key] = value
        self._save()

    def wallpaper(self) -> bytes | None:
        encoded = self._values.get("wallpaper")
        if not encoded:
            return None
        try:
            return base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError, TypeError):
            self._logger.warning("[storage] Stored wallpaper is not valid base64; ignoring it")
            return None

    def set_wallpaper(self, data: bytes | None) -> None:
        self.set("wallpaper", base64.b64encode(data).decode("ascii") if data else None)

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def _read(self) -> dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise StorageUnavailable(f"Failed to read settings file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageUnavailable(f"Settings file {self.path} does not hold an object")
        return {key: value for key, value in data.items() if key in PERSISTED_KEYS}

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self._write(self.path)
        except StorageUnavailable as exc:
            self._logger.warning("[storage] %s; value kept in memory only", exc)
            self.degraded = True
        else:
            self.degraded = False

    def _write(self, path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            raise StorageUnavailable(f"Failed to write settings file {path}: {exc}") from exc
