"""
MQTT bridge between the engine and external controllers

- Publishes the latest snapshot (retained JSON) on ``<topic_base>/state``
- Accepts ``{"command": "<name>", ...args}`` JSON on ``<topic_base>/command``
- Reports rejected commands on ``<topic_base>/error``

Commands arrive on the paho network thread; they are handed to ``dispatch`` so
the owner (normally the asyncio runner) applies them between ticks.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable
from typing import Any

from .engine import WatchEngine
from .errors import UnknownCommand, WatchError
from .mqtt import WatchMqtt
from .snapshot import WatchSnapshot
from .utils import parse_bool

LOGGER = logging.getLogger(__name__)

CommandArgs = dict[str, Any]
CommandHandler = Callable[[WatchEngine, CommandArgs], Any]
Dispatch = Callable[[Callable[[], None]], None]


def _require(args: CommandArgs, key: str) -> Any:
    if key not in args or args[key] is None:
        raise ValueError(f"Missing argument '{key}'")
    return args[key]


def _flag(args: CommandArgs, key: str) -> bool:
    value = _require(args, key)
    if isinstance(value, bool):
        return value
    return parse_bool(str(value))


def _int(args: CommandArgs, key: str) -> int:
    value = _require(args, key)
    if isinstance(value, bool):
        raise ValueError(f"Argument '{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Argument '{key}' must be an integer") from None


def _set_alarm(engine: WatchEngine, args: CommandArgs) -> Any:
    if "time" in args:
        return engine.set_alarm_from_string(str(args["time"]))
    hour = _require(args, "hour")
    minute = _require(args, "minute")
    return engine.set_alarm(hour, minute)


def _set_wallpaper(engine: WatchEngine, args: CommandArgs) -> Any:
    encoded = args.get("data")
    if not encoded:
        engine.set_wallpaper(None)
        return None
    try:
        data = base64.b64decode(str(encoded), validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("Wallpaper data must be base64") from None
    engine.set_wallpaper(data)
    return None


COMMANDS: dict[str, CommandHandler] = {
    "power_on": lambda engine, _args: engine.power_on(),
    "power_off": lambda engine, _args: engine.power_off(),
    "toggle_power": lambda engine, _args: engine.toggle_power(),
    "navigate": lambda engine, args: engine.navigate(str(_require(args, "view"))),
    "open_app_drawer": lambda engine, _args: engine.open_app_drawer(),
    "press_left_button": lambda engine, _args: engine.press_left_button(),
    "press_right_button": lambda engine, _args: engine.press_right_button(),
    "set_alarm": _set_alarm,
    "cancel_alarm": lambda engine, _args: engine.cancel_alarm(),
    "dismiss_alarm": lambda engine, _args: engine.dismiss_alarm(),
    "start_stopwatch": lambda engine, _args: engine.start_stopwatch(),
    "stop_stopwatch": lambda engine, _args: engine.stop_stopwatch(),
    "reset_stopwatch": lambda engine, _args: engine.reset_stopwatch(),
    "record_lap": lambda engine, _args: engine.record_lap(),
    "delete_lap": lambda engine, args: engine.delete_lap(_int(args, "id")),
    "send_notification": lambda engine, args: engine.send_notification(
        str(_require(args, "message")), args.get("kind") or "message"
    ),
    "mark_all_read": lambda engine, _args: engine.mark_all_read(),
    "delete_notification": lambda engine, args: engine.delete_notification(_int(args, "id")),
    "clear_all_notifications": lambda engine, _args: engine.clear_all_notifications(),
    "set_notification_mode": lambda engine, args: engine.set_notification_mode(str(_require(args, "mode"))),
    "set_wallpaper": _set_wallpaper,
    "set_dark_mode": lambda engine, args: engine.set_dark_mode(_flag(args, "enabled")),
    "set_brightness": lambda engine, args: engine.set_brightness(_int(args, "level")),
    "set_wifi": lambda engine, args: engine.set_wifi(_flag(args, "connected")),
    "set_bluetooth": lambda engine, args: engine.set_bluetooth(_flag(args, "connected")),
    "toggle_heart_rate": lambda engine, _args: engine.toggle_heart_rate(),
    "music_play_pause": lambda engine, _args: engine.music_play_pause(),
    "music_next": lambda engine, _args: engine.music_next(),
    "music_previous": lambda engine, _args: engine.music_previous(),
    "set_charger_connected": lambda engine, args: engine.set_charger_connected(_flag(args, "connected")),
}


class StateBridge:
    def __init__(
        self,
        engine: WatchEngine,
        mqtt: WatchMqtt,
        *,
        dispatch: Dispatch | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.engine = engine
        self.mqtt = mqtt
        self._dispatch = dispatch
        self._logger = logger or LOGGER
        topic_base = mqtt.config.topic_base
        self.state_topic = f"{topic_base}/state"
        self.command_topic = f"{topic_base}/command"
        self.error_topic = f"{topic_base}/error"
        self._pending: WatchSnapshot | None = None
        self.published = 0

    def start(self) -> bool:
        if not self.mqtt.connect():
            return False
        self.engine.add_listener(self._on_snapshot)
        self.mqtt.subscribe(self.command_topic, self._on_command_payload)
        self._pending = self.engine.snapshot()
        self.flush()
        return True

    def stop(self) -> None:
        self.engine.remove_listener(self._on_snapshot)
        self.flush()
        self.mqtt.disconnect()

    def set_dispatch(self, dispatch: Dispatch | None) -> None:
        self._dispatch = dispatch

    def flush(self) -> bool:
        """Publish the most recent snapshot if one is waiting."""
        snapshot = self._pending
        if snapshot is None:
            return False
        self._pending = None
        self.mqtt.publish_json(self.state_topic, snapshot.to_dict(), retain=True)
        self.published += 1
        return True

    def handle_command(self, data: Any) -> Any:
        """Apply one decoded command; failures are logged and reported on the error topic."""
        name = data.get("command") if isinstance(data, dict) else None
        try:
            if not isinstance(name, str) or not name:
                raise UnknownCommand(f"Command payload has no command name: {data!r}")
            handler = COMMANDS.get(name)
            if handler is None:
                raise UnknownCommand(f"Unknown command: {name}")
            args = {key: value for key, value in data.items() if key != "command"}
            return handler(self.engine, args)
        except (WatchError, ValueError, TypeError) as exc:
            self._logger.warning("[bridge] Rejected command %s: %s", name, exc)
            self._publish_error(name, exc)
            return None

    def _on_snapshot(self, snapshot: WatchSnapshot) -> None:
        self._pending = snapshot

    def _on_command_payload(self, payload: str) -> None:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as exc:
            self._logger.warning("[bridge] Ignoring malformed command payload: %s", payload)
            self._publish_error(None, exc)
            return
        if self._dispatch is None:
            self.handle_command(data)
            return
        self._dispatch(lambda: self.handle_command(data))

    def _publish_error(self, command: str | None, exc: Exception) -> None:
        self.mqtt.publish_json(
            self.error_topic,
            {"command": command, "error": type(exc).__name__, "message": str(exc)},
        )
