#!/usr/bin/env python3
"""Watch simulator daemon: runs the engine in real time with an optional MQTT bridge."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal

from watchsim.bridge import StateBridge
from watchsim.config import WatchConfig
from watchsim.engine import WatchEngine
from watchsim.mqtt import WatchMqtt
from watchsim.runner import WatchRunner

LOGGER = logging.getLogger("watchsim-daemon")


async def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--powered-off", action="store_true", help="Start with the device powered off")
    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = WatchConfig.from_env()
    engine = WatchEngine.from_config(config)
    bridge = StateBridge(engine, WatchMqtt(config.mqtt)) if config.mqtt.enabled else None
    runner = WatchRunner(engine, bridge=bridge)

    loop = asyncio.get_running_loop()

    def _handle_signal(signum: int) -> None:
        LOGGER.info("Received signal %s, shutting down", signum)
        runner.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_signal, sig)

    await runner.run(powered_on=config.start_powered_on and not args.powered_off)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
