#!/usr/bin/env python3
"""Run the Windy reporter against a Signal K MQTT gateway.

Configuration comes from ``WINDY_*`` environment variables, or from a JSON
settings file in the plugin layout (``credentials``, ``identity``,
``logic``, ``pathMap``, ``heights``) when ``--settings`` is given.

The Signal K server must publish ``vessels/self/<path>`` topics, e.g. via
the signalk-mqtt-gw plugin.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from skwindy import ReporterConfig, WindyError, WindyReporter  # noqa: E402
from skwindy._mqtt import MqttSensorBus  # noqa: E402

_LOG = logging.getLogger("skwindy.run")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Report Signal K weather data to a Windy.com station.",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="JSON settings file (plugin layout). Defaults to WINDY_* environment variables.",
    )
    parser.add_argument(
        "--mqtt-host",
        default=None,
        help="Signal K MQTT gateway host (overrides WINDY_MQTT_HOST).",
    )
    parser.add_argument(
        "--mqtt-port",
        type=int,
        default=None,
        help="Signal K MQTT gateway port.",
    )
    parser.add_argument(
        "--state",
        type=Path,
        default=None,
        help="State file used to survive restarts.",
    )
    parser.add_argument(
        "--now",
        action="store_true",
        help="Send one forced report after start instead of waiting for the warm-up.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _load_config(args: argparse.Namespace) -> ReporterConfig:
    overrides: dict[str, Any] = {}
    if args.mqtt_host:
        overrides["mqtt_host"] = args.mqtt_host
    if args.mqtt_port is not None:
        overrides["mqtt_port"] = args.mqtt_port
    if args.state is not None:
        overrides["state_path"] = args.state

    if args.settings is None:
        return ReporterConfig.from_env(**overrides)
    settings = json.loads(args.settings.read_text(encoding="utf-8"))
    return ReporterConfig.from_settings(settings, **overrides)


def _print_status(text: str) -> None:
    print(f"[windy] {text}", flush=True)


async def _run(config: ReporterConfig, *, report_now: bool) -> None:
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    bus = MqttSensorBus.from_config(config, loop)
    bus.start()
    try:
        async with WindyReporter(config, bus, on_status=_print_status) as reporter:
            await reporter.start()
            if report_now:
                await reporter.report_now(force=True)
            await stop_event.wait()
            await reporter.stop()
    finally:
        bus.stop()


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _load_config(args)
    except (OSError, json.JSONDecodeError, WindyError) as exc:
        print(f"[windy] Invalid configuration: {exc}", file=sys.stderr)
        return 2
    if not config.mqtt_host:
        print("[windy] No MQTT host configured (--mqtt-host or WINDY_MQTT_HOST)", file=sys.stderr)
        return 2

    _LOG.info(
        "Station %s, interval %s min, MQTT %s:%s",
        config.station_id,
        config.interval_minutes,
        config.mqtt_host,
        config.mqtt_port,
    )
    try:
        asyncio.run(_run(config, report_now=args.now))
    except OSError as exc:  # pragma: no cover - network/system interaction
        print(f"[windy] MQTT connection failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
