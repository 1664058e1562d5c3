#!/usr/bin/env python3
"""Run the watch companion bridge from a terminal.

Reads configuration from ``PEBBLEWX_*`` environment variables, serves the
configuration page locally, fetches the weather once on start and again
whenever the watch sends a message.

Examples:
    PEBBLEWX_API_KEY=... PEBBLEWX_LATITUDE=52.52 PEBBLEWX_LONGITUDE=13.40 \\
        python scripts/run_bridge.py --port 8080
    python scripts/run_bridge.py --once -v
    python scripts/run_bridge.py --returned '%7B%22lightColorScheme%22%3Atrue%2C%22degreeCelsius%22%3Afalse%7D'
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pebblewx import BridgeConfig, BridgeError, BridgeRuntime, ConfigurationReturned  # noqa: E402


async def main() -> int:
    parser = argparse.ArgumentParser(description="Keep a Pebble watchface fed with weather and settings.")
    parser.add_argument("--host", default="127.0.0.1", help="Configuration page bind address")
    parser.add_argument("--port", type=int, default=8080, help="Configuration page port")
    parser.add_argument("--once", action="store_true", help="Fetch and send the weather once, then exit")
    parser.add_argument("--configure", action="store_true", help="Open the configuration page and wait for it")
    parser.add_argument("--returned", metavar="PAYLOAD", help="Forward an encoded configuration payload, then exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = BridgeConfig.from_env()
    except BridgeError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    async with BridgeRuntime(config) as runtime:
        if args.returned is not None:
            result = await runtime.coordinator.dispatch(ConfigurationReturned(response=args.returned))
            return 0 if result.ok else 1

        result = await runtime.ready()
        if args.once:
            return 0 if result.ok else 1

        await runtime.serve_config_page(args.host, args.port)
        if args.configure:
            await runtime.configure()

        await asyncio.Event().wait()
    return 0


if __name__ == "__main__":
    try:
        raise SystemExit(asyncio.run(main()))
    except KeyboardInterrupt:
        raise SystemExit(130) from None
