#!/usr/bin/env python3
"""Passive probe for a live telemetry websocket.

Connects through the same connection manager the library uses, so you see
exactly what it would accept or reject: every validated packet, every
rejected frame with its reason, and every reconnect attempt.

Examples::

    python scripts/ws_probe.py
    python scripts/ws_probe.py --url ws://192.168.4.1:8080/telemetry --duration 60
    FLIGHTDECK_WS_URL=wss://ground.example/telemetry python scripts/ws_probe.py --quiet
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys
import time
from collections import Counter
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from flightdeck import ConnectionState, FlightDeckClient, FlightDeckConfig, LogType, StoreChange  # noqa: E402
from flightdeck._redact import redact_url  # noqa: E402


async def run(args: argparse.Namespace) -> int:
    overrides = {"ws_url": args.url} if args.url else {}
    config = FlightDeckConfig.from_env(**overrides)

    counts: Counter[str] = Counter()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def stop_handler(_sig: int, _frame: object) -> None:
        loop.call_soon_threadsafe(stop.set)

    signal.signal(signal.SIGINT, stop_handler)
    signal.signal(signal.SIGTERM, stop_handler)

    started = time.monotonic()
    async with FlightDeckClient(config) as client:
        store = client.store
        connection = client.connection

        def on_change(change: StoreChange) -> None:
            if change == StoreChange.PACKET and store.current_packet is not None:
                counts["packets"] += 1
                packet = store.current_packet
                if not args.quiet:
                    print(
                        f"{packet.timestamp}  {packet.phase.value:<15} alt={packet.altitude:8.1f}m "
                        f"batt={packet.battery:.2f}V rssi={packet.rssi:.0f}dBm"
                    )
            elif change == StoreChange.LOG and store.logs:
                entry = store.logs[-1]
                counts[entry.type.value] += 1
                print(f"[{entry.type.value}] {entry.message}", file=sys.stderr)
                if connection.state == ConnectionState.GIVEN_UP:
                    stop.set()

        unsubscribe = store.subscribe(on_change)
        try:
            print(f"Probing {redact_url(config.ws_url)}", file=sys.stderr)
            client.connect_live()
            # --duration elapsing is a normal end of the probe.
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=args.duration)
        finally:
            unsubscribe()

    elapsed = time.monotonic() - started
    rate = counts["packets"] / elapsed if elapsed > 0 else 0.0
    print(
        f"\n{counts['packets']} packets in {elapsed:.1f}s ({rate:.1f}/s), "
        f"{counts[LogType.ERROR.value]} errors, {counts[LogType.WARNING.value]} warnings",
        file=sys.stderr,
    )
    return 1 if counts["packets"] == 0 else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Watch a telemetry websocket through flightdeck's validator.")
    parser.add_argument("--url", help="Websocket URL (default: FLIGHTDECK_WS_URL or ws://localhost:8080/telemetry)")
    parser.add_argument("--duration", type=float, default=None, help="Stop after N seconds (default: until Ctrl-C)")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print log entries and the summary")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    raise SystemExit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
