#!/usr/bin/env python3
"""Run the synthetic flight from the command line.

Prints one line per phase change (or every packet as JSON with ``--json``)
and exits once the vehicle has landed. With ``--serve PORT`` the packets are
also broadcast on ``ws://0.0.0.0:PORT/telemetry`` so a live client (or
``scripts/ws_probe.py``) can connect to a realistic feed.

Examples::

    python scripts/simulate_flight.py --speed 10
    python scripts/simulate_flight.py --json --seed 7 -o flight.jsonl
    python scripts/simulate_flight.py --serve 8080
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TextIO

from aiohttp import web

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from flightdeck import FlightDeckClient, FlightDeckConfig, StoreChange  # noqa: E402
from flightdeck.models.telemetry import FlightPhase, TelemetryPacket  # noqa: E402

_LOG = logging.getLogger("simulate_flight")


class ScaledScheduler:
    """Loop ``call_later`` with every delay divided by *speed*."""

    def __init__(self, loop: asyncio.AbstractEventLoop, speed: float) -> None:
        self._loop = loop
        self._speed = speed

    def call_later(self, delay: float, callback: Callable[..., object], *args: Any) -> asyncio.TimerHandle:
        return self._loop.call_later(delay / self._speed, callback, *args)


def scaled_clock(speed: float) -> Callable[[], float]:
    """Wall clock running *speed* times faster from now on."""
    start = time.time()
    return lambda: start + (time.time() - start) * speed


class Broadcaster:
    """Fan packets out to every connected websocket client."""

    def __init__(self) -> None:
        self._clients: set[web.WebSocketResponse] = set()
        self._pending: set[asyncio.Task[None]] = set()

    async def handle(self, request: web.Request) -> web.WebSocketResponse:
        ws = web.WebSocketResponse()
        await ws.prepare(request)
        self._clients.add(ws)
        _LOG.info("Client connected from %s", request.remote)
        try:
            async for _ in ws:
                pass
        finally:
            self._clients.discard(ws)
            _LOG.info("Client disconnected from %s", request.remote)
        return ws

    def publish(self, packet: TelemetryPacket) -> None:
        if not self._clients:
            return
        task = asyncio.get_running_loop().create_task(self._send(packet.model_dump_json()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, text: str) -> None:
        for ws in list(self._clients):
            if ws.closed:
                continue
            try:
                await ws.send_str(text)
            except ConnectionResetError:
                self._clients.discard(ws)


def _describe(packet: TelemetryPacket, elapsed: float) -> str:
    return (
        f"t={elapsed:6.2f}s  {packet.phase.value:<15} alt={packet.altitude:8.1f}m  "
        f"vz={packet.velocity.z:7.1f}m/s  g={packet.g_force:5.2f}"
    )


async def run(args: argparse.Namespace, out: TextIO) -> int:
    loop = asyncio.get_running_loop()
    config = FlightDeckConfig.from_env(simulator_seed=args.seed)
    client = FlightDeckClient(config, scheduler=ScaledScheduler(loop, args.speed), clock=scaled_clock(args.speed))

    runner: web.AppRunner | None = None
    broadcaster = Broadcaster()
    if args.serve is not None:
        app = web.Application()
        app.router.add_get("/telemetry", broadcaster.handle)
        runner = web.AppRunner(app)
        await runner.setup()
        await web.TCPSite(runner, args.host, args.serve).start()
        _LOG.info("Broadcasting on ws://%s:%s/telemetry", args.host, args.serve)

    done = asyncio.Event()
    last_phase: FlightPhase | None = None

    async with client:
        store = client.store

        def on_change(change: StoreChange) -> None:
            nonlocal last_phase
            if change == StoreChange.PACKET and store.current_packet is not None:
                packet = store.current_packet
                broadcaster.publish(packet)
                if args.json:
                    out.write(packet.model_dump_json() + "\n")
                elif packet.phase != last_phase:
                    out.write(_describe(packet, client.simulator.elapsed) + "\n")
                last_phase = packet.phase
            elif change == StoreChange.SIMULATION and not store.is_simulating:
                done.set()

        unsubscribe = store.subscribe(on_change)
        try:
            client.select_device("Simulation Mode")
            client.toggle_connection()
            await done.wait()
        finally:
            unsubscribe()

        maxima = store.session_maxima
        if not args.json:
            out.write(
                f"\nApogee {maxima.max_altitude:.1f} m, max speed {maxima.max_velocity:.1f} m/s, "
                f"max {maxima.max_g_force:.1f} g, {client.simulator.packets_emitted} packets\n"
            )

    if runner is not None:
        await runner.cleanup()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the synthetic rocket flight.")
    parser.add_argument("--speed", type=float, default=1.0, help="Time-scale factor (default: real time)")
    parser.add_argument("--seed", type=int, default=None, help="Sensor-noise seed for a reproducible run")
    parser.add_argument("--json", action="store_true", help="Print every packet as one JSON object per line")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--serve", type=int, metavar="PORT", help="Also broadcast packets on a websocket")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for --serve")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.speed <= 0:
        parser.error("--speed must be positive")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.serve is not None:
        _LOG.setLevel(logging.INFO)

    out: TextIO = open(args.output, "w", encoding="utf-8") if args.output else sys.stdout  # noqa: SIM115
    try:
        raise SystemExit(asyncio.run(run(args, out)))
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    finally:
        if out is not sys.stdout:
            out.close()


if __name__ == "__main__":
    main()
