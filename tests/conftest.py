from __future__ import annotations

import copy
import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pytest

from flightdeck.exceptions import FlightDeckTransportError
from flightdeck.models.telemetry import TelemetryPacket

_BASE_PACKET: dict[str, Any] = {
    "timestamp": 1_700_000_000_000,
    "imu": {
        "accel": {"x": 0.0, "y": 0.0, "z": 9.81},
        "gyro": {"x": 0.1, "y": -0.2, "z": 0.05},
        "mag": {"x": 0.25, "y": 0.05, "z": 0.9},
    },
    "gps": {"lat": 35.0844, "lon": -106.6504, "alt": 1500.0, "heading": 35.0},
    "baro": {"pressure": 1013.25, "altitude": 0.0},
    "velocity": {"x": 0.0, "y": 0.0, "z": 0.0},
    "phase": "pre-flight",
    "battery": 4.1,
    "rssi": -42.0,
}


def _deep_update(target: dict[str, Any], patch: dict[str, Any]) -> None:
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _deep_update(target[key], value)
        else:
            target[key] = value


@pytest.fixture
def raw_packet() -> Callable[..., dict[str, Any]]:
    """Factory for wire-format packets; keyword patches are merged recursively."""

    def build(**patch: Any) -> dict[str, Any]:
        data = copy.deepcopy(_BASE_PACKET)
        _deep_update(data, patch)
        return data

    return build


@pytest.fixture
def packet(raw_packet: Callable[..., dict[str, Any]]) -> Callable[..., TelemetryPacket]:
    def build(**patch: Any) -> TelemetryPacket:
        return TelemetryPacket.model_validate(raw_packet(**patch))

    return build


# ---------------------------------------------------------------------------
# Virtual scheduler
# ---------------------------------------------------------------------------


class _FakeTimer:
    def __init__(self, when: float) -> None:
        self.when = when
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """``call_later`` on a virtual clock; nothing runs until :meth:`advance`."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self._queue: list[tuple[float, int, _FakeTimer, Callable[..., object], tuple[Any, ...]]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[..., object], *args: Any) -> _FakeTimer:
        timer = _FakeTimer(self.now + delay)
        heapq.heappush(self._queue, (timer.when, next(self._seq), timer, callback, args))
        return timer

    @property
    def pending(self) -> list[float]:
        """Delays (from now) of live timers, soonest first."""
        return sorted(when - self.now for when, _, timer, _, _ in self._queue if not timer.cancelled)

    def advance(self, seconds: float) -> None:
        deadline = self.now + seconds
        while self._queue and self._queue[0][0] <= deadline:
            when, _, timer, callback, args = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self.now = max(self.now, when)
            callback(*args)
        self.now = deadline

    def run_until_idle(self, limit: float = 3600.0) -> None:
        """Run timers until none are pending or *limit* virtual seconds pass."""
        end = self.now + limit
        while self.now < end:
            live = [entry for entry in self._queue if not entry[2].cancelled]
            if not live:
                return
            self.advance(max(0.0, min(entry[0] for entry in live) - self.now))


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def make_scheduler() -> Callable[[], FakeScheduler]:
    return FakeScheduler


# ---------------------------------------------------------------------------
# Fake transport
# ---------------------------------------------------------------------------


@dataclass
class FakeTransport:
    url: str
    listener: Any
    closed: bool = False

    def close(self) -> None:
        self.closed = True

    # Drive the listener as the network would.
    def open(self) -> None:
        self.listener.on_open()

    def receive(self, data: str) -> None:
        self.listener.on_message(data)

    def fail(self, message: str = "boom") -> None:
        self.listener.on_error(FlightDeckTransportError(message, url=self.url))

    def drop(self) -> None:
        self.listener.on_close()


@dataclass
class FakeTransportFactory:
    opened: list[FakeTransport] = field(default_factory=list)

    def __call__(self, url: str, listener: Any) -> FakeTransport:
        transport = FakeTransport(url=url, listener=listener)
        self.opened.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.opened[-1]


@pytest.fixture
def transports() -> FakeTransportFactory:
    return FakeTransportFactory()
