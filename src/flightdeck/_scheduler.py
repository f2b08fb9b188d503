"""Cancellable delayed callbacks.

The connection manager and the simulator never sleep; they arm timers on a
scheduler. Production code passes the running asyncio loop, whose
``call_later`` already has the right shape. Tests pass a virtual clock.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with an ``asyncio.AbstractEventLoop.call_later``-compatible method."""

    def call_later(self, delay: float, callback: Callable[..., object], *args: Any) -> Cancellable: ...


class TimerSlot:
    """Owns at most one pending timer.

    Arming the slot cancels whatever was pending; the slot releases its
    handle before the callback runs, so a callback may re-arm the slot.
    """

    def __init__(self, scheduler: Scheduler) -> None:
        self._scheduler = scheduler
        self._handle: Cancellable | None = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def arm(self, delay_seconds: float, callback: Callable[[], object]) -> None:
        self.cancel()

        def fire() -> None:
            if self._handle is not handle:
                return
            self._handle = None
            callback()

        handle = self._scheduler.call_later(max(0.0, delay_seconds), fire)
        self._handle = handle

    def cancel(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()
