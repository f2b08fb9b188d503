"""In-memory telemetry store.

This is the only component allowed to mutate live telemetry state. Each
action applies its whole update before observers are notified, so any read
made after a mutation sees ``current_packet``, ``history`` and
``session_maxima`` together, never a partially applied update.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from flightdeck._constants import HISTORY_CAPACITY, LOG_CAPACITY
from flightdeck.models.log import LogEntry, LogType
from flightdeck.models.maxima import SessionMaxima
from flightdeck.models.telemetry import TelemetryPacket
from flightdeck.state.events import StoreChange, StoreObserver

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Immutable view of the whole store at one point in time."""

    current_packet: TelemetryPacket | None
    history: tuple[TelemetryPacket, ...]
    session_maxima: SessionMaxima
    logs: tuple[LogEntry, ...]
    is_connected: bool
    is_simulating: bool
    selected_device: str
    follow_latest: bool


class TelemetryStore:
    """Single owner of the live telemetry state.

    One instance is created at startup and shared by the connection
    manager, the simulator and any display component. Consumers call
    :meth:`subscribe` to be told after each completed mutation.

    History and log trail are bounded FIFO buffers: when full, the oldest
    element is evicted.
    """

    def __init__(
        self,
        *,
        history_capacity: int = HISTORY_CAPACITY,
        log_capacity: int = LOG_CAPACITY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if history_capacity <= 0 or log_capacity <= 0:
            raise ValueError("history_capacity and log_capacity must be positive")
        self._clock = clock
        self._history: deque[TelemetryPacket] = deque(maxlen=history_capacity)
        self._logs: deque[LogEntry] = deque(maxlen=log_capacity)
        self._current_packet: TelemetryPacket | None = None
        self._session_maxima = SessionMaxima()
        self._is_connected = False
        self._is_simulating = False
        self._selected_device = ""
        self._follow_latest = True
        self._observers: list[StoreObserver] = []

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, observer: StoreObserver) -> Callable[[], None]:
        """Register *observer*; returns a callable that unregisters it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, change: StoreChange) -> None:
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception:
                _logger.exception("Store observer %r failed on %s", observer, change)

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def current_packet(self) -> TelemetryPacket | None:
        return self._current_packet

    @property
    def history(self) -> tuple[TelemetryPacket, ...]:
        return tuple(self._history)

    @property
    def history_capacity(self) -> int:
        return self._history.maxlen or 0

    @property
    def session_maxima(self) -> SessionMaxima:
        return self._session_maxima

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        return tuple(self._logs)

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def is_simulating(self) -> bool:
        return self._is_simulating

    @property
    def selected_device(self) -> str:
        return self._selected_device

    @property
    def follow_latest(self) -> bool:
        return self._follow_latest

    def snapshot(self) -> TelemetrySnapshot:
        """Return every readable field together."""
        return TelemetrySnapshot(
            current_packet=self._current_packet,
            history=tuple(self._history),
            session_maxima=self._session_maxima,
            logs=tuple(self._logs),
            is_connected=self._is_connected,
            is_simulating=self._is_simulating,
            selected_device=self._selected_device,
            follow_latest=self._follow_latest,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def add_telemetry_packet(self, packet: TelemetryPacket) -> None:
        """Make *packet* current, append it to history and fold it into the maxima."""
        # deque(maxlen=...) evicts the oldest packet on overflow.
        self._history.append(packet)
        self._session_maxima = self._session_maxima.merged_with(packet)
        self._current_packet = packet
        self._notify(StoreChange.PACKET)

    def add_log(self, entry: LogEntry) -> None:
        """Append *entry* to the log trail and mirror it to :mod:`logging`."""
        self._logs.append(entry)
        _logger.log(entry.type.level, "[%s] %s", entry.type.value, entry.message)
        self._notify(StoreChange.LOG)

    def log(self, log_type: LogType, message: str) -> LogEntry:
        """Build a timestamped entry and append it; returns the entry."""
        entry = LogEntry(type=log_type, message=message, timestamp=self._clock())
        self.add_log(entry)
        return entry

    def set_connected(self, connected: bool) -> None:
        self._is_connected = connected
        self._notify(StoreChange.CONNECTION)
        if connected:
            self.log(LogType.SUCCESS, "Connected to telemetry source")
        else:
            self.log(LogType.WARNING, "Disconnected from telemetry source")

    def set_simulating(self, simulating: bool) -> None:
        self._is_simulating = simulating
        self._notify(StoreChange.SIMULATION)
        self.log(LogType.INFO, "Started simulation mode" if simulating else "Stopped simulation mode")

    def set_selected_device(self, device: str) -> None:
        self._selected_device = device
        self._notify(StoreChange.DEVICE)

    def set_follow_latest(self, follow: bool) -> None:
        self._follow_latest = follow
        self._notify(StoreChange.FOLLOW_LATEST)

    def clear_history(self) -> None:
        """Start a new session: empty history and zeroed maxima.

        The log trail and the current packet are left untouched.
        """
        self._history.clear()
        self._session_maxima = SessionMaxima()
        self._notify(StoreChange.HISTORY_CLEARED)
