"""Live telemetry connection with bounded exponential backoff.

Owns:
- the single live transport handle
- packet validation of inbound frames
- the reconnect timer and retry counter
"""

from __future__ import annotations

import logging
from enum import StrEnum

from flightdeck._constants import DEFAULT_WS_URL, MAX_RETRIES, RETRY_BASE_DELAY_MS, RETRY_MAX_DELAY_MS
from flightdeck._redact import redact_url
from flightdeck._scheduler import Scheduler, TimerSlot
from flightdeck._transport import TransportFactory, TransportHandle
from flightdeck.config import FlightDeckConfig
from flightdeck.exceptions import FlightDeckConnectionLost, FlightDeckTransportError
from flightdeck.ingestion.validate import Err, Ok, parse_frame
from flightdeck.models.log import LogType
from flightdeck.state.store import TelemetryStore

_logger = logging.getLogger(__name__)


class ConnectionState(StrEnum):
    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    RETRYING = "retrying"
    CLOSED = "closed"
    GIVEN_UP = "given-up"


def backoff_delay_ms(
    attempt: int,
    base_ms: int = RETRY_BASE_DELAY_MS,
    max_ms: int = RETRY_MAX_DELAY_MS,
) -> int:
    """Delay before reconnect attempt *attempt* (0-based): ``min(base * 2**attempt, max)``."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    # Cap the exponent so huge attempt counts cannot build huge ints.
    return min(base_ms * (2 ** min(attempt, 32)), max_ms)


class _HandleListener:
    """Routes one transport's events back to the manager.

    Each connection attempt gets its own listener; the manager ignores
    events from any listener that is no longer current.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self._manager = manager

    def on_open(self) -> None:
        self._manager._handle_open(self)

    def on_message(self, data: str) -> None:
        self._manager._handle_message(self, data)

    def on_error(self, error: FlightDeckTransportError) -> None:
        self._manager._handle_error(self, error)

    def on_close(self) -> None:
        self._manager._handle_close(self)


class ConnectionManager:
    """Keeps one websocket feeding validated packets into a :class:`TelemetryStore`.

    States::

        idle -> connecting -> open -> closed -> retrying -> connecting ...
                                          \\-> given-up

    ``given-up`` is left only through a manual :meth:`connect`.

    Usage::

        manager = ConnectionManager(store, transport_factory=factory, scheduler=loop)
        manager.connect()
        ...
        manager.disconnect()
    """

    def __init__(
        self,
        store: TelemetryStore,
        *,
        transport_factory: TransportFactory,
        scheduler: Scheduler,
        url: str = DEFAULT_WS_URL,
        max_retries: int = MAX_RETRIES,
        retry_base_delay_ms: int = RETRY_BASE_DELAY_MS,
        retry_max_delay_ms: int = RETRY_MAX_DELAY_MS,
        enabled: bool = True,
    ) -> None:
        self._store = store
        self._transport_factory = transport_factory
        self._url = url
        self._max_retries = max_retries
        self._retry_base_delay_ms = retry_base_delay_ms
        self._retry_max_delay_ms = retry_max_delay_ms
        self._enabled = enabled

        self._state = ConnectionState.IDLE
        self._retry_count = 0
        self._retry_timer = TimerSlot(scheduler)
        self._handle: TransportHandle | None = None
        self._listener: _HandleListener | None = None
        self._last_retry_delay_ms: int | None = None
        self._last_error: Exception | None = None

    @classmethod
    def from_config(
        cls,
        config: FlightDeckConfig,
        store: TelemetryStore,
        *,
        transport_factory: TransportFactory,
        scheduler: Scheduler,
        enabled: bool = True,
    ) -> ConnectionManager:
        return cls(
            store,
            transport_factory=transport_factory,
            scheduler=scheduler,
            url=config.ws_url,
            max_retries=config.max_retries,
            retry_base_delay_ms=config.retry_base_delay_ms,
            retry_max_delay_ms=config.retry_max_delay_ms,
            enabled=enabled,
        )

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def url(self) -> str:
        return self._url

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def retry_pending(self) -> bool:
        return self._retry_timer.active

    @property
    def last_retry_delay_ms(self) -> int | None:
        """Delay of the most recently scheduled reconnect, if any."""
        return self._last_retry_delay_ms

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if self._enabled == value:
            return
        self._enabled = value
        if not value:
            self.disconnect()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Open the transport unless disabled or already open/connecting."""
        if not self._enabled:
            _logger.debug("connect() ignored: connection disabled")
            return
        if self._state in (ConnectionState.OPEN, ConnectionState.CONNECTING):
            return
        if self._state == ConnectionState.GIVEN_UP:
            self._retry_count = 0
        self._retry_timer.cancel()
        self._open_transport()

    def disconnect(self) -> None:
        """Cancel any pending retry, close the transport and return to ``idle``."""
        was_open = self._state == ConnectionState.OPEN
        self._retry_timer.cancel()
        self._release_handle()
        self._state = ConnectionState.IDLE
        self._retry_count = 0
        self._last_retry_delay_ms = None
        # The connected flag is shared with the simulator; only clear what we set.
        if was_open and self._store.is_connected:
            self._store.set_connected(False)

    def close(self) -> None:
        """Teardown alias for :meth:`disconnect`."""
        self.disconnect()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _release_handle(self) -> None:
        handle = self._handle
        self._handle = None
        self._listener = None
        if handle is not None:
            handle.close()

    def _open_transport(self) -> None:
        self._release_handle()
        listener = _HandleListener(self)
        self._listener = listener
        self._state = ConnectionState.CONNECTING
        _logger.debug("Opening %s (attempt %s)", redact_url(self._url), self._retry_count)
        try:
            self._handle = self._transport_factory(self._url, listener)
        except Exception as exc:
            # Factory failures (malformed URL, no running loop) are reported
            # like any other failed connection attempt.
            self._last_error = exc
            self._store.log(LogType.ERROR, f"Failed to connect: {exc}")
            self._handle_close(listener)

    def _retry(self) -> None:
        if not self._enabled or self._state != ConnectionState.RETRYING:
            return
        self._open_transport()

    def _handle_open(self, listener: _HandleListener) -> None:
        if listener is not self._listener:
            return
        self._state = ConnectionState.OPEN
        self._retry_count = 0
        self._last_error = None
        self._store.set_connected(True)
        self._store.log(LogType.SUCCESS, f"Connected to WebSocket: {redact_url(self._url)}")

    def _handle_message(self, listener: _HandleListener, data: str) -> None:
        if listener is not self._listener:
            return
        match parse_frame(data):
            case Ok(value=packet):
                self._store.add_telemetry_packet(packet)
            case Err(error=error):
                _logger.debug("Rejected frame: %s", error.reason)
                self._store.log(LogType.ERROR, f"Invalid telemetry packet: {error.reason}")

    def _handle_error(self, listener: _HandleListener, error: FlightDeckTransportError) -> None:
        if listener is not self._listener:
            return
        self._last_error = error
        self._store.log(LogType.ERROR, f"WebSocket error: {error}")

    def _handle_close(self, listener: _HandleListener) -> None:
        if listener is not self._listener:
            return
        was_open = self._state == ConnectionState.OPEN
        self._handle = None
        self._listener = None
        self._state = ConnectionState.CLOSED
        if was_open and self._store.is_connected:
            self._store.set_connected(False)
        if not self._enabled:
            return

        lost = FlightDeckConnectionLost(
            f"Connection to {redact_url(self._url)} lost",
            url=redact_url(self._url),
            retry_count=self._retry_count,
        )
        self._last_error = lost

        if self._retry_count < self._max_retries:
            delay_ms = backoff_delay_ms(self._retry_count, self._retry_base_delay_ms, self._retry_max_delay_ms)
            self._state = ConnectionState.RETRYING
            self._last_retry_delay_ms = delay_ms
            self._store.log(LogType.WARNING, f"Connection lost. Retrying in {delay_ms}ms...")
            self._retry_count += 1
            self._retry_timer.arm(delay_ms / 1000.0, self._retry)
            return

        self._state = ConnectionState.GIVEN_UP
        self._store.log(
            LogType.ERROR,
            f"{lost}. Gave up after {self._max_retries} retries; reconnect manually.",
        )
