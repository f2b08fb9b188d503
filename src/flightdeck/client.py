"""High-level async client tying the store to its two telemetry sources."""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import aiohttp

from flightdeck._constants import SIMULATION_DEVICE
from flightdeck._scheduler import Scheduler
from flightdeck._transport import TransportFactory, WebSocketTransport
from flightdeck.config import FlightDeckConfig
from flightdeck.connection import ConnectionManager
from flightdeck.exceptions import FlightDeckError
from flightdeck.models.log import LogType
from flightdeck.models.telemetry import FlightPhase
from flightdeck.simulator.runner import FlightSimulator
from flightdeck.state.store import TelemetryStore

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentMetrics:
    """Headline numbers derived from the current packet."""

    altitude: float
    velocity: float
    acceleration: float
    g_force: float
    battery: float
    rssi: float
    phase: FlightPhase


class FlightDeckClient:
    """Owns the store, the live connection and the simulator.

    Live and simulated sources are mutually exclusive: starting one stops
    the other.

    Usage::

        async with FlightDeckClient(config) as client:
            client.select_device("Simulation Mode")
            client.toggle_connection()
    """

    def __init__(
        self,
        config: FlightDeckConfig | None = None,
        *,
        store: TelemetryStore | None = None,
        session: aiohttp.ClientSession | None = None,
        transport_factory: TransportFactory | None = None,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or FlightDeckConfig()
        self._store = store or TelemetryStore(
            history_capacity=self._config.history_capacity,
            log_capacity=self._config.log_capacity,
        )
        self._external_session = session is not None
        self._http_session = session
        self._transport_factory = transport_factory
        self._scheduler = scheduler
        self._clock = clock
        self._connection: ConnectionManager | None = None
        self._simulator: FlightSimulator | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> FlightDeckClient:
        scheduler = self._scheduler or asyncio.get_running_loop()
        transport_factory = self._transport_factory
        if transport_factory is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport_factory = functools.partial(WebSocketTransport.open, self._http_session)
        self._connection = ConnectionManager.from_config(
            self._config,
            self._store,
            transport_factory=transport_factory,
            scheduler=scheduler,
            enabled=False,
        )
        self._simulator = FlightSimulator.from_config(
            self._config,
            self._store,
            scheduler=scheduler,
            clock=self._clock,
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._simulator is not None:
            self._simulator.close()
        if self._connection is not None:
            self._connection.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._simulator = None
        self._connection = None

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def config(self) -> FlightDeckConfig:
        return self._config

    @property
    def store(self) -> TelemetryStore:
        return self._store

    @property
    def connection(self) -> ConnectionManager:
        return self._require_connection()

    @property
    def simulator(self) -> FlightSimulator:
        return self._require_simulator()

    def available_devices(self) -> list[str]:
        """Telemetry sources offered for selection."""
        devices = list(self._config.devices)
        if self._config.simulator_enabled:
            devices.insert(0, SIMULATION_DEVICE)
        return devices

    def current_metrics(self) -> CurrentMetrics | None:
        packet = self._store.current_packet
        if packet is None:
            return None
        return CurrentMetrics(
            altitude=packet.altitude,
            velocity=packet.velocity_magnitude,
            acceleration=packet.acceleration_magnitude,
            g_force=packet.g_force,
            battery=packet.battery,
            rssi=packet.rssi,
            phase=packet.phase,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_connection(self) -> ConnectionManager:
        if self._connection is None:
            raise FlightDeckError("Client not initialized. Use 'async with FlightDeckClient(...) as client:'")
        return self._connection

    def _require_simulator(self) -> FlightSimulator:
        if self._simulator is None:
            raise FlightDeckError("Client not initialized. Use 'async with FlightDeckClient(...) as client:'")
        return self._simulator

    def _wants_simulation(self) -> bool:
        device = self._store.selected_device
        return not device or "Simulation" in device

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def select_device(self, device: str) -> None:
        self._store.set_selected_device(device)
        self._store.log(LogType.INFO, f"Selected device: {device}")

    def toggle_connection(self) -> None:
        """Connect or disconnect the selected source.

        While connected this stops the simulation (when simulating) or drops
        the live link. Otherwise an empty or simulation selection starts the
        simulator and any other selection connects live.
        """
        if self._store.is_connected:
            if self._store.is_simulating:
                self.stop_simulation()
            else:
                self.disconnect()
            return

        if self._wants_simulation():
            if not self._config.simulator_enabled:
                self._store.log(LogType.ERROR, "Simulation mode is disabled")
                return
            self.start_simulation()
        else:
            self.connect_live()

    def start_simulation(self) -> None:
        connection = self._require_connection()
        simulator = self._require_simulator()
        connection.enabled = False
        if not self._store.is_simulating:
            self._store.set_simulating(True)
        simulator.start_simulation()

    def stop_simulation(self) -> None:
        simulator = self._require_simulator()
        simulator.stop_simulation()
        if self._store.is_simulating:
            self._store.set_simulating(False)

    def connect_live(self) -> None:
        connection = self._require_connection()
        if self._store.is_simulating or self._require_simulator().is_running:
            self.stop_simulation()
        connection.enabled = True
        connection.connect()

    def disconnect(self) -> None:
        """Stop whichever source is feeding the store."""
        connection = self._require_connection()
        if self._store.is_simulating or self._require_simulator().is_running:
            self.stop_simulation()
        if connection.enabled:
            # Disabling disconnects.
            connection.enabled = False
        else:
            connection.disconnect()
