"""Scheduled flight simulator.

Ticks at a fixed interval on a scheduler, steps the physics, synthesizes a
packet and feeds it to the store the same way a live connection does.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable

from flightdeck._constants import LANDING_GRACE_MS, TICK_INTERVAL_MS
from flightdeck._scheduler import Scheduler, TimerSlot
from flightdeck.config import FlightDeckConfig, FlightProfile
from flightdeck.models.log import LogType
from flightdeck.models.telemetry import FlightPhase, TelemetryPacket
from flightdeck.simulator import physics
from flightdeck.simulator.physics import VehicleState
from flightdeck.simulator.sensors import synthesize_packet
from flightdeck.state.store import TelemetryStore

_logger = logging.getLogger(__name__)


class FlightSimulator:
    """Deterministic stand-in for flight hardware.

    Given the same clock readings and seed, a run produces the same packets.
    The first ``landed`` packet is the last one emitted; after
    ``landing_grace_ms`` the tick timer stops and the store's simulating and
    connected flags are cleared.

    Usage::

        sim = FlightSimulator(store, scheduler=asyncio.get_running_loop())
        sim.start_simulation()
    """

    def __init__(
        self,
        store: TelemetryStore,
        *,
        scheduler: Scheduler,
        profile: FlightProfile | None = None,
        tick_interval_ms: int = TICK_INTERVAL_MS,
        landing_grace_ms: int = LANDING_GRACE_MS,
        clock: Callable[[], float] = time.time,
        seed: int | None = None,
    ) -> None:
        self._store = store
        self._profile = profile or FlightProfile()
        self._tick_interval = tick_interval_ms / 1000.0
        self._landing_grace = landing_grace_ms / 1000.0
        self._clock = clock
        self._seed = seed
        self._rng = random.Random(seed)
        self._tick_timer = TimerSlot(scheduler)
        self._grace_timer = TimerSlot(scheduler)

        self._running = False
        self._ended = False
        self._state = VehicleState()
        self._phase = FlightPhase.PRE_FLIGHT
        self._apogee_reached = False
        self._landed_emitted = False
        self._t0 = 0.0
        self._last_tick = 0.0
        self._last_timestamp_ms = 0
        self._packets_emitted = 0

    @classmethod
    def from_config(
        cls,
        config: FlightDeckConfig,
        store: TelemetryStore,
        *,
        scheduler: Scheduler,
        clock: Callable[[], float] = time.time,
    ) -> FlightSimulator:
        return cls(
            store,
            scheduler=scheduler,
            profile=config.profile,
            tick_interval_ms=config.tick_interval_ms,
            landing_grace_ms=config.landing_grace_ms,
            clock=clock,
            seed=config.simulator_seed,
        )

    # ------------------------------------------------------------------
    # Read surface
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def ended(self) -> bool:
        """Whether the last run reached ``landed`` and shut itself down."""
        return self._ended

    @property
    def phase(self) -> FlightPhase:
        return self._phase

    @property
    def vehicle_state(self) -> VehicleState:
        return self._state

    @property
    def apogee_reached(self) -> bool:
        return self._apogee_reached

    @property
    def packets_emitted(self) -> int:
        return self._packets_emitted

    @property
    def elapsed(self) -> float:
        """Seconds of flight time at the last tick."""
        return self._last_tick - self._t0

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def start_simulation(self) -> None:
        """Reset the flight and start ticking. No-op while already running."""
        if self._running:
            return
        self._reset()
        self._running = True
        _logger.debug("Simulation started t0=%.3f seed=%s", self._t0, self._seed)
        if not self._store.is_connected:
            self._store.set_connected(True)
        self._tick_timer.arm(self._tick_interval, self._tick)

    def stop_simulation(self) -> None:
        """Cancel ticking and clear the connected flag. Safe to call repeatedly."""
        self._tick_timer.cancel()
        self._grace_timer.cancel()
        was_running = self._running
        self._running = False
        if was_running:
            _logger.debug("Simulation stopped at t=%.2fs phase=%s", self.elapsed, self._phase)
        if self._store.is_connected:
            self._store.set_connected(False)

    def close(self) -> None:
        """Teardown alias for :meth:`stop_simulation`."""
        self.stop_simulation()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _reset(self) -> None:
        self._tick_timer.cancel()
        self._grace_timer.cancel()
        self._state = VehicleState()
        self._phase = FlightPhase.PRE_FLIGHT
        self._apogee_reached = False
        self._landed_emitted = False
        self._ended = False
        self._packets_emitted = 0
        self._last_timestamp_ms = 0
        if self._seed is not None:
            self._rng.seed(self._seed)
        now = self._clock()
        self._t0 = now
        self._last_tick = now

    def _tick(self) -> None:
        if not self._running:
            return
        # Fixed-rate cadence: arm the next tick before doing this one's work.
        self._tick_timer.arm(self._tick_interval, self._tick)
        if self._landed_emitted:
            return

        now = self._clock()
        t = now - self._t0
        dt = now - self._last_tick
        self._last_tick = now

        previous = self._phase
        result = physics.step(self._state, self._phase, self._apogee_reached, t, dt, self._profile)
        self._state = result.state
        self._phase = result.phase
        self._apogee_reached = result.apogee_reached
        if result.phase != previous:
            _logger.debug("Phase %s -> %s at t=%.2fs alt=%.1fm", previous, result.phase, t, result.state.z)

        timestamp_ms = max(self._last_timestamp_ms, int(now * 1000))
        self._last_timestamp_ms = timestamp_ms
        packet = synthesize_packet(
            state=result.state,
            accel=result.accel,
            phase=result.phase,
            t=t,
            timestamp_ms=timestamp_ms,
            profile=self._profile,
            rng=self._rng,
        )
        self._emit(packet)

        if result.phase == FlightPhase.LANDED:
            self._landed_emitted = True
            self._grace_timer.arm(self._landing_grace, self._finish)

    def _emit(self, packet: TelemetryPacket) -> None:
        self._store.add_telemetry_packet(packet)
        self._packets_emitted += 1

    def _finish(self) -> None:
        self._tick_timer.cancel()
        self._running = False
        self._ended = True
        _logger.debug("Simulation ended after %s packets", self._packets_emitted)
        self._store.log(LogType.INFO, f"Simulation ended: landed after {self.elapsed:.1f}s")
        if self._store.is_simulating:
            self._store.set_simulating(False)
        if self._store.is_connected:
            self._store.set_connected(False)
