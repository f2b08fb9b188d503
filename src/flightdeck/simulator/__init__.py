"""Synthetic flight source.

Physics (:mod:`~flightdeck.simulator.physics`) and sensor synthesis
(:mod:`~flightdeck.simulator.sensors`) are pure; the scheduled runner
(:mod:`~flightdeck.simulator.runner`) owns the clock and timers.
"""

from flightdeck.simulator.physics import VehicleState
from flightdeck.simulator.runner import FlightSimulator

__all__ = ["FlightSimulator", "VehicleState"]
