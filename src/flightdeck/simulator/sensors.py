"""Sensor synthesis for simulated packets.

Turns the physical vehicle state into the readings a flight computer would
report, each with independent bounded uniform noise.
"""

from __future__ import annotations

import math
import random

from flightdeck._constants import STANDARD_GRAVITY
from flightdeck.config import FlightProfile
from flightdeck.geo import enu_to_geodetic
from flightdeck.models.telemetry import BaroData, FlightPhase, GpsData, ImuData, TelemetryPacket, Vector3
from flightdeck.simulator.physics import Acceleration, VehicleState

SEA_LEVEL_PRESSURE_HPA = 1013.25
PRESSURE_SCALE_HEIGHT_M = 8500.0


def pressure_at(altitude_m: float) -> float:
    """Exponential atmosphere pressure in hPa."""
    return SEA_LEVEL_PRESSURE_HPA * math.exp(-altitude_m / PRESSURE_SCALE_HEIGHT_M)


def heading_deg(vx: float, vy: float) -> float:
    """Course over ground, degrees clockwise from north in ``[0, 360)``."""
    return (math.degrees(math.atan2(vx, vy)) + 360.0) % 360.0


def _noise(rng: random.Random, span: float) -> float:
    """Uniform noise in ``[-span / 2, span / 2)``."""
    return (rng.random() - 0.5) * span


def synthesize_packet(
    *,
    state: VehicleState,
    accel: Acceleration,
    phase: FlightPhase,
    t: float,
    timestamp_ms: int,
    profile: FlightProfile,
    rng: random.Random,
) -> TelemetryPacket:
    """Build the packet a flight computer would send for *state*."""
    lat, lon = enu_to_geodetic(state.x, state.y, profile.origin_latitude, profile.origin_longitude)
    altitude = state.z

    return TelemetryPacket(
        timestamp=timestamp_ms,
        imu=ImuData(
            accel=Vector3(
                x=accel.ax + _noise(rng, 0.2),
                y=accel.ay + _noise(rng, 0.2),
                # Raw accelerometers measure specific force: gravity included.
                z=accel.az + STANDARD_GRAVITY + _noise(rng, 0.4),
            ),
            gyro=Vector3(x=_noise(rng, 2.0), y=_noise(rng, 2.0), z=_noise(rng, 2.0)),
            mag=Vector3(
                x=0.25 + _noise(rng, 0.02),
                y=0.05 + _noise(rng, 0.02),
                z=0.9 + _noise(rng, 0.02),
            ),
        ),
        gps=GpsData(
            lat=lat,
            lon=lon,
            alt=altitude + _noise(rng, 2.0),
            heading=heading_deg(state.vx, state.vy),
        ),
        baro=BaroData(
            pressure=pressure_at(altitude),
            altitude=altitude + _noise(rng, 1.5),
        ),
        velocity=Vector3(x=state.vx, y=state.vy, z=state.vz),
        phase=phase,
        battery=max(3.2, 4.15 - t * 0.002),
        rssi=-40.0 - t * 0.05 + _noise(rng, 3.0),
    )
