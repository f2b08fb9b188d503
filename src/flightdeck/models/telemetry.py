"""Telemetry packet model.

The field set mirrors the wire schema exactly: one JSON object per
websocket text frame, every field required.
"""

from __future__ import annotations

import enum
import math

from flightdeck._constants import STANDARD_GRAVITY
from flightdeck.models._base import EpochMillis, FiniteFloat, FlightDeckBaseModel

# ------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------


class FlightPhase(enum.StrEnum):
    """Discrete flight state along the nominal sequence.

    Members are declared in flight order; :attr:`order` exposes the index.
    """

    PRE_FLIGHT = "pre-flight"
    POWERED_ASCENT = "powered-ascent"
    BURNOUT = "burnout"
    APOGEE = "apogee"
    DROGUE_DEPLOY = "drogue-deploy"
    MAIN_DEPLOY = "main-deploy"
    LANDED = "landed"

    @property
    def order(self) -> int:
        return _PHASE_ORDER[self]

    def is_after(self, other: FlightPhase) -> bool:
        """Return ``True`` when this phase comes later in the sequence than *other*."""
        return self.order > other.order


_PHASE_ORDER: dict[FlightPhase, int] = {phase: index for index, phase in enumerate(FlightPhase)}

# ------------------------------------------------------------------
# Sensor blocks
# ------------------------------------------------------------------


class Vector3(FlightDeckBaseModel):
    x: FiniteFloat
    y: FiniteFloat
    z: FiniteFloat

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)


class ImuData(FlightDeckBaseModel):
    """Inertial block.

    Parameters
    ----------
    accel : Vector3
        Specific force in m/s^2, gravity included.
    gyro : Vector3
        Angular rate in degrees per second.
    mag : Vector3
        Magnetic field, arbitrary units.
    """

    accel: Vector3
    gyro: Vector3
    mag: Vector3


class GpsData(FlightDeckBaseModel):
    """GNSS fix: degrees, metres, and heading in degrees clockwise from north."""

    lat: FiniteFloat
    lon: FiniteFloat
    alt: FiniteFloat
    heading: FiniteFloat


class BaroData(FlightDeckBaseModel):
    """Barometer: pressure in hPa and pressure altitude in metres."""

    pressure: FiniteFloat
    altitude: FiniteFloat


class TelemetryPacket(FlightDeckBaseModel):
    """One timestamped telemetry sample.

    Parameters
    ----------
    timestamp : int
        Whole milliseconds since the epoch; non-decreasing within a session.
    imu : ImuData
        Accelerometer, gyroscope and magnetometer readings.
    gps : GpsData
        Position fix.
    baro : BaroData
        Barometric pressure and altitude.
    velocity : Vector3
        Velocity in the local East-North-Up frame (m/s).
    phase : FlightPhase
        Flight phase reported by the source.
    battery : float
        Battery voltage.
    rssi : float
        Link signal strength in dBm.
    """

    timestamp: EpochMillis
    imu: ImuData
    gps: GpsData
    baro: BaroData
    velocity: Vector3
    phase: FlightPhase
    battery: FiniteFloat
    rssi: FiniteFloat

    @property
    def altitude(self) -> float:
        """Barometric altitude, the altitude used for session maxima."""
        return self.baro.altitude

    @property
    def acceleration_magnitude(self) -> float:
        return self.imu.accel.magnitude

    @property
    def velocity_magnitude(self) -> float:
        return self.velocity.magnitude

    @property
    def g_force(self) -> float:
        return self.acceleration_magnitude / STANDARD_GRAVITY


class TrajectoryPoint(FlightDeckBaseModel):
    """A packet projected into local East-North-Up metres around the launch origin."""

    east: float
    north: float
    up: float
    phase: FlightPhase
    timestamp: int
