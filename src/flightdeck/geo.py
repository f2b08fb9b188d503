"""Local-tangent-plane helpers.

Equirectangular approximation around a launch origin: accurate to well
under a metre over the few kilometres a sounding rocket travels.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from flightdeck.models.telemetry import TelemetryPacket, TrajectoryPoint

EARTH_RADIUS_M = 6_371_000.0


def enu_to_geodetic(east: float, north: float, origin_lat: float, origin_lon: float) -> tuple[float, float]:
    """Convert local East/North metres to ``(lat, lon)`` degrees."""
    lat0 = math.radians(origin_lat)
    lon0 = math.radians(origin_lon)
    lat = lat0 + north / EARTH_RADIUS_M
    lon = lon0 + east / (EARTH_RADIUS_M * math.cos(lat0))
    return math.degrees(lat), math.degrees(lon)


def geodetic_to_enu(lat: float, lon: float, origin_lat: float, origin_lon: float) -> tuple[float, float]:
    """Convert ``(lat, lon)`` degrees to local ``(east, north)`` metres."""
    lat_r = math.radians(lat)
    lat0 = math.radians(origin_lat)
    east = (math.radians(lon) - math.radians(origin_lon)) * math.cos((lat_r + lat0) / 2.0) * EARTH_RADIUS_M
    north = (lat_r - lat0) * EARTH_RADIUS_M
    return east, north


def trajectory(history: Sequence[TelemetryPacket], smoothing_window: int = 5) -> list[TrajectoryPoint]:
    """Project packets into local ENU metres with a trailing moving average.

    The origin is the first packet with a non-zero fix. Barometric altitude
    is used for ``up``. Returns an empty list when no packet has a fix.
    """
    origin = next((p for p in history if p.gps.lat != 0 and p.gps.lon != 0), None)
    if origin is None:
        return []

    raw: list[tuple[float, float, float]] = []
    for packet in history:
        east, north = geodetic_to_enu(packet.gps.lat, packet.gps.lon, origin.gps.lat, origin.gps.lon)
        raw.append((east, north, packet.baro.altitude))

    window = max(1, smoothing_window)
    points: list[TrajectoryPoint] = []
    sums = [0.0, 0.0, 0.0]
    for index, packet in enumerate(history):
        for axis in range(3):
            sums[axis] += raw[index][axis]
        if index >= window:
            for axis in range(3):
                sums[axis] -= raw[index - window][axis]
        count = min(index + 1, window)
        points.append(
            TrajectoryPoint(
                east=sums[0] / count,
                north=sums[1] / count,
                up=sums[2] / count,
                phase=packet.phase,
                timestamp=packet.timestamp,
            )
        )
    return points
