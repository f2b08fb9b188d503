"""Running session maxima."""

from __future__ import annotations

from flightdeck.models._base import FlightDeckBaseModel
from flightdeck.models.telemetry import TelemetryPacket


class SessionMaxima(FlightDeckBaseModel):
    """Peak values seen since the session started or was last cleared.

    Every field is non-decreasing for the life of a session. Updating is
    O(1) per packet: the new maxima depend only on the previous maxima and
    the incoming packet, never on the history.
    """

    max_altitude: float = 0.0
    max_velocity: float = 0.0
    max_acceleration: float = 0.0
    max_g_force: float = 0.0

    def merged_with(self, packet: TelemetryPacket) -> SessionMaxima:
        """Return the element-wise maximum of these maxima and *packet*'s magnitudes."""
        return SessionMaxima(
            max_altitude=max(self.max_altitude, packet.altitude),
            max_velocity=max(self.max_velocity, packet.velocity_magnitude),
            max_acceleration=max(self.max_acceleration, packet.acceleration_magnitude),
            max_g_force=max(self.max_g_force, packet.g_force),
        )
