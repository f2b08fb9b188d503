"""Data models for telemetry packets, log entries and session state."""

from flightdeck.models._base import EpochMillis, FiniteFloat, FlightDeckBaseModel
from flightdeck.models.log import LogEntry, LogType
from flightdeck.models.maxima import SessionMaxima
from flightdeck.models.telemetry import (
    BaroData,
    FlightPhase,
    GpsData,
    ImuData,
    TelemetryPacket,
    TrajectoryPoint,
    Vector3,
)

__all__ = [
    "BaroData",
    "EpochMillis",
    "FiniteFloat",
    "FlightDeckBaseModel",
    "FlightPhase",
    "GpsData",
    "ImuData",
    "LogEntry",
    "LogType",
    "SessionMaxima",
    "TelemetryPacket",
    "TrajectoryPoint",
    "Vector3",
]
