"""flightdeck - Async ingestion, simulation and live state for rocket flight telemetry."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("flightdeck")
except PackageNotFoundError:
    __version__ = "0+local"
from flightdeck.client import CurrentMetrics, FlightDeckClient
from flightdeck.config import FlightDeckConfig, FlightProfile
from flightdeck.connection import ConnectionManager, ConnectionState, backoff_delay_ms
from flightdeck.exceptions import (
    FlightDeckConfigError,
    FlightDeckConnectionLost,
    FlightDeckError,
    FlightDeckTransportError,
)
from flightdeck.ingestion import Err, Ok, PacketValidationError, parse_frame, validate_packet
from flightdeck.models import (
    FlightPhase,
    LogEntry,
    LogType,
    SessionMaxima,
    TelemetryPacket,
    TrajectoryPoint,
)
from flightdeck.simulator import FlightSimulator
from flightdeck.state import StoreChange, TelemetrySnapshot, TelemetryStore

__all__ = [
    "__version__",
    "ConnectionManager",
    "ConnectionState",
    "CurrentMetrics",
    "Err",
    "FlightDeckClient",
    "FlightDeckConfig",
    "FlightDeckConfigError",
    "FlightDeckConnectionLost",
    "FlightDeckError",
    "FlightDeckTransportError",
    "FlightPhase",
    "FlightProfile",
    "FlightSimulator",
    "LogEntry",
    "LogType",
    "Ok",
    "PacketValidationError",
    "SessionMaxima",
    "StoreChange",
    "TelemetryPacket",
    "TelemetrySnapshot",
    "TelemetryStore",
    "TrajectoryPoint",
    "backoff_delay_ms",
    "parse_frame",
    "validate_packet",
]
