"""Ingestion layer.

This package turns raw inbound frames into validated telemetry packets.
Both the websocket connection and the simulator feed the store through the
packets it produces.
"""

from flightdeck.ingestion.validate import Err, Ok, PacketValidationError, ValidationResult, parse_frame, validate_packet

__all__ = [
    "Err",
    "Ok",
    "PacketValidationError",
    "ValidationResult",
    "parse_frame",
    "validate_packet",
]
