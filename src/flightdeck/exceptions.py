"""Custom exception hierarchy for flightdeck."""

from __future__ import annotations


class FlightDeckError(Exception):
    """Base exception for all flightdeck errors."""


class FlightDeckConfigError(FlightDeckError):
    """Invalid or missing configuration."""


class FlightDeckTransportError(FlightDeckError):
    """Socket-level failure (connect refused, protocol error, abnormal frame).

    Surfaced to the log trail; it does not by itself end the session.
    The close event that usually follows drives the reconnect logic.
    """

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class FlightDeckConnectionLost(FlightDeckError):
    """The transport closed while the connection was still wanted.

    ``retry_count`` is the number of reconnect attempts already scheduled
    when the close was observed.
    """

    def __init__(self, message: str, *, url: str = "", retry_count: int = 0) -> None:
        self.url = url
        self.retry_count = retry_count
        super().__init__(message)
