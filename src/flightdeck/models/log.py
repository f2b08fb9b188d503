"""Log trail entries."""

from __future__ import annotations

import enum
import logging
from datetime import UTC, datetime

from pydantic import Field

from flightdeck.models._base import FlightDeckBaseModel


class LogType(enum.StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"

    @property
    def level(self) -> int:
        """Matching :mod:`logging` level."""
        return _LOG_LEVELS[self]


_LOG_LEVELS: dict[LogType, int] = {
    LogType.INFO: logging.INFO,
    LogType.SUCCESS: logging.INFO,
    LogType.WARNING: logging.WARNING,
    LogType.ERROR: logging.ERROR,
}


class LogEntry(FlightDeckBaseModel):
    """One user-visible log line."""

    type: LogType
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
