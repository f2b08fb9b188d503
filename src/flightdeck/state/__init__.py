"""State/store layer.

This package is the single owner of the live telemetry state: every
ingestion path (websocket, simulator) and every control action goes
through :class:`~flightdeck.state.store.TelemetryStore`.
"""

from flightdeck.state.events import StoreChange, StoreObserver
from flightdeck.state.store import TelemetrySnapshot, TelemetryStore

__all__ = ["StoreChange", "StoreObserver", "TelemetrySnapshot", "TelemetryStore"]
