"""Store change notifications.

Observers are told *what kind* of mutation completed; they read the new
values from the store (or a snapshot) themselves.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum


class StoreChange(StrEnum):
    PACKET = "packet"
    LOG = "log"
    CONNECTION = "connection"
    SIMULATION = "simulation"
    DEVICE = "device"
    FOLLOW_LATEST = "follow_latest"
    HISTORY_CLEARED = "history_cleared"


StoreObserver = Callable[[StoreChange], None]
