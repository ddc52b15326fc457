"""Cross-store synchronization events."""

from .bus import (
    ACTION_DATA_UPDATED,
    ACTION_TARIMA_ASSIGNED,
    ACTION_TARIMA_UNASSIGNED,
    CacheInvalidated,
    DataUpdated,
    EventBus,
    EventKind,
    InventoryEvent,
)

__all__ = [
    "EventBus",
    "EventKind",
    "InventoryEvent",
    "CacheInvalidated",
    "DataUpdated",
    "ACTION_DATA_UPDATED",
    "ACTION_TARIMA_ASSIGNED",
    "ACTION_TARIMA_UNASSIGNED",
]
