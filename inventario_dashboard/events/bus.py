"""
Inventory event bus

Publish/subscribe channel through which independent store instances learn
that shared inventory state changed. The bus is an ordinary object created
once by the application and handed to every store; there is no module-level
instance.

Delivery is synchronous, in registration order, over a snapshot of the
subscribers taken when ``publish`` starts. The bus does not filter by
origin: each consumer compares ``event.origin`` with its own tag.
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Message kinds carried by the bus."""

    CACHE_INVALIDATED = "cache-invalidated"
    DATA_UPDATED = "data-updated"


# Actions carried by DataUpdated messages
ACTION_DATA_UPDATED = "data-updated"
ACTION_TARIMA_ASSIGNED = "tarima-assigned"
ACTION_TARIMA_UNASSIGNED = "tarima-unassigned"


@dataclass(frozen=True)
class CacheInvalidated:
    """The read-through inventory cache was cleared by ``origin``."""

    origin: str
    timestamp: float
    payload: Any = None

    kind: ClassVar[EventKind] = EventKind.CACHE_INVALIDATED


@dataclass(frozen=True)
class DataUpdated:
    """Shared inventory state was changed by ``origin``.

    ``action`` narrows what happened, e.g. ``"tarima-assigned"``.
    """

    origin: str
    timestamp: float
    payload: Any = None
    action: str = ACTION_DATA_UPDATED

    kind: ClassVar[EventKind] = EventKind.DATA_UPDATED


InventoryEvent = Union[CacheInvalidated, DataUpdated]
Handler = Callable[[InventoryEvent], None]
Unsubscribe = Callable[[], None]


class EventBus:
    """
    Synchronous publish/subscribe service for inventory events.

    Examples:
        >>> bus = EventBus()
        >>> seen = []
        >>> unsubscribe = bus.subscribe("data-updated", seen.append)
        >>> _ = bus.publish("data-updated", {"codigos": ["P1"]}, origin="tabla")
        >>> seen[0].origin
        'tabla'
        >>> unsubscribe()
    """

    def __init__(self) -> None:
        self._subscribers: Dict[EventKind, List[Tuple[int, Handler]]] = {
            kind: [] for kind in EventKind
        }
        self._tokens = itertools.count()

    def subscribe(self, kind: Union[EventKind, str], handler: Handler) -> Unsubscribe:
        """
        Register ``handler`` for one message kind.

        Args:
            kind: "cache-invalidated" or "data-updated"
            handler: called with the full message, including ``origin``

        Returns:
            Function that removes this registration; calling it twice is harmless
        """
        kind = EventKind(kind)
        token = next(self._tokens)
        self._subscribers[kind].append((token, handler))

        def unsubscribe() -> None:
            entries = self._subscribers[kind]
            self._subscribers[kind] = [entry for entry in entries if entry[0] != token]

        return unsubscribe

    def subscribe_many(
        self,
        kinds: Iterable[Union[EventKind, str]],
        handler: Callable[[EventKind, InventoryEvent], None],
    ) -> Unsubscribe:
        """Register one handler for several kinds; returns a single unsubscribe."""
        unsubscribers = []
        for kind in kinds:
            kind = EventKind(kind)
            unsubscribers.append(
                self.subscribe(kind, lambda event, _kind=kind: handler(_kind, event))
            )

        def unsubscribe_all() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return unsubscribe_all

    def publish(
        self,
        kind: Union[EventKind, str],
        payload: Any = None,
        origin: str = "unknown",
        *,
        action: Optional[str] = None,
    ) -> InventoryEvent:
        """
        Build a message and deliver it to the current subscribers of ``kind``.

        Args:
            kind: message kind
            payload: optional data attached to the message
            origin: tag of the publisher
            action: narrower description for "data-updated" messages

        Returns:
            The delivered message
        """
        kind = EventKind(kind)
        now = time.time()
        if kind == EventKind.CACHE_INVALIDATED:
            event: InventoryEvent = CacheInvalidated(origin=origin, timestamp=now, payload=payload)
        else:
            event = DataUpdated(
                origin=origin,
                timestamp=now,
                payload=payload,
                action=action or ACTION_DATA_UPDATED,
            )

        handlers = [handler for _, handler in self._subscribers[kind]]
        logger.debug(f"{kind.value} from {origin}: {len(handlers)} subscriber(s)")
        for handler in handlers:
            handler(event)
        return event

    def listener_count(self, kind: Union[EventKind, str]) -> int:
        return len(self._subscribers[EventKind(kind)])
