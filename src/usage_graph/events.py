"""Events emitted by the usage ledger.

Listeners are plain callables subscribed per event name. They run
synchronously inside the ledger call that emitted them; an exception raised by
a listener propagates to the caller.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from .models import UsageEdge

logger = logging.getLogger(__name__)

EDGE_ADDED = "edge-added"
EDGE_REMOVED = "edge-removed"
BULK_TARGET_CLEARED = "bulk-target-cleared"
BULK_SOURCE_CLEARED = "bulk-source-cleared"
SOURCE_DELETED = "source-deleted"
TARGET_DELETED = "target-deleted"
SLOT_DELETED = "slot-deleted"

ALL_EVENTS = (
    EDGE_ADDED,
    EDGE_REMOVED,
    BULK_TARGET_CLEARED,
    BULK_SOURCE_CLEARED,
    SOURCE_DELETED,
    TARGET_DELETED,
    SLOT_DELETED,
)


@dataclass(frozen=True, slots=True)
class UsageEvent:
    """Full edge context of a ledger change; fields not set by the operation are None."""

    name: str
    target_id: str | None = None
    target_type: str | None = None
    source_id: str | None = None
    source_type: str | None = None
    source_locale: str | None = None
    source_version: str | None = None
    method: str | None = None
    slot_name: str | None = None
    count: int | None = None

    @classmethod
    def for_edge(cls, name: str, edge: UsageEdge) -> UsageEvent:
        return cls(
            name=name,
            target_id=edge.target_id,
            target_type=edge.target_type,
            source_id=edge.source_id,
            source_type=edge.source_type,
            source_locale=edge.source_locale,
            source_version=edge.source_version,
            method=edge.method,
            slot_name=edge.slot_name,
            count=edge.count,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


Listener = Callable[[UsageEvent], None]


class EventDispatcher:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def subscribe(self, name: str, listener: Listener) -> None:
        if name not in ALL_EVENTS:
            raise ValueError(f"Unknown event {name!r}")
        self._listeners[name].append(listener)

    def subscribe_all(self, listener: Listener) -> None:
        for name in ALL_EVENTS:
            self.subscribe(name, listener)

    def unsubscribe(self, name: str, listener: Listener) -> None:
        try:
            self._listeners[name].remove(listener)
        except ValueError:
            pass

    def dispatch(self, event: UsageEvent) -> None:
        listeners = self._listeners.get(event.name) or []
        logger.debug("Dispatching %s to %d listener(s)", event.name, len(listeners))
        for listener in list(listeners):
            listener(event)
