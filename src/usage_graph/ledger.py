from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal

from .events import (
    BULK_SOURCE_CLEARED,
    BULK_TARGET_CLEARED,
    EDGE_ADDED,
    EDGE_REMOVED,
    SLOT_DELETED,
    SOURCE_DELETED,
    TARGET_DELETED,
    EventDispatcher,
    UsageEvent,
)
from .models import EdgeKey, UsageEdge
from .store import FROM_SOURCE_ORDER, INTO_TARGET_ORDER, LedgerStore
from .tracking import TrackingConfig

logger = logging.getLogger(__name__)

Action = Literal["add", "delete"]
VetoHook = Callable[[UsageEdge, Action], bool]


def _never_block(_edge: UsageEdge, _action: Action) -> bool:
    return False


class UsageLedger:
    """The authoritative store of usage edges.

    Writes go through the veto hook and emit events; queries only ever return
    rows with a positive count.
    """

    def __init__(
        self,
        store: LedgerStore,
        *,
        tracking: TrackingConfig | None = None,
        events: EventDispatcher | None = None,
        veto: VetoHook | None = None,
    ):
        self.store = store
        self.tracking = tracking or TrackingConfig()
        self.events = events or EventDispatcher()
        self.veto = veto or _never_block

    def _blocked(self, edge: UsageEdge, action: Action) -> bool:
        if self.veto(edge, action):
            logger.info(
                "Blocked %s of %s:%s -> %s:%s (%s/%s)",
                action,
                edge.source_type,
                edge.source_id,
                edge.target_type,
                edge.target_id,
                edge.method,
                edge.slot_name,
            )
            return True
        return False

    def upsert_edge(self, key: EdgeKey, count: int = 1) -> bool:
        """Add `count` usages to the row for `key`. Returns True if a write happened."""
        if count <= 0:
            return False
        if not self.tracking.is_target_type_tracked(key.target_type):
            return False

        edge = UsageEdge.from_key(key, count)
        if self._blocked(edge, "add"):
            return False

        total = self.store.increment(key, count)
        logger.debug("Added %d usage(s) to %s (now %d)", count, key, total)
        self.events.dispatch(UsageEvent.for_edge(EDGE_ADDED, edge))
        return True

    def remove_edge(self, key: EdgeKey, count: int | None = None) -> bool:
        """Remove `count` usages from the row for `key`; None removes the row outright.

        Rows never go below one usage: a request for at least the stored count
        deletes the row.
        """
        if count is not None and count <= 0:
            return False

        existing = self.store.get(key)
        if existing is None:
            return False

        edge = UsageEdge.from_key(key, min(count, existing.count) if count is not None else existing.count)
        if self._blocked(edge, "delete"):
            return False

        removed = self.store.decrement(key, count)
        if not removed:
            return False
        logger.debug("Removed %d usage(s) from %s", removed, key)
        self.events.dispatch(UsageEvent.for_edge(EDGE_REMOVED, UsageEdge.from_key(key, removed)))
        return True

    def bulk_delete_by_target_type(self, target_type: str) -> int:
        n = self.store.delete_where(target_type=target_type)
        logger.info("Cleared %d usage row(s) targeting type %s", n, target_type)
        self.events.dispatch(UsageEvent(name=BULK_TARGET_CLEARED, target_type=target_type))
        return n

    def bulk_delete_by_source_type(self, source_type: str) -> int:
        n = self.store.delete_where(source_type=source_type)
        logger.info("Cleared %d usage row(s) from source type %s", n, source_type)
        self.events.dispatch(UsageEvent(name=BULK_SOURCE_CLEARED, source_type=source_type))
        return n

    def delete_by_source(
        self,
        source_id: str,
        source_type: str,
        locale: str | None = None,
        version: str | None = None,
    ) -> int:
        n = self.store.delete_where(
            source_id=source_id,
            source_type=source_type,
            source_locale=locale,
            source_version=version,
        )
        if n:
            self.events.dispatch(
                UsageEvent(
                    name=SOURCE_DELETED,
                    source_id=source_id,
                    source_type=source_type,
                    source_locale=locale,
                    source_version=version,
                )
            )
        return n

    def delete_by_target(self, target_id: str, target_type: str) -> int:
        n = self.store.delete_where(target_id=target_id, target_type=target_type)
        if n:
            self.events.dispatch(UsageEvent(name=TARGET_DELETED, target_id=target_id, target_type=target_type))
        return n

    def delete_by_slot(self, source_type: str, slot_name: str) -> int:
        n = self.store.delete_where(source_type=source_type, slot_name=slot_name)
        if n:
            self.events.dispatch(UsageEvent(name=SLOT_DELETED, source_type=source_type, slot_name=slot_name))
        return n

    def get_edge(self, key: EdgeKey) -> UsageEdge | None:
        return self.store.get(key)

    def edges_into_target(self, target_id: str, target_type: str) -> list[UsageEdge]:
        return self.store.select(order_by=INTO_TARGET_ORDER, target_id=target_id, target_type=target_type)

    def edges_from_source(self, source_id: str, source_type: str) -> list[UsageEdge]:
        return self.store.select(order_by=FROM_SOURCE_ORDER, source_id=source_id, source_type=source_type)
