from __future__ import annotations

import logging

from .engine import DiffStats, ReferenceDiffEngine
from .items import ItemStore
from .ledger import UsageLedger
from .models import DeletionScope, ItemState, UsageEdge

logger = logging.getLogger(__name__)


class UsageTracker:
    """Entry points the host calls from its save/delete hooks."""

    def __init__(self, engine: ReferenceDiffEngine, items: ItemStore):
        self.engine = engine
        self.items = items

    @property
    def ledger(self) -> UsageLedger:
        return self.engine.ledger

    def _variants(self, item: ItemState) -> list[ItemState]:
        variants = list(self.items.list_locales(item))
        if not any(v.locale == item.locale for v in variants):
            variants.insert(0, item)
        return variants

    def on_create(self, item: ItemState) -> DiffStats:
        """Record every locale variant of a newly created item.

        Each variant replaces whatever rows it already has, so delivering the
        same creation twice leaves the counts unchanged.
        """
        stats = DiffStats()
        for variant in self._variants(item):
            stats += self.reprocess_snapshot(variant)
        return stats

    def on_update(self, item: ItemState) -> DiffStats:
        """Diff each locale variant touched by the save against its prior snapshot."""
        stats = DiffStats()
        for variant in self._variants(item):
            if not variant.affected:
                continue
            stats += self.engine.track_update(variant, self.items.get_original(variant))
        return stats

    def on_delete(self, item: ItemState, scope: DeletionScope | str = DeletionScope.ITEM) -> int:
        return self.engine.track_deletion(item, scope)

    def on_slot_removed(self, source_type: str, slot_name: str) -> int:
        n = self.engine.track_slot_removal(source_type, slot_name)
        logger.info("Slot %s removed from %s: dropped %d usage row(s)", slot_name, source_type, n)
        return n

    def reprocess_snapshot(self, item: ItemState) -> DiffStats:
        """Rebuild the rows of exactly this version/locale variant.

        Safe to repeat: the variant's existing rows are dropped before the
        creation path runs again.
        """
        version = item.version if item.version is not None else ""
        self.ledger.delete_by_source(item.id, item.type, locale=item.locale, version=version)
        return self.engine.track_creation(item)

    def edges_into_target(self, target_id: str, target_type: str) -> list[UsageEdge]:
        return self.ledger.edges_into_target(target_id, target_type)

    def edges_from_source(self, source_id: str, source_type: str) -> list[UsageEdge]:
        return self.ledger.edges_from_source(source_id, source_type)

    def bulk_delete_by_target_type(self, target_type: str) -> int:
        return self.ledger.bulk_delete_by_target_type(target_type)

    def bulk_delete_by_source_type(self, source_type: str) -> int:
        return self.ledger.bulk_delete_by_source_type(source_type)
