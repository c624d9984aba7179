from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import SnapshotMismatchError
from .extractors import ExtractorRegistry, ReferenceExtractor
from .items import ItemStore
from .ledger import UsageLedger
from .models import DeletionScope, EdgeKey, ExtractedTuple, ItemState
from .tracking import TrackingConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DiffStats:
    added: int = 0
    removed: int = 0

    def __iadd__(self, other: DiffStats) -> DiffStats:
        self.added += other.added
        self.removed += other.removed
        return self


def _ordered(tuples: set[ExtractedTuple]) -> list[ExtractedTuple]:
    return sorted(tuples, key=lambda t: (t.target_type, t.target_id))


class ReferenceDiffEngine:
    """Turns before/after item snapshots into ledger writes.

    Every enabled extractor is asked for its tuples; additions are upserted with
    count 1 and removals delete the row for that source variant.
    """

    def __init__(
        self,
        ledger: UsageLedger,
        registry: ExtractorRegistry,
        items: ItemStore,
        tracking: TrackingConfig | None = None,
    ):
        self.ledger = ledger
        self.registry = registry
        self.items = items
        self.tracking = tracking or ledger.tracking

    def _extractors(self) -> list[ReferenceExtractor]:
        return self.registry.enabled(self.tracking)

    def _source_tracked(self, item: ItemState) -> bool:
        if self.tracking.is_source_type_tracked(item.type):
            return True
        logger.debug("Source type %s is not tracked; skipping %s", item.type, item.describe())
        return False

    def _add(self, item: ItemState, method: str, tup: ExtractedTuple) -> bool:
        if not self.tracking.is_target_type_tracked(tup.target_type):
            return False
        return self.ledger.upsert_edge(EdgeKey.for_tuple(item, method, tup), 1)

    def _remove(self, item: ItemState, method: str, tup: ExtractedTuple) -> bool:
        return self.ledger.remove_edge(EdgeKey.for_tuple(item, method, tup), None)

    def track_creation(self, item: ItemState) -> DiffStats:
        stats = DiffStats()
        if not self._source_tracked(item):
            return stats
        for extractor in self._extractors():
            for _slot, tuples in extractor.extract(item).items():
                for tup in _ordered(tuples):
                    stats.added += self._add(item, extractor.method, tup)
        logger.debug("Tracked creation of %s: %d edge(s)", item.describe(), stats.added)
        return stats

    def track_update(self, current: ItemState, original: ItemState | None) -> DiffStats:
        """Diff `original` against `current` for one locale variant.

        A missing original, or one from another version, is handled as a creation.
        """
        if original is None:
            return self.track_creation(current)
        if (current.type, current.id, current.locale) != (original.type, original.id, original.locale):
            raise SnapshotMismatchError(
                f"Cannot diff {original.describe()} against {current.describe()}: not the same item variant"
            )
        if current.version != original.version:
            return self.track_creation(current)

        stats = DiffStats()
        if not self._source_tracked(current):
            return stats
        for extractor in self._extractors():
            now = extractor.extract(current)
            before = extractor.extract(original)
            for slot_name in sorted(now.keys() | before.keys()):
                cur = now.get(slot_name, set())
                old = before.get(slot_name, set())
                for tup in _ordered(cur - old):
                    stats.added += self._add(current, extractor.method, tup)
                for tup in _ordered(old - cur):
                    stats.removed += self._remove(current, extractor.method, tup)
        logger.debug("Tracked update of %s: +%d -%d", current.describe(), stats.added, stats.removed)
        return stats

    def track_deletion(self, item: ItemState, scope: DeletionScope | str) -> int:
        """Drop the ledger rows covered by `scope`. Returns the number of rows deleted."""
        scope = DeletionScope.parse(scope)
        if scope is DeletionScope.VERSION:
            # Non-versioned sources are stored with an empty version.
            version = item.version if item.version is not None else ""
            n = self.ledger.delete_by_source(item.id, item.type, version=version)
        elif scope is DeletionScope.LOCALE:
            n = self.ledger.delete_by_source(item.id, item.type, locale=item.locale)
        else:
            n = self.ledger.delete_by_source(item.id, item.type)
            n += self.ledger.delete_by_target(item.id, item.type)
        logger.debug("Tracked %s deletion of %s: %d row(s)", scope.value, item.describe(), n)
        return n

    def track_slot_removal(self, source_type: str, slot_name: str) -> int:
        return self.ledger.delete_by_slot(source_type, slot_name)
