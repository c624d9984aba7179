from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .engine import DiffStats
from .lifecycle import UsageTracker
from .store import RecomputeCursor
from .tracking import TrackingConfig

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RecomputeProgress:
    source_type: str
    processed: int = 0
    total: int = 0
    last_id: str | None = None
    edges: int = 0
    done: bool = False

    @property
    def finished(self) -> float:
        """Fraction of the type processed, 1.0 once every item has been seen."""
        if self.done or self.processed >= self.total:
            return 1.0
        return self.processed / self.total


ProgressCallback = Callable[[RecomputeProgress], None]
StopCheck = Callable[[], bool]


class RecomputeDriver:
    """Rebuilds the ledger from the item store, one source type at a time.

    A run clears the type's rows, then walks ids in batches and replays every
    version/locale snapshot through the creation path. The cursor is saved after
    each item, so a stopped run resumes where it left off instead of clearing
    again.
    """

    def __init__(
        self,
        tracker: UsageTracker,
        *,
        tracking: TrackingConfig | None = None,
        batch_size: int = 10,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.tracker = tracker
        self.items = tracker.items
        self.store = tracker.ledger.store
        self.tracking = tracking or tracker.ledger.tracking
        self.batch_size = batch_size

    def trackable_types(self) -> list[str]:
        return [
            t
            for t in self.items.types()
            if self.items.is_content_type(t) and self.tracking.is_source_type_tracked(t)
        ]

    def run(
        self,
        types: Iterable[str] | None = None,
        *,
        should_stop: StopCheck | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> list[RecomputeProgress]:
        results: list[RecomputeProgress] = []
        for source_type in list(types) if types is not None else self.trackable_types():
            progress = self.run_type(source_type, should_stop=should_stop, on_progress=on_progress)
            results.append(progress)
            if not progress.done:
                break
        finished = [p for p in results if p.done]
        logger.info(
            "Recompute finished for %d type(s), %d item(s)", len(finished), sum(p.processed for p in finished)
        )
        return results

    def run_type(
        self,
        source_type: str,
        *,
        should_stop: StopCheck | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> RecomputeProgress:
        cursor = self.store.get_cursor(source_type)
        if cursor is None:
            self.tracker.bulk_delete_by_source_type(source_type)
            cursor = RecomputeCursor(
                source_type=source_type,
                last_id=None,
                processed=0,
                total=self.items.count(source_type),
                updated_at=time.time(),
            )
            self.store.save_cursor(cursor)
        else:
            logger.info("Resuming recompute of %s after id %s", source_type, cursor.last_id)

        progress = RecomputeProgress(
            source_type=source_type,
            processed=cursor.processed,
            total=cursor.total,
            last_id=cursor.last_id,
        )

        while True:
            ids = self.items.iter_ids(source_type, after=cursor.last_id, limit=self.batch_size)
            if not ids:
                break
            for id_ in ids:
                if should_stop is not None and should_stop():
                    logger.info(
                        "Recompute of %s stopped at %d of %d", source_type, progress.processed, progress.total
                    )
                    return progress
                stats = self.recompute_item(source_type, id_)
                cursor.last_id = id_
                cursor.processed += 1
                self.store.save_cursor(cursor)

                progress.last_id = id_
                progress.processed = cursor.processed
                progress.edges += stats.added
                if on_progress is not None:
                    on_progress(progress)
            logger.info(
                "Updating usage for %s: %d of %d", source_type, progress.processed, progress.total
            )

        self.store.clear_cursor(source_type)
        progress.done = True
        logger.info("Recreated usage for %d %s item(s)", progress.processed, source_type)
        return progress

    def recompute_item(self, source_type: str, id_: str) -> DiffStats:
        """Replay every version and affected locale of one item as a creation."""
        stats = DiffStats()
        for version in self.items.list_versions(source_type, id_):
            base = self.items.get_item(source_type, id_, version=version)
            if base is None:
                continue
            for variant in self.items.list_locales(base):
                if variant.affected:
                    stats += self.tracker.reprocess_snapshot(variant)
        return stats
