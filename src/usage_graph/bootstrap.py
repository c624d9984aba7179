from __future__ import annotations

from dataclasses import dataclass

from .engine import ReferenceDiffEngine
from .events import EventDispatcher
from .extractors import ExtractorRegistry, build_default_registry
from .items import ItemStore
from .ledger import UsageLedger, VetoHook
from .lifecycle import UsageTracker
from .recompute import RecomputeDriver
from .settings import UsageGraphSettings, settings
from .snapshots import SnapshotStore
from .store import SQLiteLedgerStore
from .tracking import TrackingConfig


@dataclass(slots=True)
class UsageGraph:
    tracking: TrackingConfig
    items: ItemStore
    store: SQLiteLedgerStore
    ledger: UsageLedger
    registry: ExtractorRegistry
    engine: ReferenceDiffEngine
    tracker: UsageTracker
    batch_size: int = 10

    def recompute_driver(self) -> RecomputeDriver:
        return RecomputeDriver(self.tracker, tracking=self.tracking, batch_size=self.batch_size)


def build_usage_graph(
    items: ItemStore | None = None,
    *,
    config: UsageGraphSettings | None = None,
    db_path: str | None = None,
    events: EventDispatcher | None = None,
    veto: VetoHook | None = None,
    registry: ExtractorRegistry | None = None,
) -> UsageGraph:
    """Wire store, ledger, extractors, engine and tracker from settings."""
    config = config or settings
    tracking = TrackingConfig.from_settings(config)
    items = items if items is not None else SnapshotStore()

    store = SQLiteLedgerStore(db_path or config.db_path)
    store.init()
    ledger = UsageLedger(store, tracking=tracking, events=events, veto=veto)
    registry = registry or build_default_registry(items, tracking)
    engine = ReferenceDiffEngine(ledger, registry, items, tracking)
    return UsageGraph(
        tracking=tracking,
        items=items,
        store=store,
        ledger=ledger,
        registry=registry,
        engine=engine,
        tracker=UsageTracker(engine, items),
        batch_size=config.recompute_batch_size,
    )
