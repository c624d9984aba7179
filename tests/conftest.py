from __future__ import annotations

import pytest

from usage_graph.bootstrap import build_usage_graph
from usage_graph.events import EventDispatcher, UsageEvent
from usage_graph.snapshots import SnapshotStore
from usage_graph.store import SQLiteLedgerStore

from tests.factories import item, make_settings


class EventRecorder:
    def __init__(self) -> None:
        self.events: list[UsageEvent] = []

    def __call__(self, event: UsageEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [e.name for e in self.events]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def dispatcher(recorder) -> EventDispatcher:
    d = EventDispatcher()
    d.subscribe_all(recorder)
    return d


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "usage.db")


@pytest.fixture
def ledger_store(db_path) -> SQLiteLedgerStore:
    store = SQLiteLedgerStore(db_path)
    store.init()
    return store


@pytest.fixture
def items() -> SnapshotStore:
    """Repository with nodes 1-4 and 10, one media item, one view and one reusable block."""
    store = SnapshotStore(config_types=("view",), routes={"node": "/node/{id}", "media": "/media/{id}"})
    for id_ in ("1", "2", "3", "4", "10"):
        store.save(item(id_))
    store.save(item("7", type_="media", version="70"))
    store.save(item("5", type_="block_content", version="50"))
    store.add_config("view", "frontpage")
    store.add_alias("/about", "node", "3")
    return store


@pytest.fixture
def graph(items, db_path, dispatcher):
    return build_usage_graph(items, config=make_settings(), db_path=db_path, events=dispatcher)
