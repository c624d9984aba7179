from __future__ import annotations

import pytest

from usage_graph.bootstrap import build_usage_graph
from usage_graph.models import EdgeKey
from usage_graph.recompute import RecomputeDriver, RecomputeProgress

from tests.factories import embed, item, make_settings, ref, text

EXPECTED = [
    ("1", "node", "2", "en", "1"),
    ("1", "node", "3", "en", "2"),
    ("10", "media", "7", "fr", "1"),
    ("10", "node", "4", "en", "1"),
]


@pytest.fixture
def repo(items):
    items.save(item("1", ref("field_ref", "2")))
    items.save(item("1", ref("field_ref", "3"), version="2"))
    items.save(item("10", ref("field_ref", "4")))
    items.save(item("10", text("body", embed("media", "7")), locale="fr", default_locale=False))
    return items


def node_rows(graph):
    out = []
    for id_ in ("1", "2", "3", "4", "10"):
        for e in graph.ledger.edges_from_source(id_, "node"):
            out.append((e.source_id, e.target_type, e.target_id, e.source_locale, e.source_version))
    return sorted(out)


def stale_key(source_type="node", source_id="2") -> EdgeKey:
    return EdgeKey(
        target_id="1",
        target_type="node",
        source_id=source_id,
        source_type=source_type,
        source_locale="en",
        source_version="1",
        method="structured-reference",
        slot_name="field_ref",
    )


def test_recompute_rebuilds_source_type(graph, repo):
    graph.ledger.upsert_edge(stale_key(), 3)
    graph.ledger.upsert_edge(stale_key(source_type="media", source_id="7"))
    seen = []

    results = graph.recompute_driver().run(["node"], on_progress=lambda p: seen.append((p.processed, p.total)))

    assert node_rows(graph) == EXPECTED
    # Other source types are left alone.
    assert [e.source_type for e in graph.ledger.edges_into_target("1", "node")] == ["media"]
    assert seen == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]
    [progress] = results
    assert progress.done and progress.finished == 1.0
    assert progress.edges == 4
    assert graph.store.get_cursor("node") is None


def test_recompute_is_repeatable(graph, repo):
    driver = graph.recompute_driver()
    driver.run(["node"])
    driver.run(["node"])
    assert node_rows(graph) == EXPECTED
    assert all(e.count == 1 for e in graph.ledger.edges_into_target("2", "node"))


def test_stopped_recompute_resumes_from_cursor(graph, repo):
    calls = {"n": 0}

    def stop_after_two():
        calls["n"] += 1
        return calls["n"] > 2

    driver = graph.recompute_driver()
    [first] = driver.run(["node"], should_stop=stop_after_two)

    assert not first.done
    assert (first.processed, first.total, first.last_id) == (2, 5, "2")
    assert first.finished == pytest.approx(0.4)
    cursor = graph.store.get_cursor("node")
    assert (cursor.last_id, cursor.processed) == ("2", 2)
    assert node_rows(graph) == EXPECTED[:2]

    # Resuming must not clear what the first run already rebuilt.
    [second] = driver.run(["node"])
    assert second.done and second.processed == 5
    assert node_rows(graph) == EXPECTED


def test_stop_ends_the_whole_run(graph, repo):
    results = graph.recompute_driver().run(["node", "media"], should_stop=lambda: True)
    assert [p.source_type for p in results] == ["node"]
    assert not results[0].done


def test_trackable_types(repo, db_path):
    graph = build_usage_graph(repo, config=make_settings(source_types=["node", "media"]), db_path=db_path)
    assert graph.recompute_driver().trackable_types() == ["media", "node"]

    everything = build_usage_graph(repo, config=make_settings(), db_path=db_path)
    assert everything.recompute_driver().trackable_types() == ["block_content", "media", "node"]


def test_batch_size_validation(graph):
    with pytest.raises(ValueError):
        RecomputeDriver(graph.tracker, batch_size=0)


def test_progress_fraction():
    assert RecomputeProgress("node", processed=1, total=4).finished == 0.25
    assert RecomputeProgress("node", processed=0, total=0).finished == 1.0
