from __future__ import annotations

from usage_graph.events import SLOT_DELETED
from usage_graph.report import list_sources, list_targets, total_count

from tests.factories import embed, item, ref, text


def save(graph, state):
    graph.items.save(state)
    return state


def targets(graph, source_id="20"):
    return sorted(
        (e.target_id, e.source_locale, e.source_version) for e in graph.tracker.edges_from_source(source_id, "node")
    )


def test_create_update_delete_scenario(graph):
    tracker = graph.tracker

    v1 = save(graph, item("20", ref("field_ref", "2"), text("body", embed("node", "3"))))
    tracker.on_create(v1)
    assert targets(graph) == [("2", "en", "1"), ("3", "en", "1")]

    # Same version, reference swapped.
    v1b = save(graph, item("20", ref("field_ref", "4"), text("body", embed("node", "3"))))
    tracker.on_update(v1b)
    assert targets(graph) == [("3", "en", "1"), ("4", "en", "1")]
    assert tracker.edges_into_target("2", "node") == []

    # A new version keeps the rows of the previous one.
    v2 = save(graph, item("20", ref("field_ref", "4"), version="2"))
    tracker.on_update(v2)
    assert targets(graph) == [("3", "en", "1"), ("4", "en", "1"), ("4", "en", "2")]

    tracker.on_delete(item("20", version="1"), "version")
    assert targets(graph) == [("4", "en", "2")]

    tracker.on_delete(v2)
    assert targets(graph) == []


def test_in_place_edit_drops_removed_reference(graph):
    graph.tracker.on_create(save(graph, item("20", ref("field_ref", "2"))))

    stats = graph.tracker.on_update(save(graph, item("20")))

    assert (stats.added, stats.removed) == (0, 1)
    assert graph.tracker.edges_into_target("2", "node") == []


def test_repeated_create_does_not_double_count(graph):
    state = save(graph, item("20", ref("field_ref", "2", "3")))
    graph.tracker.on_create(state)
    graph.tracker.on_create(state)

    assert [e.count for e in graph.tracker.edges_from_source("20", "node")] == [1, 1]


def test_create_tracks_every_locale(graph):
    save(graph, item("20", ref("field_ref", "2"), locale="en"))
    fr = save(graph, item("20", ref("field_ref", "3"), locale="fr", default_locale=False))

    graph.tracker.on_create(fr)

    assert targets(graph) == [("2", "en", "1"), ("3", "fr", "1")]


def test_update_only_touches_affected_locales(graph):
    en = save(graph, item("20", ref("field_ref", "2"), locale="en"))
    save(graph, item("20", ref("field_ref", "3"), locale="fr", default_locale=False))
    graph.tracker.on_create(en)

    # New version saved from the French side; English is carried forward unaffected.
    fr2 = save(graph, item("20", ref("field_ref", "4"), locale="fr", version="2", default_locale=False))
    graph.tracker.on_update(fr2)

    assert targets(graph) == [("2", "en", "1"), ("3", "fr", "1"), ("4", "fr", "2")]


def test_new_translation_is_a_creation(graph):
    en = save(graph, item("20", ref("field_ref", "2")))
    graph.tracker.on_create(en)

    de = save(graph, item("20", ref("field_ref", "10"), locale="de", default_locale=False))
    graph.tracker.on_update(de)

    assert targets(graph) == [("10", "de", "1"), ("2", "en", "1")]
    # The untouched English variant is diffed against itself, not recounted.
    assert [e.count for e in graph.tracker.edges_from_source("20", "node")] == [1, 1]


def test_reprocess_snapshot_is_idempotent(graph):
    state = save(graph, item("20", ref("field_ref", "2", "3")))
    graph.tracker.reprocess_snapshot(state)
    graph.tracker.reprocess_snapshot(state)

    assert [e.count for e in graph.tracker.edges_from_source("20", "node")] == [1, 1]


def test_reprocess_leaves_other_variants(graph):
    graph.tracker.on_create(save(graph, item("20", ref("field_ref", "2"))))
    graph.tracker.on_create(save(graph, item("20", ref("field_ref", "3"), version="2")))

    graph.tracker.reprocess_snapshot(item("20", ref("field_ref", "4"), version="2"))

    assert targets(graph) == [("2", "en", "1"), ("4", "en", "2")]


def test_slot_removed(graph, recorder):
    graph.tracker.on_create(save(graph, item("20", ref("field_ref", "2"), ref("field_gone", "3"))))
    recorder.clear()

    assert graph.tracker.on_slot_removed("node", "field_gone") == 1

    assert targets(graph) == [("2", "en", "1")]
    assert recorder.names() == [SLOT_DELETED]


def test_reports_group_by_item(graph):
    graph.tracker.on_create(save(graph, item("20", ref("field_ref", "2"), text("body", embed("node", "2")))))
    graph.tracker.on_create(save(graph, item("21", ref("field_ref", "2"))))
    graph.tracker.on_create(save(graph, item("9", ref("field_ref", "2"), type_="block_content", version="90")))

    grouped = list_sources(graph.ledger, "2", "node")
    assert list(grouped) == ["block_content", "node"]
    assert list(grouped["node"]) == ["21", "20"]
    assert [e.method for e in grouped["node"]["20"]] == ["embed", "structured-reference"]
    assert total_count(grouped) == 4

    outgoing = list_targets(graph.ledger, "20", "node")
    assert list(outgoing) == ["node"]
    assert list(outgoing["node"]) == ["2"]
