from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from usage_graph.service import create_app
from usage_graph.settings import settings

from tests.factories import embed, item, ref, text


@pytest.fixture
def client(graph):
    for state in (
        item("20", ref("field_ref", "2"), text("body", embed("node", "2"))),
        item("7", ref("field_ref", "2"), type_="media", version="70"),
    ):
        graph.items.save(state)
        graph.tracker.on_create(state)
    return TestClient(create_app(graph))


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_sources(client):
    r = client.get("/v1/usage/node/2/sources")
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert list(body["groups"]) == ["media", "node"]
    methods = [e["method"] for e in body["groups"]["node"]["20"]]
    assert methods == ["embed", "structured-reference"]
    assert body["groups"]["media"]["7"][0]["source_version"] == "70"


def test_targets(client):
    r = client.get("/v1/usage/node/20/targets")
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 2
    assert list(body["groups"]["node"]) == ["2"]


def test_unknown_item_has_no_usage(client):
    r = client.get("/v1/usage/node/999/sources")
    assert r.status_code == 200
    assert r.json() == {"type": "node", "id": "999", "total": 0, "groups": {}}


def test_extractors(client):
    r = client.get("/v1/extractors")
    assert r.status_code == 200
    methods = {e["method"]: e for e in r.json()}
    assert set(methods) == {"structured-reference", "hyperlink", "embed", "block", "layout-section"}
    assert methods["embed"]["enabled"] is True
    assert methods["embed"]["slot_kinds"] == ["rich_text"]


def test_bulk_delete(client):
    assert client.post("/v1/usage/bulk-delete", json={}).status_code == 400

    r = client.post("/v1/usage/bulk-delete", json={"source_type": "media"})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "deleted": 1}
    assert client.get("/v1/usage/node/2/sources").json()["total"] == 2


def test_api_key_required_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "api_key", "secret")

    assert client.get("/v1/usage/node/2/sources").status_code == 401
    assert client.get("/v1/usage/node/2/sources", headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.get("/v1/usage/node/2/sources", headers={"X-API-Key": "secret"}).status_code == 200
    assert client.get("/health").status_code == 200
