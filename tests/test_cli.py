from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from usage_graph.cli import cli

EXPORT = {
    "routes": {"node": "/node/{id}"},
    "items": [
        {"type": "node", "id": "2", "version": "1", "stable_id": "aaa"},
        {
            "type": "node",
            "id": "1",
            "version": "1",
            "slots": [
                {"name": "field_ref", "kind": "reference", "target_type": "node", "values": ["2"]},
                {"name": "body", "kind": "rich_text", "values": [
                    '<drupal-entity data-entity-type="node" data-entity-uuid="aaa"></drupal-entity>'
                ]},
            ],
        },
    ],
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(EXPORT), encoding="utf-8")
    return str(path)


def test_recompute_then_query(runner, db_path, export_file):
    result = runner.invoke(cli, ["--db", db_path, "recompute", "--items", export_file, "--batch-size", "1"])
    assert result.exit_code == 0, result.output
    assert "Recreated usage for 2 item(s)" in result.output

    result = runner.invoke(cli, ["--db", db_path, "sources", "node", "2"])
    assert result.exit_code == 0, result.output
    assert "Total usages: 2" in result.output

    result = runner.invoke(cli, ["--db", db_path, "targets", "node", "1"])
    assert result.exit_code == 0, result.output
    assert "Total usages: 2" in result.output


def test_empty_reports(runner, db_path):
    result = runner.invoke(cli, ["--db", db_path, "sources", "node", "2"])
    assert result.exit_code == 0
    assert "No usage recorded for node:2" in result.output

    result = runner.invoke(cli, ["--db", db_path, "targets", "node", "1"])
    assert "references nothing" in result.output


def test_extractors_listing(runner, db_path):
    result = runner.invoke(cli, ["--db", db_path, "extractors"])
    assert result.exit_code == 0, result.output
    assert "embed" in result.output
    assert "block" in result.output


def test_purge(runner, db_path, export_file):
    runner.invoke(cli, ["--db", db_path, "recompute", "--items", export_file])

    assert runner.invoke(cli, ["--db", db_path, "purge"]).exit_code == 2

    result = runner.invoke(cli, ["--db", db_path, "purge", "--target-type", "node"])
    assert result.exit_code == 0, result.output
    assert "Removed 2 row(s) targeting node" in result.output
    assert "No usage recorded" in runner.invoke(cli, ["--db", db_path, "sources", "node", "2"]).output


def test_recompute_requires_existing_file(runner, db_path, tmp_path):
    result = runner.invoke(cli, ["--db", db_path, "recompute", "--items", str(tmp_path / "missing.json")])
    assert result.exit_code == 2
