from __future__ import annotations

from collections.abc import Iterable

from .ledger import UsageLedger
from .models import UsageEdge

Grouped = dict[str, dict[str, list[UsageEdge]]]


def _group(edges: Iterable[UsageEdge], *, by_source: bool) -> Grouped:
    out: Grouped = {}
    for e in edges:
        type_, id_ = (e.source_type, e.source_id) if by_source else (e.target_type, e.target_id)
        out.setdefault(type_, {}).setdefault(id_, []).append(e)
    return out


def list_sources(ledger: UsageLedger, target_id: str, target_type: str) -> Grouped:
    """Edges into a target as `{source_type: {source_id: [edges]}}`, in ledger order."""
    return _group(ledger.edges_into_target(target_id, target_type), by_source=True)


def list_targets(ledger: UsageLedger, source_id: str, source_type: str) -> Grouped:
    """Edges out of a source as `{target_type: {target_id: [edges]}}`."""
    return _group(ledger.edges_from_source(source_id, source_type), by_source=False)


def total_count(grouped: Grouped) -> int:
    return sum(e.count for ids in grouped.values() for edges in ids.values() for e in edges)
