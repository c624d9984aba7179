from __future__ import annotations

import logging
import os

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from .. import __version__
from ..bootstrap import UsageGraph
from ..report import Grouped, list_sources, list_targets, total_count
from .auth import require_api_key

logger = logging.getLogger(__name__)


class EdgeOut(BaseModel):
    target_id: str
    target_type: str
    source_id: str
    source_type: str
    source_locale: str
    source_version: str | None = None
    method: str
    slot_name: str
    count: int


class UsageOut(BaseModel):
    type: str
    id: str
    total: int
    groups: dict[str, dict[str, list[EdgeOut]]] = Field(default_factory=dict)


class ExtractorOut(BaseModel):
    method: str
    label: str
    description: str
    slot_kinds: list[str]
    enabled: bool


class BulkDeleteIn(BaseModel):
    target_type: str | None = None
    source_type: str | None = None


def _usage_out(type_: str, id_: str, grouped: Grouped) -> UsageOut:
    return UsageOut(
        type=type_,
        id=id_,
        total=total_count(grouped),
        groups={
            t: {i: [EdgeOut(**e.to_dict()) for e in edges] for i, edges in ids.items()}
            for t, ids in grouped.items()
        },
    )


def create_app(graph: UsageGraph) -> FastAPI:
    app = FastAPI(title="Usage Graph", version=__version__)

    @app.get("/health")
    def health():
        return {"ok": True, "host": os.uname().nodename}

    @app.get("/v1/extractors", response_model=list[ExtractorOut])
    def extractors(_auth: None = Depends(require_api_key)):
        return [
            ExtractorOut(
                method=e.method,
                label=e.label,
                description=e.description,
                slot_kinds=list(e.slot_kinds),
                enabled=graph.tracking.is_method_enabled(e.method),
            )
            for e in graph.registry.all()
        ]

    @app.get("/v1/usage/{type_}/{id_}/sources", response_model=UsageOut)
    def sources(type_: str, id_: str, _auth: None = Depends(require_api_key)):
        return _usage_out(type_, id_, list_sources(graph.ledger, id_, type_))

    @app.get("/v1/usage/{type_}/{id_}/targets", response_model=UsageOut)
    def targets(type_: str, id_: str, _auth: None = Depends(require_api_key)):
        return _usage_out(type_, id_, list_targets(graph.ledger, id_, type_))

    @app.post("/v1/usage/bulk-delete")
    def bulk_delete(payload: BulkDeleteIn, _auth: None = Depends(require_api_key)):
        if not payload.target_type and not payload.source_type:
            raise HTTPException(status_code=400, detail="target_type or source_type is required")
        deleted = 0
        if payload.target_type:
            deleted += graph.tracker.bulk_delete_by_target_type(payload.target_type)
        if payload.source_type:
            deleted += graph.tracker.bulk_delete_by_source_type(payload.source_type)
        logger.info("Bulk delete via API removed %d row(s)", deleted)
        return {"ok": True, "deleted": deleted}

    return app
