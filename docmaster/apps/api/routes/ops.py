from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from docmaster.apps.api.deps import get_runner, get_sessions, get_store, require_admin
from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from docmaster.domain.models import RECORD_TYPES, User
from docmaster.persistence.store import EntityStore
from docmaster.services.auth.sessions import SessionManager
from docmaster.services.ingest.runner import IngestionRunner
from docmaster.services.telemetry import availability, counters, p95_latency, status_families


router = APIRouter(prefix="/ops", tags=["ops"], responses=DEFAULT_ERROR_RESPONSES)


class MetricsResponse(BaseModel):
    window_s: int
    availability: float | None
    p95_latency_ms: float | None
    status_families: dict[str, int]
    counters: dict[str, int]
    active_sessions: int
    active_ingestions: list[int]
    entities: dict[str, int]


@router.get("/metrics", response_model=MetricsResponse)
async def metrics(
    window_s: int = Query(default=300, ge=1, le=86400),
    _admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
    sessions: SessionManager = Depends(get_sessions),
    runner: IngestionRunner = Depends(get_runner),
) -> MetricsResponse:
    # Snapshot of in-process signals; nothing here is persisted across restarts.
    return MetricsResponse(
        window_s=window_s,
        availability=availability(window_s),
        p95_latency_ms=p95_latency(window_s),
        status_families=status_families(window_s),
        counters=counters(),
        active_sessions=sessions.active_count(),
        active_ingestions=runner.active_ids(),
        entities={kind: store.count(kind) for kind in RECORD_TYPES},
    )
