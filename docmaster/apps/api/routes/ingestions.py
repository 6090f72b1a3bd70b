from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import Field

from docmaster.apps.api.deps import (
    forbidden,
    get_current_user,
    get_runner,
    get_store,
    load_accessible_document,
    not_found,
)
from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from docmaster.apps.api.response import ApiModel, IngestionResponse, ingestion_response
from docmaster.domain.models import ActivityType, User
from docmaster.persistence.repos import ingestions as ingestions_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.activity import record_activity
from docmaster.services.authz import can_manage_ingestion
from docmaster.services.ingest.runner import IngestionRunner
from docmaster.services.telemetry import increment_counter


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ingestions", tags=["ingestions"], responses=DEFAULT_ERROR_RESPONSES)


class IngestionCreateRequest(ApiModel):
    document_id: int = Field(gt=0)


@router.post("", response_model=IngestionResponse, status_code=status.HTTP_201_CREATED)
async def start_ingestion(
    payload: IngestionCreateRequest,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    runner: IngestionRunner = Depends(get_runner),
) -> IngestionResponse:
    document = load_accessible_document(store, user, payload.document_id, action="ingest")
    ingestion = ingestions_repo.create_ingestion(store, document_id=document.id, user_id=user.id)
    runner.start(ingestion)
    increment_counter("ingestion.started")
    return ingestion_response(ingestion)


@router.get("", response_model=list[IngestionResponse])
async def list_ingestions(
    _user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> list[IngestionResponse]:
    return [ingestion_response(ingestion) for ingestion in ingestions_repo.list_ingestions(store)]


@router.get("/{ingestion_id}", response_model=IngestionResponse)
async def get_ingestion(
    ingestion_id: int,
    _user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> IngestionResponse:
    ingestion = ingestions_repo.get_ingestion(store, ingestion_id)
    if ingestion is None:
        raise not_found("Ingestion not found")
    return ingestion_response(ingestion)


@router.post("/{ingestion_id}/cancel", response_model=IngestionResponse)
async def cancel_ingestion(
    ingestion_id: int,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    runner: IngestionRunner = Depends(get_runner),
) -> IngestionResponse:
    ingestion = ingestions_repo.get_ingestion(store, ingestion_id)
    if ingestion is None:
        raise not_found("Ingestion not found")
    if not can_manage_ingestion(user, ingestion):
        raise forbidden("You don't have permission to cancel this ingestion")
    # A finished ingestion raises InvalidTransitionError, rendered as 409.
    cancelled = runner.cancel(ingestion_id)
    if cancelled is None:
        raise not_found("Ingestion not found")
    record_activity(
        store,
        activity_type=ActivityType.INGESTION,
        user_id=user.id,
        document_id=cancelled.document_id,
        details="Document ingestion was cancelled",
    )
    logger.info("ingestion_cancel_requested ingestion_id=%s user_id=%s", ingestion_id, user.id)
    return ingestion_response(cancelled)
