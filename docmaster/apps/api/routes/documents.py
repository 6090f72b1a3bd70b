from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from pydantic import Field

from docmaster.apps.api.deps import (
    bad_request,
    get_current_user,
    get_runner,
    get_store,
    load_accessible_document,
    not_found,
)
from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from docmaster.apps.api.response import (
    ApiModel,
    DocumentResponse,
    MessageResponse,
    document_response,
)
from docmaster.domain.models import ActivityType, User
from docmaster.persistence.repos import documents as documents_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.activity import record_activity
from docmaster.services.authz import document_scope
from docmaster.services.ingest.runner import IngestionRunner


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/documents", tags=["documents"], responses=DEFAULT_ERROR_RESPONSES)


class DocumentCreateRequest(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    type: str = Field(min_length=1, max_length=100)
    size: int = Field(ge=0)
    path: str = Field(min_length=1)


class DocumentUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: str | None = Field(default=None, min_length=1, max_length=100)
    size: int | None = Field(default=None, ge=0)
    path: str | None = Field(default=None, min_length=1)


class StarRequest(ApiModel):
    # Optional at the schema level so a missing value gets the dedicated message.
    starred: bool | None = None


@router.get("", response_model=list[DocumentResponse])
async def list_documents(
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> list[DocumentResponse]:
    documents = documents_repo.list_documents(store, user_id=document_scope(user))
    return [document_response(document) for document in documents]


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    payload: DocumentCreateRequest,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> DocumentResponse:
    document = documents_repo.create_document(
        store,
        name=payload.name,
        type=payload.type,
        size=payload.size,
        path=payload.path,
        user_id=user.id,
    )
    record_activity(
        store,
        activity_type=ActivityType.UPLOAD,
        user_id=user.id,
        document_id=document.id,
        details=f"{document.name} was uploaded",
    )
    logger.info("document_created document_id=%s user_id=%s", document.id, user.id)
    return document_response(document)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> DocumentResponse:
    document = load_accessible_document(store, user, document_id, action="view")
    return document_response(document)


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: int,
    payload: DocumentUpdateRequest,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> DocumentResponse:
    load_accessible_document(store, user, document_id, action="edit")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    updated = documents_repo.update_document(store, document_id, **changes)
    if updated is None:
        raise not_found("Document not found")
    record_activity(
        store,
        activity_type=ActivityType.EDIT,
        user_id=user.id,
        document_id=updated.id,
        details=f"{updated.name} was edited",
    )
    return document_response(updated)


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete_document(
    document_id: int,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    runner: IngestionRunner = Depends(get_runner),
) -> MessageResponse:
    document = load_accessible_document(store, user, document_id, action="delete")
    cancelled = runner.cancel_for_document(document.id)
    documents_repo.delete_document(store, document.id)
    # The document is gone, so the trail entry carries only its name.
    record_activity(
        store,
        activity_type=ActivityType.DELETE,
        user_id=user.id,
        details=f"{document.name} was deleted",
    )
    logger.info(
        "document_deleted document_id=%s user_id=%s ingestions_cancelled=%s",
        document.id,
        user.id,
        len(cancelled),
    )
    return MessageResponse(message="Document deleted successfully")


@router.put("/{document_id}/star", response_model=DocumentResponse)
async def star_document(
    document_id: int,
    payload: StarRequest,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> DocumentResponse:
    if payload.starred is None:
        raise bad_request("Starred status is required")
    load_accessible_document(store, user, document_id, action="star")
    updated = documents_repo.set_starred(store, document_id, payload.starred)
    if updated is None:
        raise not_found("Document not found")
    return document_response(updated)
