from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from pydantic import Field, field_validator

from docmaster.apps.api.deps import (
    bad_request,
    get_runner,
    get_sessions,
    get_store,
    not_found,
    require_admin,
)
from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from docmaster.apps.api.response import ApiModel, MessageResponse, UserResponse, user_response
from docmaster.apps.api.routes.auth import EmailAddress, ensure_unique_identity
from docmaster.domain.models import Role, User
from docmaster.persistence.repos import documents as documents_repo
from docmaster.persistence.repos import users as users_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.auth.passwords import hash_password
from docmaster.services.auth.roles import normalize_role
from docmaster.services.auth.sessions import SessionManager
from docmaster.services.ingest.runner import IngestionRunner


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"], responses=DEFAULT_ERROR_RESPONSES)


class UserUpdateRequest(ApiModel):
    username: str | None = Field(default=None, min_length=1, max_length=150)
    password: str | None = Field(default=None, min_length=1)
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailAddress | None = None
    role: Role | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_role(value)
        return value


@router.get("", response_model=list[UserResponse])
async def list_users(
    _admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> list[UserResponse]:
    return [user_response(user) for user in users_repo.list_users(store)]


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    payload: UserUpdateRequest,
    admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
) -> UserResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    password = changes.pop("password", None)
    if password is not None:
        changes["password_hash"] = await run_in_threadpool(hash_password, password)
    # Lookups, uniqueness and the write stay together after the only await.
    if users_repo.get_user(store, user_id) is None:
        raise not_found("User not found")
    ensure_unique_identity(
        store,
        username=changes.get("username"),
        email=changes.get("email"),
        exclude_user_id=user_id,
    )
    updated = users_repo.update_user(store, user_id, **changes)
    if updated is None:
        raise not_found("User not found")
    logger.info(
        "user_updated user_id=%s by=%s fields=%s", user_id, admin.id, ",".join(sorted(changes))
    )
    return user_response(updated)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    store: EntityStore = Depends(get_store),
    sessions: SessionManager = Depends(get_sessions),
    runner: IngestionRunner = Depends(get_runner),
) -> MessageResponse:
    if user_id == admin.id:
        raise bad_request("Cannot delete your own account")
    if users_repo.get_user(store, user_id) is None:
        raise not_found("User not found")
    # Owned documents go with the account; activities stay as the audit trail.
    owned = documents_repo.list_documents(store, user_id=user_id)
    for document in owned:
        runner.cancel_for_document(document.id)
        documents_repo.delete_document(store, document.id)
    # Jobs the user started on other people's documents must not complete under a dead id.
    cancelled = runner.cancel_for_user(user_id)
    revoked = sessions.destroy_user_sessions(user_id)
    users_repo.delete_user(store, user_id)
    logger.info(
        "user_deleted user_id=%s by=%s documents_removed=%s ingestions_cancelled=%s sessions_revoked=%s",
        user_id,
        admin.id,
        len(owned),
        len(cancelled),
        revoked,
    )
    return MessageResponse(message="User deleted successfully")
