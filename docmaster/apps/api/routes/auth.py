from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from pydantic import AfterValidator, Field, field_validator

from docmaster.apps.api.deps import (
    bad_request,
    get_current_user,
    get_sessions,
    get_settings_dep,
    get_store,
    session_token,
)
from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from docmaster.apps.api.response import ApiModel, MessageResponse, UserResponse, user_response
from docmaster.core.config import Settings
from docmaster.domain.models import Role, User
from docmaster.persistence.repos import users as users_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.auth.passwords import hash_password
from docmaster.services.auth.roles import normalize_role
from docmaster.services.auth.sessions import SessionManager, authenticate
from docmaster.services.telemetry import increment_counter


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"], responses=DEFAULT_ERROR_RESPONSES)


def validate_email(value: str) -> str:
    # Structural check only; deliverability is not our concern.
    local, sep, domain = value.partition("@")
    if not sep or not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
        raise ValueError("Invalid email address")
    return value


EmailAddress = Annotated[str, Field(min_length=3, max_length=254), AfterValidator(validate_email)]


class SignupRequest(ApiModel):
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    email: EmailAddress
    role: Role = Role.VIEWER

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_role(value)
        return value


class LoginRequest(ApiModel):
    username: str | None = None
    password: str | None = None


def ensure_unique_identity(
    store: EntityStore,
    *,
    username: str | None,
    email: str | None,
    exclude_user_id: int | None = None,
) -> None:
    # The store does not enforce uniqueness; every writer must call this first.
    if username is not None:
        existing = users_repo.get_user_by_username(store, username)
        if existing is not None and existing.id != exclude_user_id:
            raise bad_request("Username already exists")
    if email is not None:
        existing = users_repo.get_user_by_email(store, email)
        if existing is not None and existing.id != exclude_user_id:
            raise bad_request("Email already exists")


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    store: EntityStore = Depends(get_store),
) -> UserResponse:
    # Hash first so the uniqueness check and the insert run without an await between them.
    password_hash = await run_in_threadpool(hash_password, payload.password)
    ensure_unique_identity(store, username=payload.username, email=payload.email)
    user = users_repo.create_user(
        store,
        username=payload.username,
        password_hash=password_hash,
        name=payload.name,
        email=payload.email,
        role=payload.role,
    )
    logger.info("user_signup user_id=%s role=%s", user.id, user.role.value)
    return user_response(user)


@router.post("/login", response_model=UserResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    store: EntityStore = Depends(get_store),
    sessions: SessionManager = Depends(get_sessions),
    settings: Settings = Depends(get_settings_dep),
) -> UserResponse:
    if not payload.username or not payload.password:
        raise bad_request("Username and password are required")
    user = await authenticate(store, payload.username, payload.password)
    if user is None:
        increment_counter("auth.login.failure")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    token = sessions.issue(user.id)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=int(sessions.ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    increment_counter("auth.login.success")
    logger.info("user_login user_id=%s", user.id)
    return user_response(user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: Request,
    response: Response,
    sessions: SessionManager = Depends(get_sessions),
    settings: Settings = Depends(get_settings_dep),
) -> MessageResponse:
    # Logging out without a session still succeeds and clears any stale cookie.
    sessions.destroy(session_token(request))
    response.delete_cookie(settings.session_cookie_name)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def me(user: User = Depends(get_current_user)) -> UserResponse:
    return user_response(user)
