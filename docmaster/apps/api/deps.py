from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status

from docmaster.core.config import Settings
from docmaster.domain.models import Document, User
from docmaster.persistence.repos import documents as documents_repo
from docmaster.persistence.repos import users as users_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.auth.roles import Capability, has_capability
from docmaster.services.auth.sessions import SessionManager
from docmaster.services.authz import can_access_document
from docmaster.services.ingest.runner import IngestionRunner


logger = logging.getLogger(__name__)


# Dependencies are async so store access stays on the event loop thread.
async def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


async def get_store(request: Request) -> EntityStore:
    return request.app.state.store


async def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


async def get_runner(request: Request) -> IngestionRunner:
    return request.app.state.runner


def session_token(request: Request) -> str | None:
    return request.cookies.get(request.app.state.settings.session_cookie_name)


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def forbidden(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


def not_found(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)


def bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


async def get_current_user(
    request: Request,
    store: EntityStore = Depends(get_store),
    sessions: SessionManager = Depends(get_sessions),
) -> User:
    token = session_token(request)
    user_id = sessions.resolve(token)
    if user_id is None:
        raise _unauthorized()
    user = users_repo.get_user(store, user_id)
    if user is None:
        # The account was deleted after login; the session is no longer meaningful.
        sessions.destroy(token)
        raise _unauthorized()
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    # Role is read from the freshly loaded user so demotions take effect immediately.
    if not has_capability(user.role, Capability.MANAGE_USERS):
        logger.info("rbac_forbidden user_id=%s role=%s", user.id, user.role.value)
        raise forbidden("Forbidden: Admin role required")
    return user


def load_accessible_document(
    store: EntityStore,
    user: User,
    document_id: int,
    *,
    action: str,
) -> Document:
    # Not-found is checked before ownership so missing ids never leak as 403.
    document = documents_repo.get_document(store, document_id)
    if document is None:
        raise not_found("Document not found")
    if not can_access_document(user, document):
        logger.info(
            "document_access_denied user_id=%s document_id=%s action=%s",
            user.id,
            document_id,
            action,
        )
        raise forbidden(f"You don't have permission to {action} this document")
    return document
