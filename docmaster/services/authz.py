from __future__ import annotations

from docmaster.domain.models import Document, Ingestion, User
from docmaster.services.auth.roles import Capability, has_capability


def can_access_document(user: User, document: Document) -> bool:
    # Ownership-or-admin: the creator or any principal allowed to see all documents.
    if has_capability(user.role, Capability.ACCESS_ALL_DOCUMENTS):
        return True
    return document.user_id == user.id


def can_manage_ingestion(user: User, ingestion: Ingestion) -> bool:
    if has_capability(user.role, Capability.ACCESS_ALL_DOCUMENTS):
        return True
    return ingestion.user_id == user.id


def document_scope(user: User) -> int | None:
    # None lists every document; otherwise listing is restricted to the caller's own.
    if has_capability(user.role, Capability.ACCESS_ALL_DOCUMENTS):
        return None
    return user.id
