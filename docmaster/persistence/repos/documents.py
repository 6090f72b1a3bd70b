from __future__ import annotations

from typing import Any

from docmaster.domain.models import DOCUMENTS, Document
from docmaster.persistence.store import EntityStore


# Fields a caller may rewrite; ownership and timestamps stay store-managed.
MUTABLE_FIELDS = frozenset({"name", "type", "size", "path", "starred"})


def create_document(
    store: EntityStore,
    *,
    name: str,
    type: str,
    size: int,
    path: str,
    user_id: int,
) -> Document:
    return store.create(
        DOCUMENTS,
        name=name,
        type=type,
        size=size,
        path=path,
        user_id=user_id,
        starred=False,
    )


def get_document(store: EntityStore, document_id: int) -> Document | None:
    return store.get(DOCUMENTS, document_id)


def list_documents(store: EntityStore, user_id: int | None = None) -> list[Document]:
    # Owner scoping happens here; the admin path passes no user_id.
    if user_id is None:
        return store.list(DOCUMENTS)
    return store.list(DOCUMENTS, lambda doc: doc.user_id == user_id)


def update_document(store: EntityStore, document_id: int, **fields: Any) -> Document | None:
    unknown = set(fields) - MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Document fields are not updatable: {', '.join(sorted(unknown))}")
    return store.update(DOCUMENTS, document_id, **fields)


def set_starred(store: EntityStore, document_id: int, starred: bool) -> Document | None:
    return store.update(DOCUMENTS, document_id, starred=starred)


def delete_document(store: EntityStore, document_id: int) -> bool:
    return store.delete(DOCUMENTS, document_id)
