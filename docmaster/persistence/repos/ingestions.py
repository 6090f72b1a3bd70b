from __future__ import annotations

from docmaster.core.errors import InvalidTransitionError
from docmaster.domain.models import INGESTIONS, Ingestion, IngestionStatus
from docmaster.persistence.store import EntityStore


_ALLOWED_TRANSITIONS: dict[IngestionStatus, frozenset[IngestionStatus]] = {
    IngestionStatus.PENDING: frozenset({IngestionStatus.PROCESSING, IngestionStatus.FAILED}),
    IngestionStatus.PROCESSING: frozenset({IngestionStatus.COMPLETED, IngestionStatus.FAILED}),
    IngestionStatus.COMPLETED: frozenset(),
    IngestionStatus.FAILED: frozenset(),
}


def can_transition(current: IngestionStatus, requested: IngestionStatus) -> bool:
    return requested in _ALLOWED_TRANSITIONS[current]


def create_ingestion(store: EntityStore, *, document_id: int, user_id: int) -> Ingestion:
    return store.create(
        INGESTIONS,
        document_id=document_id,
        user_id=user_id,
        status=IngestionStatus.PENDING,
        logs=None,
        completed_at=None,
    )


def get_ingestion(store: EntityStore, ingestion_id: int) -> Ingestion | None:
    return store.get(INGESTIONS, ingestion_id)


def list_ingestions(
    store: EntityStore,
    *,
    document_id: int | None = None,
    user_id: int | None = None,
) -> list[Ingestion]:
    def where(row: Ingestion) -> bool:
        if document_id is not None and row.document_id != document_id:
            return False
        return user_id is None or row.user_id == user_id

    return sorted(store.list(INGESTIONS, where), key=lambda row: row.created_at, reverse=True)


def set_status(
    store: EntityStore,
    ingestion_id: int,
    status: IngestionStatus,
    logs: str | None = None,
) -> Ingestion | None:
    # Status only moves forward; completed_at is stamped once on reaching a terminal state.
    ingestion = store.get(INGESTIONS, ingestion_id)
    if ingestion is None:
        return None
    status = IngestionStatus(status)
    if not can_transition(ingestion.status, status):
        raise InvalidTransitionError(ingestion.status.value, status.value)
    fields: dict[str, object] = {"status": status}
    if logs is not None:
        fields["logs"] = logs
    if status.is_terminal:
        fields["completed_at"] = store.now()
    return store.update(INGESTIONS, ingestion_id, **fields)
