from __future__ import annotations

from docmaster.domain.models import ACTIVITIES, Activity
from docmaster.persistence.store import EntityStore


def create_activity(
    store: EntityStore,
    *,
    type: str,
    user_id: int,
    details: str | None,
    document_id: int | None = None,
) -> Activity:
    # Activities are append-only; there is no update or delete path.
    return store.create(
        ACTIVITIES,
        type=type,
        user_id=user_id,
        document_id=document_id,
        details=details,
    )


def list_activities(
    store: EntityStore,
    *,
    limit: int | None = None,
    user_id: int | None = None,
) -> list[Activity]:
    where = None if user_id is None else (lambda activity: activity.user_id == user_id)
    rows = store.list(ACTIVITIES, where)
    # sorted() is stable under reverse=True, so equal timestamps keep insertion order.
    rows = sorted(rows, key=lambda activity: activity.created_at, reverse=True)
    if limit:
        return rows[:limit]
    return rows
