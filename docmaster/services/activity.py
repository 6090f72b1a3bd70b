from __future__ import annotations

import logging

from docmaster.domain.models import Activity, ActivityType
from docmaster.persistence.repos import activities as activities_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.telemetry import increment_counter


logger = logging.getLogger(__name__)


def record_activity(
    store: EntityStore,
    *,
    activity_type: ActivityType,
    user_id: int,
    details: str,
    document_id: int | None = None,
) -> Activity:
    # Called only after the primary operation succeeded so failures leave no trail.
    activity = activities_repo.create_activity(
        store,
        type=activity_type.value,
        user_id=user_id,
        document_id=document_id,
        details=details,
    )
    increment_counter(f"activity.{activity_type.value}")
    logger.info(
        "activity_recorded activity_id=%s type=%s user_id=%s document_id=%s",
        activity.id,
        activity.type,
        user_id,
        document_id,
    )
    return activity
