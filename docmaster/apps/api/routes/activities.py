from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from docmaster.apps.api.deps import get_current_user, get_store
from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from docmaster.apps.api.response import ActivityResponse, activity_response
from docmaster.domain.models import User
from docmaster.persistence.repos import activities as activities_repo
from docmaster.persistence.store import EntityStore


router = APIRouter(prefix="/activities", tags=["activities"], responses=DEFAULT_ERROR_RESPONSES)


@router.get("", response_model=list[ActivityResponse])
async def list_activities(
    limit: int | None = Query(default=None, ge=1),
    user_id: int | None = Query(default=None, alias="userId"),
    _user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> list[ActivityResponse]:
    # Most recent first; an absent limit returns the whole trail.
    activities = activities_repo.list_activities(store, limit=limit, user_id=user_id)
    return [activity_response(activity) for activity in activities]
