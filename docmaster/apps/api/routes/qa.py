from __future__ import annotations

from fastapi import APIRouter, Depends

from docmaster.apps.api.deps import bad_request, get_current_user, get_store
from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES
from docmaster.apps.api.response import ApiModel
from docmaster.domain.models import ActivityType, User
from docmaster.persistence.store import EntityStore
from docmaster.services.activity import record_activity
from docmaster.services.qa import answer_query


router = APIRouter(prefix="/qa", tags=["qa"], responses=DEFAULT_ERROR_RESPONSES)


class QueryRequest(ApiModel):
    query: str | None = None


class SourceResponse(ApiModel):
    document_id: int
    title: str
    relevance: float


class QueryResponse(ApiModel):
    answer: str
    sources: list[SourceResponse]


@router.post("/query", response_model=QueryResponse)
async def query(
    payload: QueryRequest,
    user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
) -> QueryResponse:
    text = (payload.query or "").strip()
    if not text:
        raise bad_request("Query is required")
    result = answer_query(text)
    record_activity(
        store,
        activity_type=ActivityType.QUERY,
        user_id=user.id,
        details=f'"{text}" was queried',
    )
    return QueryResponse(
        answer=result.answer,
        sources=[
            SourceResponse(document_id=source.document_id, title=source.title, relevance=source.relevance)
            for source in result.sources
        ],
    )
