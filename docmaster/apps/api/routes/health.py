from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel

from docmaster.apps.api.openapi import DEFAULT_ERROR_RESPONSES

router = APIRouter(tags=["health"], responses=DEFAULT_ERROR_RESPONSES)


class HealthResponse(BaseModel):
    status: str


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    # Liveness only; no store or session lookup happens here.
    return HealthResponse(status="ok")
