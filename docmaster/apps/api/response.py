from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from docmaster.domain.models import Activity, Document, Ingestion, User


class ApiModel(BaseModel):
    # JSON uses camelCase keys; Python code keeps snake_case attribute names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldError(BaseModel):
    field: str
    message: str
    type: str


class ErrorResponse(BaseModel):
    message: str
    errors: list[FieldError] | None = None


class MessageResponse(BaseModel):
    message: str


class UserResponse(ApiModel):
    id: int
    username: str
    name: str
    email: str
    role: str
    created_at: datetime


class DocumentResponse(ApiModel):
    id: int
    name: str
    type: str
    size: int
    path: str
    user_id: int
    starred: bool
    created_at: datetime
    updated_at: datetime
    # Same instant as updated_at; older clients read modifiedAt.
    modified_at: datetime


class ActivityResponse(ApiModel):
    id: int
    type: str
    user_id: int
    document_id: int | None
    details: str | None
    created_at: datetime


class IngestionResponse(ApiModel):
    id: int
    document_id: int
    user_id: int
    status: str
    logs: str | None
    created_at: datetime
    completed_at: datetime | None


def user_response(user: User) -> UserResponse:
    # The password hash never leaves the store.
    return UserResponse(
        id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
        role=user.role.value,
        created_at=user.created_at,
    )


def document_response(doc: Document) -> DocumentResponse:
    return DocumentResponse(
        id=doc.id,
        name=doc.name,
        type=doc.type,
        size=doc.size,
        path=doc.path,
        user_id=doc.user_id,
        starred=doc.starred,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
        modified_at=doc.updated_at,
    )


def activity_response(activity: Activity) -> ActivityResponse:
    return ActivityResponse(
        id=activity.id,
        type=activity.type,
        user_id=activity.user_id,
        document_id=activity.document_id,
        details=activity.details,
        created_at=activity.created_at,
    )


def ingestion_response(ingestion: Ingestion) -> IngestionResponse:
    return IngestionResponse(
        id=ingestion.id,
        document_id=ingestion.document_id,
        user_id=ingestion.user_id,
        status=ingestion.status.value,
        logs=ingestion.logs,
        created_at=ingestion.created_at,
        completed_at=ingestion.completed_at,
    )


def error_payload(message: str, errors: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"message": message}
    if errors is not None:
        payload["errors"] = errors
    return payload
