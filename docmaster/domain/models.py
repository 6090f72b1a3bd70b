from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class IngestionStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (IngestionStatus.COMPLETED, IngestionStatus.FAILED)


class ActivityType(str, Enum):
    UPLOAD = "upload"
    EDIT = "edit"
    DELETE = "delete"
    QUERY = "query"
    INGESTION = "ingestion"


# Entity kinds double as store table names.
USERS = "users"
DOCUMENTS = "documents"
ACTIVITIES = "activities"
INGESTIONS = "ingestions"


@dataclass(frozen=True)
class User:
    id: int
    username: str
    # Only the salted hash is kept; plaintext never reaches the store.
    password_hash: str
    name: str
    email: str
    role: Role
    created_at: datetime


@dataclass(frozen=True)
class Document:
    id: int
    name: str
    type: str
    size: int
    path: str
    # Owner is fixed at creation; updates never rewrite it.
    user_id: int
    starred: bool
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Activity:
    id: int
    type: str
    user_id: int
    document_id: int | None
    details: str | None
    created_at: datetime


@dataclass(frozen=True)
class Ingestion:
    id: int
    document_id: int
    user_id: int
    status: IngestionStatus
    logs: str | None
    created_at: datetime
    completed_at: datetime | None


RECORD_TYPES: dict[str, type] = {
    USERS: User,
    DOCUMENTS: Document,
    ACTIVITIES: Activity,
    INGESTIONS: Ingestion,
}
