from __future__ import annotations

from dataclasses import dataclass
import logging

from docmaster.core.config import Settings
from docmaster.domain.models import Role, User
from docmaster.persistence.repos import documents as documents_repo
from docmaster.persistence.repos import users as users_repo
from docmaster.persistence.store import EntityStore
from docmaster.services.auth.passwords import hash_password


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DemoDocument:
    name: str
    type: str
    size: int
    path: str


# Ids 1 and 3 line up with the simulated Q&A citations.
DEMO_DOCUMENTS: tuple[DemoDocument, ...] = (
    DemoDocument("Annual Report 2023.pdf", "PDF", 2_457_600, "/documents/annual-report-2023.pdf"),
    DemoDocument("Project Proposal.docx", "DOCX", 512_000, "/documents/project-proposal.docx"),
    DemoDocument("Q1 Financial Summary.xlsx", "XLSX", 1_048_576, "/documents/q1-financial-summary.xlsx"),
    DemoDocument("Meeting Notes.txt", "TXT", 8_192, "/documents/meeting-notes.txt"),
)


def seed_default_admin(store: EntityStore, settings: Settings) -> User | None:
    # Skip when the username is taken so repeated seeding stays idempotent.
    if users_repo.get_user_by_username(store, settings.default_admin_username) is not None:
        return None
    admin = users_repo.create_user(
        store,
        username=settings.default_admin_username,
        password_hash=hash_password(settings.default_admin_password),
        name=settings.default_admin_name,
        email=settings.default_admin_email,
        role=Role.ADMIN,
    )
    logger.info("seed_default_admin user_id=%s username=%s", admin.id, admin.username)
    return admin


def seed_demo_documents(store: EntityStore, owner: User) -> int:
    for demo in DEMO_DOCUMENTS:
        documents_repo.create_document(
            store,
            name=demo.name,
            type=demo.type,
            size=demo.size,
            path=demo.path,
            user_id=owner.id,
        )
    logger.info("seed_demo_documents owner_id=%s count=%s", owner.id, len(DEMO_DOCUMENTS))
    return len(DEMO_DOCUMENTS)


def seed_store(store: EntityStore, settings: Settings) -> None:
    admin = seed_default_admin(store, settings) if settings.seed_default_admin else None
    if settings.seed_demo_documents and admin is not None:
        seed_demo_documents(store, admin)
