from __future__ import annotations

from datetime import datetime, timezone

import pytest

from docmaster.core.errors import InvalidRoleError
from docmaster.domain.models import Document, Ingestion, IngestionStatus, Role, User
from docmaster.services.auth.roles import Capability, has_capability, normalize_role
from docmaster.services.authz import can_access_document, can_manage_ingestion, document_scope


_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _user(user_id: int, role: Role) -> User:
    return User(
        id=user_id,
        username=f"u{user_id}",
        password_hash="x",
        name="U",
        email=f"u{user_id}@example.com",
        role=role,
        created_at=_NOW,
    )


def _document(owner_id: int) -> Document:
    return Document(
        id=1,
        name="a.pdf",
        type="PDF",
        size=1,
        path="/a",
        user_id=owner_id,
        starred=False,
        created_at=_NOW,
        updated_at=_NOW,
    )


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("admin", Role.ADMIN), (" Editor ", Role.EDITOR), ("VIEWER", Role.VIEWER), ("user", Role.EDITOR)],
)
def test_normalize_role(raw: str, expected: Role) -> None:
    assert normalize_role(raw) is expected


def test_normalize_role_rejects_unknown_values() -> None:
    with pytest.raises(InvalidRoleError):
        normalize_role("superuser")


def test_only_admin_holds_capabilities() -> None:
    for capability in Capability:
        assert has_capability(Role.ADMIN, capability)
        assert not has_capability(Role.EDITOR, capability)
        assert not has_capability("viewer", capability)


def test_document_access_is_owner_or_admin() -> None:
    owner = _user(1, Role.VIEWER)
    stranger = _user(2, Role.EDITOR)
    admin = _user(3, Role.ADMIN)
    document = _document(owner_id=1)

    assert can_access_document(owner, document)
    assert not can_access_document(stranger, document)
    assert can_access_document(admin, document)


def test_document_scope() -> None:
    assert document_scope(_user(1, Role.VIEWER)) == 1
    assert document_scope(_user(3, Role.ADMIN)) is None


def test_ingestion_management_is_initiator_or_admin() -> None:
    ingestion = Ingestion(
        id=1,
        document_id=1,
        user_id=1,
        status=IngestionStatus.PENDING,
        logs=None,
        created_at=_NOW,
        completed_at=None,
    )
    assert can_manage_ingestion(_user(1, Role.VIEWER), ingestion)
    assert not can_manage_ingestion(_user(2, Role.EDITOR), ingestion)
    assert can_manage_ingestion(_user(3, Role.ADMIN), ingestion)
