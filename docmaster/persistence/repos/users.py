from __future__ import annotations

from typing import Any

from docmaster.domain.models import USERS, Role, User
from docmaster.persistence.store import EntityStore


def create_user(
    store: EntityStore,
    *,
    username: str,
    password_hash: str,
    name: str,
    email: str,
    role: Role,
) -> User:
    # Callers check username/email uniqueness before creating.
    return store.create(
        USERS,
        username=username,
        password_hash=password_hash,
        name=name,
        email=email,
        role=role,
    )


def get_user(store: EntityStore, user_id: int) -> User | None:
    return store.get(USERS, user_id)


def get_user_by_username(store: EntityStore, username: str) -> User | None:
    matches = store.list(USERS, lambda user: user.username == username)
    return matches[0] if matches else None


def get_user_by_email(store: EntityStore, email: str) -> User | None:
    matches = store.list(USERS, lambda user: user.email == email)
    return matches[0] if matches else None


def list_users(store: EntityStore) -> list[User]:
    return store.list(USERS)


def update_user(store: EntityStore, user_id: int, **fields: Any) -> User | None:
    return store.update(USERS, user_id, **fields)


def delete_user(store: EntityStore, user_id: int) -> bool:
    return store.delete(USERS, user_id)
