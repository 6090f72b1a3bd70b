from __future__ import annotations

from enum import Enum

from docmaster.core.errors import InvalidRoleError
from docmaster.domain.models import Role


class Capability(str, Enum):
    MANAGE_USERS = "manage_users"
    ACCESS_ALL_DOCUMENTS = "access_all_documents"


ROLE_CAPABILITIES: dict[Role, frozenset[Capability]] = {
    Role.ADMIN: frozenset({Capability.MANAGE_USERS, Capability.ACCESS_ALL_DOCUMENTS}),
    Role.EDITOR: frozenset(),
    Role.VIEWER: frozenset(),
}

# Older clients still send "user" for the non-admin write role.
_LEGACY_ALIASES: dict[str, Role] = {"user": Role.EDITOR}


def normalize_role(role: str | Role) -> Role:
    # Enforce a stable, lowercased role vocabulary for capability checks.
    if isinstance(role, Role):
        return role
    normalized = role.strip().lower()
    if normalized in _LEGACY_ALIASES:
        return _LEGACY_ALIASES[normalized]
    try:
        return Role(normalized)
    except ValueError:
        raise InvalidRoleError(f"Unsupported role: {role}") from None


def has_capability(role: str | Role, capability: Capability) -> bool:
    return capability in ROLE_CAPABILITIES[normalize_role(role)]
