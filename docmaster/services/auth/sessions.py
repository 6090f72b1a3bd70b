from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import hashlib
import logging
import secrets

from fastapi.concurrency import run_in_threadpool

from docmaster.domain.models import User
from docmaster.persistence.repos import users as users_repo
from docmaster.persistence.store import Clock, EntityStore, utc_now
from docmaster.services.auth.passwords import verify_password


logger = logging.getLogger(__name__)

TOKEN_PREFIX = "dms_"


def hash_session_token(raw_token: str) -> str:
    # Use SHA-256 so a leaked session table does not expose usable cookies.
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_session_token() -> tuple[str, str]:
    raw_token = f"{TOKEN_PREFIX}{secrets.token_urlsafe(32)}"
    return raw_token, hash_session_token(raw_token)


@dataclass(frozen=True)
class SessionRecord:
    user_id: int
    created_at: datetime
    expires_at: datetime


class SessionManager:
    """Server-side map from opaque cookie tokens to authenticated user ids."""

    def __init__(self, *, ttl: timedelta, clock: Clock = utc_now) -> None:
        self._ttl = ttl
        self._clock = clock
        self._sessions: dict[str, SessionRecord] = {}

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user_id: int) -> str:
        # Expiry is fixed at issuance; activity does not extend it.
        raw_token, token_hash = generate_session_token()
        now = self._clock()
        self._sessions[token_hash] = SessionRecord(
            user_id=user_id,
            created_at=now,
            expires_at=now + self._ttl,
        )
        return raw_token

    def resolve(self, raw_token: str | None) -> int | None:
        if not raw_token:
            return None
        token_hash = hash_session_token(raw_token)
        record = self._sessions.get(token_hash)
        if record is None:
            return None
        if record.expires_at <= self._clock():
            self._sessions.pop(token_hash, None)
            return None
        return record.user_id

    def destroy(self, raw_token: str | None) -> bool:
        if not raw_token:
            return False
        return self._sessions.pop(hash_session_token(raw_token), None) is not None

    def destroy_user_sessions(self, user_id: int) -> int:
        doomed = [key for key, record in self._sessions.items() if record.user_id == user_id]
        for key in doomed:
            del self._sessions[key]
        return len(doomed)

    def active_count(self) -> int:
        now = self._clock()
        return sum(1 for record in self._sessions.values() if record.expires_at > now)


async def authenticate(store: EntityStore, username: str, password: str) -> User | None:
    # Return None for unknown users and wrong passwords alike to avoid user enumeration.
    user = users_repo.get_user_by_username(store, username)
    if user is None:
        return None
    # The store is read on the loop; only the hash comparison moves to a worker thread.
    if not await run_in_threadpool(verify_password, password, user.password_hash):
        logger.info("auth_login_rejected user_id=%s", user.id)
        return None
    return user
