"""Password hashing helpers (argon2 via pwdlib).

Both helpers are CPU bound; request handlers call them through
``run_in_threadpool`` so the event loop keeps serving other requests.
"""

from __future__ import annotations

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError


_password_hash = PasswordHash.recommended()


def hash_password(password: str) -> str:
    return _password_hash.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    # An unrecognised stored hash can never match; treat it as a failed login.
    try:
        return _password_hash.verify(password, hashed)
    except UnknownHashError:
        return False
