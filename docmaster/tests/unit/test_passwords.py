from __future__ import annotations

from docmaster.services.auth.passwords import hash_password, verify_password


def test_hash_is_salted_and_verifies() -> None:
    first = hash_password("admin123")
    second = hash_password("admin123")

    assert first != second
    assert "admin123" not in first
    assert first.startswith("$argon2")
    assert verify_password("admin123", first)
    assert verify_password("admin123", second)
    assert not verify_password("admin124", first)


def test_unrecognised_hashes_never_match() -> None:
    for stored in ("", "plaintext", "pbkdf2_sha256$1000$salt$abc"):
        assert verify_password("plaintext", stored) is False
