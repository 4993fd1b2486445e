"""Password hashing helpers (Argon2)."""

from __future__ import annotations

from argon2 import PasswordHasher, exceptions as argon_exc

_ph = PasswordHasher()
_PREFIX = "argon2$"


def hash_password(password: str) -> str:
    """Create an Argon2 hash with a prefix for detection."""
    hashed = _ph.hash(password)
    return f"{_PREFIX}{hashed}"


def verify_password(password: str, stored_hash: str | None) -> bool:
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return False
    hashed = stored[len(_PREFIX) :]
    try:
        return _ph.verify(hashed, password)
    except (argon_exc.VerifyMismatchError, argon_exc.VerificationError, argon_exc.InvalidHashError):
        return False


def needs_rehash(stored_hash: str) -> bool:
    stored = stored_hash or ""
    if not stored.startswith(_PREFIX):
        return True
    return _ph.check_needs_rehash(stored[len(_PREFIX) :])
