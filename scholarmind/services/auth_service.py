"""
Authentication and identity use cases.

Stands in for the remote auth provider: it supplies the signed-in identity
(email plus display name) the data store namespaces its keys with.
"""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from scholarmind.core.config import get_settings
from scholarmind.core.security import hash_password, needs_rehash, verify_password
from scholarmind.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
MIN_PASSWORD_LENGTH = 6


class AuthError(Exception):
    """Base class for authentication-related exceptions."""


class RegistrationError(AuthError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AccountExistsError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


@dataclass(frozen=True)
class Identity:
    email: str
    display_name: str

    @property
    def storage_key(self) -> str:
        """Stable namespace for persisted data; never exposes the address."""
        digest = hashlib.sha256(self.email.strip().lower().encode("utf-8")).hexdigest()
        return f"user-{digest[:16]}"


@dataclass
class LoginResult:
    identity: Identity
    session_token: str


@dataclass
class AuthService:
    """Handles sign-up, login, logout and session lookup."""

    def __post_init__(self):
        self.settings = get_settings()
        self.repository = SQLRepository()

    # -------------------------------------- helpers --------------------------------------
    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _session_expired(self, expires_at: datetime | None, now: datetime) -> bool:
        if expires_at is None:
            return True
        # SQLite hands back naive datetimes; they were stored as UTC
        normalized = expires_at if expires_at.tzinfo else expires_at.replace(tzinfo=timezone.utc)
        return normalized <= now

    def _normalize_email(self, email: str | None) -> str:
        return (email or "").strip().lower()

    # -------------------------------------- flows --------------------------------------
    def signup(self, email: str, password: str, display_name: str = "") -> Identity:
        address = self._normalize_email(email)
        if not EMAIL_PATTERN.fullmatch(address):
            raise RegistrationError("Please enter a valid e-mail address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise RegistrationError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
        if self.repository.get_user(address):
            raise AccountExistsError(address)
        name = (display_name or "").strip() or address.split("@", 1)[0]
        self.repository.create_user(address, hash_password(password), display_name=name)
        logger.info("Account created for %s", address)
        return Identity(email=address, display_name=name)

    def login(self, email: str, password: str) -> LoginResult:
        address = self._normalize_email(email)
        user = self.repository.get_user(address) if address else None
        if not user or not verify_password(password or "", user.password_hash):
            raise InvalidCredentialsError("Invalid e-mail or password")
        if needs_rehash(user.password_hash):
            self.repository.update_user_password(address, hash_password(password))
        ttl = max(60, self.settings.session_ttl_seconds)
        token = self.repository.create_user_session(address, self._now() + timedelta(seconds=ttl))
        identity = Identity(email=user.email, display_name=user.display_name or "")
        return LoginResult(identity=identity, session_token=token)

    def current_identity(self, token: str | None) -> Optional[Identity]:
        if not token:
            return None
        entity = self.repository.get_user_session(token)
        if not entity:
            return None
        if self._session_expired(entity.expires_at, self._now()):
            self.repository.delete_user_session(token)
            return None
        user = self.repository.get_user(entity.user_email)
        if not user:
            return None
        return Identity(email=user.email, display_name=user.display_name or "")

    def logout(self, token: str | None) -> None:
        if token:
            self.repository.delete_user_session(token)
