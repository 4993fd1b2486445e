"""Account and session data access backed by SQLAlchemy."""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete

from scholarmind.db.models import User, UserSession
from scholarmind.db.session import get_session


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, email: str) -> Optional[User]:
        with get_session() as session:
            return session.get(User, email)

    def create_user(self, email: str, password_hash: str, display_name: str = "") -> User:
        now = datetime.now(timezone.utc)
        with get_session() as session:
            user = User(
                email=email,
                display_name=display_name,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    def update_user_password(self, email: str, password_hash: str) -> None:
        with get_session() as session:
            user = session.get(User, email)
            if user:
                user.password_hash = password_hash
                user.updated_at = datetime.now(timezone.utc)
                session.commit()

    # -------------------------- sessions --------------------------
    def create_user_session(self, email: str, expires_at: datetime) -> str:
        token = secrets.token_urlsafe(32)
        with get_session() as session:
            session.add(UserSession(token=token, user_email=email, expires_at=expires_at))
            session.commit()
        return token

    def get_user_session(self, token: str) -> Optional[UserSession]:
        with get_session() as session:
            return session.get(UserSession, token)

    def delete_user_session(self, token: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.token == token))
            session.commit()

