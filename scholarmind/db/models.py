"""SQLAlchemy models: accounts, sessions and the key-value store."""
from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    LargeBinary,
    String,
    func,
)
from sqlalchemy.orm import relationship

from .session import Base


class User(Base):
    __tablename__ = "users"

    email = Column(String(255), primary_key=True)
    display_name = Column(String(255), nullable=False, default="")
    password_hash = Column(String(512), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    sessions = relationship("UserSession", back_populates="user", cascade="all,delete-orphan")


class UserSession(Base):
    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    user_email = Column(String(255), ForeignKey("users.email", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="sessions")


class KeyValueEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(String(255), primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
