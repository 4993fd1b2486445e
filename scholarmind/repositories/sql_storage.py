"""Key-value storage backed by the ``kv_entries`` table."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from scholarmind.db.models import KeyValueEntry
from scholarmind.db.session import get_session
from scholarmind.domain.errors import PersistenceError


class SQLStorage:
    """Async facade over the synchronous SQLAlchemy session helpers."""

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    def _get(self, key: str) -> bytes | None:
        try:
            with get_session() as session:
                entry = session.get(KeyValueEntry, key)
                return bytes(entry.value) if entry else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Read of {key!r} failed: {exc}", key=key) from exc

    def _set(self, key: str, value: bytes) -> None:
        now = datetime.now(timezone.utc)
        try:
            with get_session() as session:
                entry = session.get(KeyValueEntry, key)
                if not entry:
                    session.add(KeyValueEntry(key=key, value=bytes(value), updated_at=now))
                else:
                    entry.value = bytes(value)
                    entry.updated_at = now
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Write of {key!r} failed: {exc}", key=key) from exc

    def _remove(self, key: str) -> None:
        try:
            with get_session() as session:
                session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
                session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Remove of {key!r} failed: {exc}", key=key) from exc
