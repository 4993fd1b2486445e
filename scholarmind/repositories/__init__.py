"""
In-memory repositories and persistence adapters.

``SubjectRepository``/``GoalRepository`` own the ordered collections; the
``*_storage`` modules implement the async key-value capability the data store
writes them through to (JSON file, SQL table, or memory).
"""
from __future__ import annotations

from typing import Protocol


class KeyValueStorage(Protocol):
    """Asynchronous byte store addressed by string keys."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes) -> None: ...

    async def remove(self, key: str) -> None: ...
