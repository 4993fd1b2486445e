"""Dict-backed key-value storage for tests and throwaway runs."""
from __future__ import annotations

from scholarmind.domain.errors import PersistenceError


class MemoryStorage:
    """Keeps values in a dict. ``fail_reads``/``fail_writes`` simulate outages."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self.data: dict[str, bytes] = dict(initial or {})
        self.fail_reads = False
        self.fail_writes = False
        self.writes: list[str] = []

    async def get(self, key: str) -> bytes | None:
        if self.fail_reads:
            raise PersistenceError(f"Read of {key!r} failed", key=key)
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        if self.fail_writes:
            raise PersistenceError(f"Write of {key!r} failed", key=key)
        self.data[key] = bytes(value)
        self.writes.append(key)

    async def remove(self, key: str) -> None:
        if self.fail_writes:
            raise PersistenceError(f"Remove of {key!r} failed", key=key)
        self.data.pop(key, None)
