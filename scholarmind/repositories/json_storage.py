"""
JSON-file key-value storage.

All keys live in one JSON document ({key: text}). Writes go to a temp file
that replaces the original, so a crash never leaves a half-written document.
"""

from __future__ import annotations

import asyncio
import json
import os
import threading
from pathlib import Path

from scholarmind.domain.errors import PersistenceError


class JsonFileStorage:
    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    async def get(self, key: str) -> bytes | None:
        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    # -------------------------- sync helpers --------------------------
    def _load(self, key: str) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Cannot read {self.path}: {exc}", key=key) from exc
        if not isinstance(data, dict):
            raise PersistenceError(f"Cannot read {self.path}: not a JSON object", key=key)
        return data

    def _save(self, data: dict, key: str) -> None:
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise PersistenceError(f"Cannot write {self.path}: {exc}", key=key) from exc

    def _get(self, key: str) -> bytes | None:
        with self._lock:
            value = self._load(key).get(key)
        if value is None:
            return None
        return str(value).encode("utf-8")

    def _set(self, key: str, value: bytes) -> None:
        try:
            text = value.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PersistenceError(f"Value for {key!r} is not UTF-8 text", key=key) from exc
        with self._lock:
            data = self._load(key)
            data[key] = text
            self._save(data, key)

    def _remove(self, key: str) -> None:
        with self._lock:
            data = self._load(key)
            if data.pop(key, None) is not None:
                self._save(data, key)
