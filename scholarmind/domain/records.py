"""
Subject and Goal records plus their JSON codec.

Records are frozen; repositories replace them instead of mutating in place,
so snapshots handed out to callers stay stable.
"""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from .errors import PersistenceError, ValidationError


@dataclass(frozen=True)
class Subject:
    id: str
    name: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Subject":
        return cls(id=str(data["id"]), name=str(data["name"]))


@dataclass(frozen=True)
class Goal:
    id: str
    title: str
    subject: str  # subject *name*, resolved against live subjects at read time
    description: str = ""
    completed: bool = False
    date: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Goal":
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            subject=str(data["subject"]),
            description=str(data.get("description") or ""),
            completed=_flag(data.get("completed", False), "completed"),
            date=str(data.get("date") or ""),
        )


def _flag(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{field} must be a boolean, got {value!r}")
    return value


def utc_now_iso() -> str:
    """Current time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def require_text(value: Any, field: str) -> str:
    """Trim ``value`` and reject it when empty."""
    text = (value or "").strip() if isinstance(value, str) or value is None else None
    if not text:
        raise ValidationError(f"{field} must not be empty")
    return text


def encode_records(records: Iterable[Subject | Goal]) -> bytes:
    return json.dumps([r.to_dict() for r in records], ensure_ascii=False).encode("utf-8")


def _decode(raw: bytes | None, factory, key: str) -> list:
    if raw is None:
        return []
    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise PersistenceError(f"Corrupt payload under {key!r}: {exc}", key=key) from exc
    if not isinstance(payload, list):
        raise PersistenceError(f"Corrupt payload under {key!r}: expected a list", key=key)
    try:
        return [factory(item) for item in payload]
    except (KeyError, TypeError) as exc:
        raise PersistenceError(f"Corrupt payload under {key!r}: {exc}", key=key) from exc


def decode_subjects(raw: bytes | None, key: str = "subjects") -> list[Subject]:
    return _decode(raw, Subject.from_dict, key)


def decode_goals(raw: bytes | None, key: str = "goals") -> list[Goal]:
    return _decode(raw, Goal.from_dict, key)
