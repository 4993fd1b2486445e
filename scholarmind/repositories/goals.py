"""
Ordered collection of Goal records.

Goals point at subjects by *name*. The reference is checked against the
subject repository when a goal is created or re-pointed, but nothing keeps
it valid afterwards: deleting a subject leaves its goals in place.
"""
from __future__ import annotations

import dataclasses
from typing import Callable, Iterable, Optional

from scholarmind.core.ids import new_id
from scholarmind.domain.errors import NotFoundError, ValidationError
from scholarmind.domain.records import Goal, require_text, utc_now_iso
from scholarmind.repositories.subjects import SubjectRepository


class GoalRepository:
    """CRUD over goals, validating subject references at call time."""

    def __init__(
        self,
        subjects: SubjectRepository,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self._subjects = subjects
        self._items: list[Goal] = []
        self._id_factory = id_factory or (lambda: new_id(self.ids()))
        self._clock = clock

    # -------------------------- mutations --------------------------
    def add(self, title: str, subject: str, description: str | None = "") -> Goal:
        clean_title = require_text(title, "Goal title")
        subject_name = self._resolve_subject(subject)
        goal = Goal(
            id=self._id_factory(),
            title=clean_title,
            subject=subject_name,
            description=description or "",
            completed=False,
            date=self._clock(),
        )
        self._items.append(goal)
        return goal

    def toggle(self, goal_id: str) -> Goal:
        index = self._index_of(goal_id)
        current = self._items[index]
        updated = dataclasses.replace(current, completed=not current.completed)
        self._items[index] = updated
        return updated

    def update(
        self,
        goal_id: str,
        title: str | None = None,
        subject: str | None = None,
        description: str | None = None,
    ) -> Goal:
        """Merge the provided fields; ``None`` leaves a field unchanged."""
        index = self._index_of(goal_id)
        changes: dict = {}
        if title is not None:
            changes["title"] = require_text(title, "Goal title")
        if subject is not None:
            changes["subject"] = self._resolve_subject(subject)
        if description is not None:
            changes["description"] = description
        updated = dataclasses.replace(self._items[index], **changes)
        self._items[index] = updated
        return updated

    def delete(self, goal_id: str) -> None:
        index = self._index_of(goal_id)
        del self._items[index]

    # -------------------------- queries --------------------------
    def list(self) -> tuple[Goal, ...]:
        return tuple(self._items)

    def get(self, goal_id: str) -> Optional[Goal]:
        for goal in self._items:
            if goal.id == goal_id:
                return goal
        return None

    def for_subject(self, name: str) -> tuple[Goal, ...]:
        return tuple(g for g in self._items if g.subject == name)

    def ids(self) -> set[str]:
        return {g.id for g in self._items}

    def replace_all(self, records: Iterable[Goal]) -> None:
        # stored goals may reference subjects deleted since; keep them
        self._items = list(records)

    # -------------------------- helpers --------------------------
    def _resolve_subject(self, subject: str | None) -> str:
        name = (subject or "").strip() if isinstance(subject, str) or subject is None else ""
        if not name or self._subjects.find_by_name(name) is None:
            raise ValidationError(f"Subject {subject!r} does not exist")
        return name

    def _index_of(self, goal_id: str) -> int:
        for index, goal in enumerate(self._items):
            if goal.id == goal_id:
                return index
        raise NotFoundError(f"Goal {goal_id} not found")

    def __len__(self) -> int:
        return len(self._items)
