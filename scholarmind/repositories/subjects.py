"""Ordered collection of Subject records."""
from __future__ import annotations

from typing import Callable, Iterable, Optional

from scholarmind.core.ids import new_id
from scholarmind.domain.errors import DuplicateError, NotFoundError
from scholarmind.domain.records import Subject, require_text


class SubjectRepository:
    """CRUD over subjects; names are unique (exact, case-sensitive)."""

    def __init__(self, id_factory: Callable[[], str] | None = None) -> None:
        self._items: list[Subject] = []
        # the data store passes a factory that knows about goal ids as well
        self._id_factory = id_factory or (lambda: new_id(self.ids()))

    def add(self, name: str) -> Subject:
        clean = require_text(name, "Subject name")
        if self.find_by_name(clean):
            raise DuplicateError(f"Subject {clean!r} already exists")
        subject = Subject(id=self._id_factory(), name=clean)
        self._items.append(subject)
        return subject

    def delete(self, subject_id: str) -> None:
        index = self._index_of(subject_id)
        del self._items[index]

    def list(self) -> tuple[Subject, ...]:
        return tuple(self._items)

    def get(self, subject_id: str) -> Optional[Subject]:
        for subject in self._items:
            if subject.id == subject_id:
                return subject
        return None

    def find_by_name(self, name: str) -> Optional[Subject]:
        for subject in self._items:
            if subject.name == name:
                return subject
        return None

    def names(self) -> set[str]:
        return {s.name for s in self._items}

    def ids(self) -> set[str]:
        return {s.id for s in self._items}

    def replace_all(self, records: Iterable[Subject]) -> None:
        """Swap in a loaded collection, keeping the first record per name."""
        seen: set[str] = set()
        items: list[Subject] = []
        for record in records:
            if record.name in seen:
                continue
            seen.add(record.name)
            items.append(record)
        self._items = items

    def _index_of(self, subject_id: str) -> int:
        for index, subject in enumerate(self._items):
            if subject.id == subject_id:
                return index
        raise NotFoundError(f"Subject {subject_id} not found")

    def __len__(self) -> int:
        return len(self._items)
