"""
The shared study data store.

``DataStore`` owns the subject and goal collections of one persistence
namespace. Every mutation is gated on the initial load, applied in memory,
written through to the key-value storage and then broadcast to subscribers.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from scholarmind.core.ids import new_id
from scholarmind.domain.errors import NotReadyError, PersistenceError
from scholarmind.domain.records import (
    Goal,
    Subject,
    decode_goals,
    decode_subjects,
    encode_records,
)
from scholarmind.repositories import KeyValueStorage
from scholarmind.repositories.goals import GoalRepository
from scholarmind.repositories.subjects import SubjectRepository

if TYPE_CHECKING:
    from scholarmind.services.auth_service import Identity

logger = logging.getLogger(__name__)

SUBJECTS_KEY = "subjects"
GOALS_KEY = "goals"


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class StoreSnapshot:
    subjects: tuple[Subject, ...]
    goals: tuple[Goal, ...]
    ready: bool


Subscriber = Callable[[StoreSnapshot], None]


class DataStore:
    """Single authoritative state for one namespace, written through to storage."""

    def __init__(self, storage: KeyValueStorage, namespace: str = "") -> None:
        self.storage = storage
        self.namespace = namespace
        self.load_error: Optional[PersistenceError] = None
        self._state = StoreState.UNINITIALIZED
        self._subjects = SubjectRepository(id_factory=self._new_id)
        self._goals = GoalRepository(self._subjects, id_factory=self._new_id)
        self._locks = {SUBJECTS_KEY: asyncio.Lock(), GOALS_KEY: asyncio.Lock()}
        self._load_lock = asyncio.Lock()
        self._subscribers: list[Subscriber] = []

    # -------------------------- lifecycle --------------------------
    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is StoreState.READY

    def key_for(self, name: str) -> str:
        return f"{self.namespace}:{name}" if self.namespace else name

    async def load(self) -> None:
        """
        Read both collections from storage and switch to READY.

        A failed read or corrupt payload leaves that collection empty and is
        recorded on ``load_error``; the store still becomes ready. Repeated
        calls after a completed load do nothing.
        """
        async with self._load_lock:
            if self._state is StoreState.READY:
                return
            self._state = StoreState.LOADING
            try:
                goals = await self._read(GOALS_KEY, decode_goals)
                subjects = await self._read(SUBJECTS_KEY, decode_subjects)
                self._subjects.replace_all(subjects)
                self._goals.replace_all(goals)
                self._state = StoreState.READY
            finally:
                if self._state is not StoreState.READY:
                    self._state = StoreState.UNINITIALIZED
        logger.info(
            "Store %r ready: %d subjects, %d goals",
            self.namespace or "default",
            len(self._subjects),
            len(self._goals),
        )
        self._notify()

    async def _read(self, name: str, decoder) -> list:
        key = self.key_for(name)
        try:
            return decoder(await self.storage.get(key), key)
        except PersistenceError as exc:
            logger.exception("Loading %s failed; starting with an empty collection", key)
            self.load_error = exc
            return []

    # -------------------------- subscriptions --------------------------
    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback`` for state changes; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Store subscriber %r failed", callback)

    # -------------------------- reads --------------------------
    @property
    def subjects(self) -> tuple[Subject, ...]:
        return self._subjects.list()

    @property
    def goals(self) -> tuple[Goal, ...]:
        return self._goals.list()

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(subjects=self.subjects, goals=self.goals, ready=self.ready)

    def subject_for(self, goal: Goal) -> Optional[Subject]:
        """Resolve a goal's subject name against the live subjects."""
        return self._subjects.find_by_name(goal.subject)

    def goals_for_subject(self, name: str) -> tuple[Goal, ...]:
        return self._goals.for_subject(name)

    def orphaned_goals(self) -> tuple[Goal, ...]:
        names = self._subjects.names()
        return tuple(g for g in self._goals.list() if g.subject not in names)

    # -------------------------- mutations --------------------------
    async def add_subject(self, name: str) -> Subject:
        return await self._mutate(SUBJECTS_KEY, self._subjects.add, name)

    async def delete_subject(self, subject_id: str) -> None:
        await self._mutate(SUBJECTS_KEY, self._subjects.delete, subject_id)

    async def add_goal(self, title: str, subject: str, description: str | None = "") -> Goal:
        return await self._mutate(GOALS_KEY, self._goals.add, title, subject, description)

    async def toggle_goal_completion(self, goal_id: str) -> Goal:
        return await self._mutate(GOALS_KEY, self._goals.toggle, goal_id)

    async def update_goal(
        self,
        goal_id: str,
        *,
        title: str | None = None,
        subject: str | None = None,
        description: str | None = None,
    ) -> Goal:
        return await self._mutate(
            GOALS_KEY, self._goals.update, goal_id, title=title, subject=subject, description=description
        )

    async def delete_goal(self, goal_id: str) -> None:
        await self._mutate(GOALS_KEY, self._goals.delete, goal_id)

    async def _mutate(self, name: str, operation, *args, **kwargs):
        # the key lock is held until the write lands, so writes to a key never interleave
        async with self._locks[name]:
            if not self.ready:
                raise NotReadyError("Data is still loading; try again in a moment")
            result = operation(*args, **kwargs)
            try:
                await self._persist(name)
            finally:
                self._notify()
        return result

    async def _persist(self, name: str) -> None:
        key = self.key_for(name)
        records = self._subjects.list() if name == SUBJECTS_KEY else self._goals.list()
        try:
            await self.storage.set(key, encode_records(records))
        except PersistenceError:
            logger.exception("Write-through of %s failed; change kept in memory only", key)
            raise

    def _new_id(self) -> str:
        return new_id(self._subjects.ids() | self._goals.ids())


class StoreRegistry:
    """Hands out one loaded DataStore per persistence namespace."""

    def __init__(self, storage: KeyValueStorage, namespace_by_user: bool = True) -> None:
        self.storage = storage
        self.namespace_by_user = namespace_by_user
        self._stores: dict[str, DataStore] = {}

    def namespace_for(self, identity: "Identity | None") -> str:
        if identity is None or not self.namespace_by_user:
            return ""
        return identity.storage_key

    async def get(self, identity: "Identity | None" = None) -> DataStore:
        namespace = self.namespace_for(identity)
        store = self._stores.get(namespace)
        if store is None:
            store = DataStore(self.storage, namespace=namespace)
            self._stores[namespace] = store
        await store.load()
        return store

    def discard(self, identity: "Identity | None") -> None:
        """Forget a user's store (on logout); the shared store is never dropped."""
        namespace = self.namespace_for(identity)
        if namespace:
            self._stores.pop(namespace, None)

    def peek(self, identity: "Identity | None" = None) -> Optional[DataStore]:
        """Return the store for ``identity`` without creating or loading it."""
        return self._stores.get(self.namespace_for(identity))
