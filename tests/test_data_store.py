"""Behaviour of the write-through data store against in-memory storage."""
from __future__ import annotations

import asyncio
import json

import pytest

from scholarmind.domain.errors import (
    DuplicateError,
    NotFoundError,
    NotReadyError,
    PersistenceError,
    ValidationError,
)
from scholarmind.repositories.memory_storage import MemoryStorage
from scholarmind.services.auth_service import Identity
from scholarmind.services.data_store import DataStore, StoreRegistry, StoreState


def run(coro):
    return asyncio.run(coro)


def loaded_store(storage: MemoryStorage | None = None) -> DataStore:
    store = DataStore(storage or MemoryStorage())
    run(store.load())
    return store


def test_mutation_before_load_is_rejected():
    storage = MemoryStorage()
    store = DataStore(storage)
    assert store.state is StoreState.UNINITIALIZED
    with pytest.raises(NotReadyError):
        run(store.add_subject("Math"))
    assert storage.writes == []
    assert store.subjects == ()


def test_load_from_empty_storage_is_ready():
    store = loaded_store()
    assert store.ready
    assert store.subjects == ()
    assert store.goals == ()
    assert store.load_error is None


def test_scenario_subject_goal_toggle():
    store = loaded_store()

    async def scenario():
        await store.add_subject("Math")
        goal = await store.add_goal("Finish ch.3", "Math")
        await store.toggle_goal_completion(goal.id)

    run(scenario())
    assert [s.name for s in store.subjects] == ["Math"]
    (goal,) = store.goals
    assert goal.completed is True
    assert goal.title == "Finish ch.3"
    assert goal.subject == "Math"


def test_goal_with_unknown_subject_on_empty_store():
    storage = MemoryStorage()
    store = loaded_store(storage)
    with pytest.raises(ValidationError):
        run(store.add_goal("X", "Unknown"))
    assert store.goals == ()
    assert storage.writes == []


def test_duplicate_subject_is_not_persisted():
    storage = MemoryStorage()
    store = loaded_store(storage)
    run(store.add_subject("Math"))
    with pytest.raises(DuplicateError):
        run(store.add_subject("Math"))
    assert storage.writes == ["subjects"]
    assert len(store.subjects) == 1


def test_every_mutation_writes_its_collection():
    storage = MemoryStorage()
    store = loaded_store(storage)

    async def scenario():
        subject = await store.add_subject("Math")
        goal = await store.add_goal("Read", "Math", "chapter 1")
        await store.update_goal(goal.id, title="Read more")
        await store.toggle_goal_completion(goal.id)
        await store.delete_goal(goal.id)
        await store.delete_subject(subject.id)

    run(scenario())
    assert storage.writes == ["subjects", "goals", "goals", "goals", "goals", "subjects"]
    assert json.loads(storage.data["goals"]) == []
    assert json.loads(storage.data["subjects"]) == []


def test_reload_round_trip():
    storage = MemoryStorage()
    store = loaded_store(storage)

    async def scenario():
        await store.add_subject("Math")
        await store.add_subject("History")
        goal = await store.add_goal("Finish ch.3", "Math", "exercises too")
        await store.toggle_goal_completion(goal.id)
        await store.add_goal("Essay", "History")

    run(scenario())
    restarted = loaded_store(storage)
    assert restarted.subjects == store.subjects
    assert restarted.goals == store.goals


def test_deleting_subject_keeps_goal_and_reports_orphan():
    store = loaded_store()

    async def scenario():
        subject = await store.add_subject("Math")
        goal = await store.add_goal("Read", "Math")
        await store.delete_subject(subject.id)
        return goal

    goal = run(scenario())
    assert store.goals == (goal,)
    assert store.subject_for(goal) is None
    assert store.orphaned_goals() == (goal,)
    assert store.goals_for_subject("Math") == (goal,)


def test_readding_subject_resolves_existing_goals_again():
    store = loaded_store()

    async def scenario():
        subject = await store.add_subject("Math")
        goal = await store.add_goal("Read", "Math")
        await store.delete_subject(subject.id)
        await store.add_subject("Math")
        return goal

    goal = run(scenario())
    assert store.subject_for(goal).name == "Math"
    assert store.orphaned_goals() == ()


def test_not_found_errors():
    store = loaded_store()
    with pytest.raises(NotFoundError):
        run(store.delete_subject("missing"))
    with pytest.raises(NotFoundError):
        run(store.toggle_goal_completion("missing"))
    with pytest.raises(NotFoundError):
        run(store.update_goal("missing", title="x"))
    with pytest.raises(NotFoundError):
        run(store.delete_goal("missing"))


def test_failed_write_keeps_change_in_memory():
    storage = MemoryStorage()
    store = loaded_store(storage)
    storage.fail_writes = True
    with pytest.raises(PersistenceError):
        run(store.add_subject("Math"))
    assert [s.name for s in store.subjects] == ["Math"]

    # still usable once storage recovers; the next write carries both records
    storage.fail_writes = False
    run(store.add_subject("Physics"))
    assert [s["name"] for s in json.loads(storage.data["subjects"])] == ["Math", "Physics"]


def test_failed_read_yields_empty_ready_store():
    storage = MemoryStorage({"subjects": b'[{"id": "1", "name": "Math"}]'})
    storage.fail_reads = True
    store = loaded_store(storage)
    assert store.ready
    assert store.subjects == ()
    assert isinstance(store.load_error, PersistenceError)


def test_corrupt_payload_only_drops_that_collection():
    storage = MemoryStorage(
        {
            "subjects": b'[{"id": "1", "name": "Math"}]',
            "goals": b"{not json",
        }
    )
    store = loaded_store(storage)
    assert [s.name for s in store.subjects] == ["Math"]
    assert store.goals == ()
    assert store.load_error is not None
    assert store.load_error.key == "goals"


def test_load_tolerates_missing_optional_goal_fields():
    payload = [{"id": "g1", "title": "Read", "subject": "Math"}]
    storage = MemoryStorage({"goals": json.dumps(payload).encode("utf-8")})
    store = loaded_store(storage)
    (goal,) = store.goals
    assert goal.description == ""
    assert goal.completed is False


def test_load_is_idempotent():
    storage = MemoryStorage()
    store = loaded_store(storage)
    run(store.add_subject("Math"))
    storage.data["subjects"] = b"[]"
    run(store.load())
    assert [s.name for s in store.subjects] == ["Math"]


def test_subscribers_receive_snapshots():
    store = DataStore(MemoryStorage())
    seen = []
    unsubscribe = store.subscribe(seen.append)
    run(store.load())
    run(store.add_subject("Math"))
    unsubscribe()
    run(store.add_subject("Art"))

    assert [snap.ready for snap in seen] == [True, True]
    assert [s.name for s in seen[-1].subjects] == ["Math"]


def test_subscribers_are_notified_when_write_fails_and_errors_are_contained():
    storage = MemoryStorage()
    store = loaded_store(storage)
    seen = []

    def broken(_snapshot):
        raise RuntimeError("boom")

    store.subscribe(broken)
    store.subscribe(seen.append)
    storage.fail_writes = True
    with pytest.raises(PersistenceError):
        run(store.add_subject("Math"))
    assert len(seen) == 1
    assert [s.name for s in seen[0].subjects] == ["Math"]


def test_concurrent_writes_to_one_key_are_serialized():
    class SlowStorage(MemoryStorage):
        def __init__(self):
            super().__init__()
            self.active = 0
            self.max_active = 0

        async def set(self, key, value):
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            await asyncio.sleep(0.01)
            await super().set(key, value)
            self.active -= 1

    storage = SlowStorage()
    store = loaded_store(storage)

    async def scenario():
        await asyncio.gather(*(store.add_subject(f"S{i}") for i in range(5)))

    run(scenario())
    assert storage.max_active == 1
    assert len(json.loads(storage.data["subjects"])) == 5


def test_ids_are_unique_across_collections():
    store = loaded_store()

    async def scenario():
        await store.add_subject("Math")
        for i in range(20):
            await store.add_goal(f"G{i}", "Math")

    run(scenario())
    ids = [s.id for s in store.subjects] + [g.id for g in store.goals]
    assert len(ids) == len(set(ids))


def test_registry_namespaces_by_user():
    storage = MemoryStorage()
    registry = StoreRegistry(storage, namespace_by_user=True)
    alice = Identity(email="alice@example.com", display_name="Alice")
    bob = Identity(email="bob@example.com", display_name="Bob")

    async def scenario():
        a = await registry.get(alice)
        b = await registry.get(bob)
        await a.add_subject("Math")
        return a, b

    a, b = run(scenario())
    assert a is not b
    assert b.subjects == ()
    assert f"{alice.storage_key}:subjects" in storage.data
    assert "subjects" not in storage.data


def test_registry_without_namespacing_shares_one_store():
    registry = StoreRegistry(MemoryStorage(), namespace_by_user=False)
    alice = Identity(email="alice@example.com", display_name="Alice")
    bob = Identity(email="bob@example.com", display_name="Bob")

    async def scenario():
        return await registry.get(alice), await registry.get(bob)

    a, b = run(scenario())
    assert a is b
    assert a.key_for("goals") == "goals"


def test_storage_key_ignores_email_case():
    upper = Identity(email="Alice@Example.com", display_name="")
    lower = Identity(email="alice@example.com", display_name="")
    assert upper.storage_key == lower.storage_key
    assert "alice" not in lower.storage_key


class GatedStorage(MemoryStorage):
    """Holds every read until ``release`` is set and counts reads per key."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.release = asyncio.Event()
        self.reads: dict[str, int] = {}

    async def get(self, key):
        self.reads[key] = self.reads.get(key, 0) + 1
        await self.release.wait()
        return await super().get(key)


def test_mutation_while_loading_is_rejected():
    storage = GatedStorage({"subjects": b'[{"id": "s1", "name": "Math"}]'})
    store = DataStore(storage)

    async def scenario():
        loading = asyncio.create_task(store.load())
        await asyncio.sleep(0)
        assert store.state is StoreState.LOADING
        with pytest.raises(NotReadyError):
            await store.add_subject("Physics")
        storage.release.set()
        await loading

    run(scenario())
    assert storage.writes == []
    assert [s.name for s in store.subjects] == ["Math"]


def test_concurrent_registry_gets_share_one_load():
    storage = GatedStorage()
    registry = StoreRegistry(storage)
    alice = Identity(email="alice@example.com", display_name="Alice")

    async def scenario():
        pending = asyncio.gather(registry.get(alice), registry.get(alice))
        await asyncio.sleep(0)
        storage.release.set()
        return await pending

    first, second = run(scenario())
    assert first is second
    assert first.ready
    assert storage.reads == {
        f"{alice.storage_key}:goals": 1,
        f"{alice.storage_key}:subjects": 1,
    }


def test_registry_discard_drops_user_store_only():
    storage = MemoryStorage()
    alice = Identity(email="alice@example.com", display_name="Alice")

    registry = StoreRegistry(storage)
    store = run(registry.get(alice))
    run(store.add_subject("Math"))
    registry.discard(alice)
    assert registry.peek(alice) is None
    reloaded = run(registry.get(alice))
    assert reloaded is not store
    assert [s.name for s in reloaded.subjects] == ["Math"]

    shared = StoreRegistry(storage, namespace_by_user=False)
    shared_store = run(shared.get(alice))
    shared.discard(alice)
    assert shared.peek(alice) is shared_store


@pytest.mark.parametrize("flag", ['"false"', "0", "null"])
def test_non_boolean_completed_is_corrupt(flag):
    raw = f'[{{"id": "g1", "title": "Read", "subject": "Math", "completed": {flag}}}]'
    store = loaded_store(MemoryStorage({"goals": raw.encode("utf-8")}))
    assert store.goals == ()
    assert store.load_error is not None
    assert store.load_error.key == "goals"
