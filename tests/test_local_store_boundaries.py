"""
Tests for how services behave at the local store boundary: store failures
and unsynchronized concurrent writes.
"""

import asyncio

import pytest
from conftest import make_workout

from gymtrack_sync.models import StorageKey
from gymtrack_sync.repositories import InMemoryLocalStore
from gymtrack_sync.services import WorkoutService

WORKOUTS_PATH = "users/u1/workoutHistory"


class ControllableStore(InMemoryLocalStore):
    """In-memory store that can fail on demand or yield after every read."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False
        self.yield_after_read = False

    async def get_item(self, key):
        if self.failing:
            raise OSError("disk gone")
        value = await super().get_item(key)
        if self.yield_after_read:
            await asyncio.sleep(0)
        return value

    async def set_item(self, key, value):
        if self.failing:
            raise OSError("disk gone")
        await super().set_item(key, value)


@pytest.fixture
def local_store():
    return ControllableStore()


@pytest.fixture
def workouts(context):
    return WorkoutService(context)


async def test_offline_read_with_failing_store_is_empty(workouts, local_store):
    local_store.failing = True

    result = await workouts.get_all_workouts("u1", online=False)

    assert result.success
    assert result.data == []


async def test_online_read_with_failing_store_uses_remote(workouts, local_store, remote):
    remote.seed(WORKOUTS_PATH, "w1", make_workout(name="Remote day"))
    local_store.failing = True

    result = await workouts.get_all_workouts("u1", online=True)

    assert result.success
    assert [workout["id"] for workout in result.data] == ["w1"]
    assert result.data[0]["name"] == "Remote day"


async def test_write_with_failing_store_fails_and_skips_remote(workouts, local_store, remote):
    local_store.failing = True

    result = await workouts.save_workout(make_workout(id="w1"), online=True)

    assert result.error.code == "operation_failed"
    assert remote.calls == []
    assert remote.documents(WORKOUTS_PATH) == {}


async def test_concurrent_writes_to_one_key_keep_last_writer(workouts, local_store, context):
    local_store.yield_after_read = True

    first, second = await asyncio.gather(
        workouts.save_workout(make_workout(id="w1"), online=False),
        workouts.save_workout(make_workout(id="w2"), online=False),
    )

    assert first.success
    assert second.success
    # Both read the same snapshot; the second write replaces the first
    stored = await context.storage.load(StorageKey.WORKOUT_HISTORY)
    assert [workout["id"] for workout in stored] == ["w2"]


async def test_sequential_writes_to_one_key_keep_both(workouts, local_store, context):
    local_store.yield_after_read = True

    await workouts.save_workout(make_workout(id="w1"), online=False)
    await workouts.save_workout(make_workout(id="w2"), online=False)

    stored = await context.storage.load(StorageKey.WORKOUT_HISTORY)
    assert sorted(workout["id"] for workout in stored) == ["w1", "w2"]
