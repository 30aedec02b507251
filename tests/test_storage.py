"""
Tests for the local store adapter and local store implementations.
"""

import pytest
import redis.asyncio as redis

from gymtrack_sync.errors import LocalStoreError
from gymtrack_sync.models import StorageKey
from gymtrack_sync.repositories import InMemoryLocalStore, RedisLocalStore
from gymtrack_sync.storage import LocalStoreAdapter


class FakeRedis:
    """Minimal stand-in for redis.asyncio.Redis."""

    def __init__(self, fail: bool = False):
        self.data: dict[str, str] = {}
        self.fail = fail
        self.closed = False

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value):
        self.data[key] = value

    async def delete(self, key):
        self.data.pop(key, None)

    async def ping(self):
        if self.fail:
            raise redis.ConnectionError("down")
        return True

    async def aclose(self):
        self.closed = True


class BrokenStore:
    """LocalStore whose every call fails."""

    async def get_item(self, key):
        raise OSError("disk gone")

    async def set_item(self, key, value):
        raise OSError("disk gone")

    async def remove_item(self, key):
        raise OSError("disk gone")


async def test_save_and_load_round_trip_structure():
    adapter = LocalStoreAdapter(InMemoryLocalStore())
    value = [{"id": "w1", "sets": [{"weight": 60.5, "reps": 8}], "meta": {"tags": ["a"]}}]

    await adapter.save(StorageKey.WORKOUT_HISTORY, value)
    assert await adapter.load(StorageKey.WORKOUT_HISTORY) == value


async def test_load_missing_key_returns_none():
    adapter = LocalStoreAdapter(InMemoryLocalStore())
    assert await adapter.load(StorageKey.PROFILE) is None


async def test_initialize_seeds_only_missing_keys():
    store = InMemoryLocalStore()
    adapter = LocalStoreAdapter(store)
    await adapter.save(StorageKey.WORKOUT_HISTORY, [{"id": "kept"}])

    await adapter.initialize()

    assert await adapter.load(StorageKey.WORKOUT_HISTORY) == [{"id": "kept"}]
    assert await adapter.load(StorageKey.PROFILE) == {}
    assert await adapter.load(StorageKey.FRIEND_LIST) == {}
    assert await adapter.load(StorageKey.DAILY_WEIGHT_LOG) == []
    assert sorted(store.keys()) == sorted(key.value for key in StorageKey)


async def test_failures_are_raised_as_local_store_errors():
    adapter = LocalStoreAdapter(BrokenStore())

    with pytest.raises(LocalStoreError):
        await adapter.save(StorageKey.PROFILE, {})
    with pytest.raises(LocalStoreError):
        await adapter.load(StorageKey.PROFILE)


async def test_corrupt_value_is_a_local_store_error():
    adapter = LocalStoreAdapter(InMemoryLocalStore({"profile": "{not json"}))
    with pytest.raises(LocalStoreError):
        await adapter.load(StorageKey.PROFILE)


async def test_initialize_survives_store_failures():
    adapter = LocalStoreAdapter(BrokenStore())
    await adapter.initialize()


async def test_redis_store_namespaces_keys():
    client = FakeRedis()
    store = RedisLocalStore(redis_client=client, namespace="test")

    await store.set_item("profile", "{}")
    assert client.data == {"test:profile": "{}"}
    assert await store.get_item("profile") == "{}"

    await store.remove_item("profile")
    assert await store.get_item("profile") is None


async def test_redis_store_decodes_bytes():
    client = FakeRedis()
    client.data["ns:k"] = b"[1, 2]"
    store = RedisLocalStore(redis_client=client, namespace="ns")
    assert await store.get_item("k") == "[1, 2]"


async def test_redis_health_check_and_close():
    assert await RedisLocalStore(redis_client=FakeRedis(), namespace="ns").health_check()

    client = FakeRedis(fail=True)
    store = RedisLocalStore(redis_client=client, namespace="ns")
    assert not await store.health_check()

    await store.close()
    assert client.closed


async def test_adapter_over_redis_store():
    adapter = LocalStoreAdapter(RedisLocalStore(redis_client=FakeRedis(), namespace="ns"))
    await adapter.initialize()
    await adapter.save(StorageKey.PROFILE, {"u1": {"uid": "u1"}})
    assert await adapter.load(StorageKey.PROFILE) == {"u1": {"uid": "u1"}}
