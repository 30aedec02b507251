"""Shared fixtures: deterministic clocks, in-memory stores and a ready facade."""

from datetime import datetime, timedelta, timezone

import pytest

from gymtrack_sync.cache import CacheManager
from gymtrack_sync.repositories import InMemoryLocalStore, InMemoryRemoteGateway
from gymtrack_sync.retry import RetryExecutor
from gymtrack_sync.services import GymTrackClient, SyncContext


class FakeClock:
    """Monotonic clock in seconds that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TickingClock:
    """Wall clock that moves one second forward on every reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class RecordingSleep:
    """Replacement for asyncio.sleep that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def cache_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def cache(cache_clock: FakeClock) -> CacheManager:
    return CacheManager(ttl=60, sweep_interval=10, clock=cache_clock)


@pytest.fixture
def retry(sleeper: RecordingSleep) -> RetryExecutor:
    return RetryExecutor(max_attempts=3, base_delay=0.2, sleep=sleeper)


@pytest.fixture
def local_store() -> InMemoryLocalStore:
    return InMemoryLocalStore()


@pytest.fixture
def remote() -> InMemoryRemoteGateway:
    return InMemoryRemoteGateway()


@pytest.fixture
async def context(local_store, remote, cache, retry, wall_clock) -> SyncContext:
    """Initialized context with a reachable remote store."""
    ctx = SyncContext.create(local_store, remote, cache=cache, retry=retry, clock=wall_clock)
    await ctx.storage.initialize()
    ctx.remote_available = True
    return ctx


@pytest.fixture
async def client(local_store, remote, cache, retry, wall_clock):
    """Facade over in-memory stores, initialized with a reachable remote."""
    gym_client = await GymTrackClient.create(
        local_store,
        remote,
        cache=cache,
        retry=retry,
        clock=wall_clock,
    )
    yield gym_client
    await gym_client.close()


def make_workout(user_id: str = "u1", **overrides):
    workout = {
        "userId": user_id,
        "name": "Push day",
        "date": "2024-01-01",
        "exercises": [
            {"id": "bench", "name": "Bench press", "sets": [{"weight": 60, "reps": 8}]},
        ],
    }
    workout.update(overrides)
    return workout


def make_plan(user_id: str = "u1", **overrides):
    plan = {
        "userId": user_id,
        "name": "Upper / Lower",
        "exercises": [{"id": "squat", "name": "Squat"}],
        "schedule": {"days": ["Monday", "Thursday"]},
    }
    plan.update(overrides)
    return plan
