"""
Tests for the TTL cache manager.
"""

import asyncio

from gymtrack_sync.cache import CacheManager, create_cache_key


def test_create_cache_key_skips_none():
    assert create_cache_key("workouts", "u1") == "workouts:u1"
    assert create_cache_key("workouts", "u1", None, "w1") == "workouts:u1:w1"
    assert create_cache_key("friendRequests", "sent", 7) == "friendRequests:sent:7"


def test_put_then_get_returns_value(cache):
    """A fresh entry is returned as stored."""
    cache.put("profile:u1", {"uid": "u1"})
    assert cache.get("profile:u1") == {"uid": "u1"}


def test_get_after_ttl_returns_none_and_evicts(cache, cache_clock):
    cache.put("k", "v", ttl=5)
    cache_clock.advance(5)
    assert cache.get("k") == "v"

    cache_clock.advance(0.1)
    assert cache.get("k") is None
    assert "k" not in cache
    assert cache.stats().evictions == 1


def test_put_overwrites_existing_entry(cache, cache_clock):
    cache.put("k", "old", ttl=1)
    cache.put("k", "new")
    cache_clock.advance(30)
    assert cache.get("k") == "new"


def test_default_ttl_applies(cache, cache_clock):
    cache.put("k", "v")
    cache_clock.advance(cache.ttl + 1)
    assert cache.get("k") is None


def test_invalidate_and_invalidate_all(cache):
    cache.put("a", 1)
    cache.put("b", 2)

    cache.invalidate("a")
    cache.invalidate("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.invalidate_all()
    assert len(cache) == 0


def test_invalidate_prefix_counts_dropped_entries(cache):
    cache.put("workouts:u1", [])
    cache.put("workouts:u1:w1", {})
    cache.put("workouts:u10", [])

    assert cache.invalidate_prefix("workouts:u1:") == 1
    assert cache.get("workouts:u10") == []
    assert cache.get("workouts:u1") == []


def test_sweep_removes_unaccessed_expired_entries(cache, cache_clock):
    cache.put("short", 1, ttl=1)
    cache.put("long", 2, ttl=100)
    cache_clock.advance(2)

    assert cache.sweep() == 1
    assert len(cache) == 1
    stats = cache.stats()
    assert stats.evictions == 1
    assert stats.last_sweep_at == cache_clock.now


def test_stats_count_hits_and_misses(cache):
    cache.put("k", "v")
    cache.get("k")
    cache.get("k")
    cache.get("other")

    stats = cache.stats()
    assert stats.hits == 2
    assert stats.misses == 1
    assert stats.entries == 1
    assert abs(stats.hit_rate - 2 / 3) < 1e-9


async def test_background_sweep_runs_and_reports(cache_clock):
    reports = []

    async def on_sweep(stats):
        reports.append(stats)

    cache = CacheManager(ttl=1, sweep_interval=0.01, clock=cache_clock)
    cache.put("k", "v")
    cache_clock.advance(5)

    await cache.start(on_sweep=on_sweep)
    assert cache.running
    for _ in range(100):
        if reports:
            break
        await asyncio.sleep(0.01)
    await cache.stop()

    assert not cache.running
    assert reports
    assert len(cache) == 0
    assert reports[0].evictions == 1


async def test_failing_sweep_callback_keeps_loop_alive(cache_clock):
    calls = []

    async def on_sweep(stats):
        calls.append(stats)
        raise RuntimeError("boom")

    cache = CacheManager(ttl=1, sweep_interval=0.01, clock=cache_clock, on_sweep=on_sweep)
    await cache.start()
    for _ in range(100):
        if len(calls) >= 2:
            break
        await asyncio.sleep(0.01)

    assert cache.running
    await cache.stop()
    assert len(calls) >= 2


async def test_stop_without_start_is_noop(cache):
    await cache.stop()
    assert not cache.running


def test_cached_values_are_isolated_from_callers(cache):
    record = {"id": "w1", "exercises": [{"name": "Squat"}]}
    cache.put("workout:u1:w1", record)
    record["exercises"].append({"name": "Bench"})

    first = cache.get("workout:u1:w1")
    first["name"] = "changed"
    first["exercises"][0]["name"] = "changed"

    assert cache.get("workout:u1:w1") == {"id": "w1", "exercises": [{"name": "Squat"}]}
