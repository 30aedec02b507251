from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StorageKey(str, Enum):
    """Fixed set of keys in the local durable store.

    Each key holds every user's records for one entity type.
    """

    PROFILE = "profile"
    DAILY_WEIGHT_LOG = "daily_weight_log"
    WORKOUT_HISTORY = "workout_history"
    WORKOUT_PLANS = "workout_plans"
    FRIEND_LIST = "friend_list"
    CACHE_METADATA = "cache_metadata"

    @property
    def empty_value(self) -> dict[str, Any] | list[Any]:
        """Value a missing key is seeded with."""
        if self in (StorageKey.PROFILE, StorageKey.FRIEND_LIST, StorageKey.CACHE_METADATA):
            return {}
        return []


class RemotePath:
    """Collection paths in the remote document store."""

    USERS = "users"
    FRIENDS = "friends"
    FRIEND_REQUESTS = "friendRequests"
    WORKOUT_HISTORY = "workoutHistory"
    WORKOUT_PLANS = "workoutPlans"
    WEIGHT_LOG = "weightLog"

    @staticmethod
    def user_subcollection(user_id: str, subcollection: str) -> str:
        """Build ``users/{userId}/{subcollection}``."""
        return f"{RemotePath.USERS}/{user_id}/{subcollection}"


FILTER_OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "array-contains")


@dataclass(frozen=True)
class QueryFilter:
    """A single field filter for collection queries."""

    field: str
    operator: str
    value: Any

    def __post_init__(self) -> None:
        if self.operator not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.operator}")

    def matches(self, document: dict[str, Any]) -> bool:
        """Evaluate the filter against a document."""
        if self.field not in document:
            return self.operator == "!="
        actual = document[self.field]
        try:
            if self.operator == "==":
                return actual == self.value
            if self.operator == "!=":
                return actual != self.value
            if self.operator == "<":
                return actual < self.value
            if self.operator == "<=":
                return actual <= self.value
            if self.operator == ">":
                return actual > self.value
            if self.operator == ">=":
                return actual >= self.value
            if self.operator == "in":
                return actual in self.value
            return isinstance(actual, list) and self.value in actual
        except TypeError:
            return False

    def to_dict(self) -> dict[str, Any]:
        """Convert the filter to its wire representation."""
        return {"field": self.field, "op": self.operator, "value": self.value}


@dataclass
class CacheStats:
    """Counters reported by the cache manager."""

    entries: int = 0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    last_sweep_at: float | None = None

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        lookups = self.hits + self.misses
        if lookups == 0:
            return 0.0
        return self.hits / lookups

    def to_dict(self) -> dict[str, float | int | None]:
        """Convert stats to dictionary."""
        return {
            "entries": self.entries,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "hit_rate": self.hit_rate,
            "last_sweep_at": self.last_sweep_at,
        }


@dataclass
class SyncReport:
    """Outcome of a full data-set synchronization for one entity type."""

    entity: str
    pushed: list[str] = field(default_factory=list)
    pulled: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    total: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "entity": self.entity,
            "pushed": list(self.pushed),
            "pulled": list(self.pulled),
            "failed": list(self.failed),
            "total": self.total,
        }
