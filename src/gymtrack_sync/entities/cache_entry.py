"""Cache entry domain entity."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """A single value held by the cache manager.

    Entries are owned by ``CacheManager`` and never handed out; callers only
    ever see ``data``.

    Attributes:
        data: The cached value
        stored_at: Clock reading when the entry was written
        expires_at: Clock reading after which the entry is stale
    """

    data: Any
    stored_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Check whether the entry is stale at the given clock reading."""
        return now > self.expires_at
