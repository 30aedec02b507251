"""Base synchronization service.

Composes the local store adapter, remote gateway, retry executor and cache
manager into the two algorithms every entity service is built from:

- the cached read: cache -> remote (if online) -> local fallback -> cache fill
- the local-first write: validate -> persist locally -> invalidate cache ->
  best-effort remote write
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, TypeVar

from gymtrack_sync.cache import CacheManager
from gymtrack_sync.dto import ApiResult
from gymtrack_sync.errors import LocalStoreError, MissingFieldError, SyncError
from gymtrack_sync.models import CacheStats, StorageKey
from gymtrack_sync.protocols import LocalStore, RemoteGateway
from gymtrack_sync.retry import RetryExecutor
from gymtrack_sync.storage import LocalStoreAdapter
from gymtrack_sync.utils import format_timestamp, sanitize_document

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOCAL_ID_PREFIX = "local_"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_local_id() -> str:
    """Id for a record created without the remote store's help."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def is_local_id(record_id: str | None) -> bool:
    return bool(record_id) and str(record_id).startswith(LOCAL_ID_PREFIX)


@dataclass
class SyncContext:
    """Collaborators shared by every entity service of one client.

    ``remote_available`` is the reachability flag set by the connectivity
    probe in ``SyncService.initialize``; a remote path is attempted only when
    it and the caller's ``online`` flag are both true.
    """

    storage: LocalStoreAdapter
    remote: RemoteGateway
    cache: CacheManager
    retry: RetryExecutor
    clock: Callable[[], datetime] = field(default=utc_now)
    remote_available: bool = False

    @classmethod
    def create(
        cls,
        local_store: LocalStore,
        remote: RemoteGateway,
        cache: CacheManager | None = None,
        retry: RetryExecutor | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "SyncContext":
        """Factory method to create a context with default cache and retry.

        Args:
            local_store: Durable key-value store (required).
            remote: Remote document store (required).
            cache: Cache manager. If None, one is built from settings.
            retry: Retry executor. If None, one is built from settings.
            clock: Source of "now" for record timestamps. Defaults to UTC wall clock.

        Returns:
            Configured SyncContext
        """
        return cls(
            storage=LocalStoreAdapter(local_store),
            remote=remote,
            cache=cache or CacheManager(),
            retry=retry or RetryExecutor(),
            clock=clock or utc_now,
        )


class SyncService:
    """Shared machinery for the entity services.

    Public operations of subclasses wrap their body in ``_execute`` so that
    they always return an ``ApiResult`` and never raise.
    """

    def __init__(self, context: SyncContext) -> None:
        self._ctx = context

    @property
    def context(self) -> SyncContext:
        """Get the shared context (for testing)."""
        return self._ctx

    @property
    def _cache(self) -> CacheManager:
        return self._ctx.cache

    @property
    def _storage(self) -> LocalStoreAdapter:
        return self._ctx.storage

    @property
    def _remote(self) -> RemoteGateway:
        return self._ctx.remote

    async def initialize(self) -> bool:
        """Seed local storage and probe the remote store.

        Returns:
            Whether the remote store is reachable
        """
        await self._storage.initialize()
        self._ctx.remote_available = await self.check_connection()
        logger.info("Sync service initialized, remote available: %s", self._ctx.remote_available)
        return self._ctx.remote_available

    async def check_connection(self) -> bool:
        """Probe the remote store without raising."""
        try:
            return await self._remote.check_connection()
        except Exception as e:
            logger.info("Remote connectivity probe failed: %s", e)
            return False

    def can_use_remote(self, online: bool) -> bool:
        """Whether a remote path may be attempted for this call."""
        return online and self._ctx.remote_available

    def timestamp(self) -> str:
        """Current time as a canonical timestamp string."""
        return format_timestamp(self._ctx.clock())

    @staticmethod
    def require(**values: Any) -> None:
        """Raise MissingFieldError for every empty keyword argument.

        Example:
            ```python
            self.require(userId=user_id, id=workout_id)
            ```
        """
        missing = [name for name, value in values.items() if value in (None, "")]
        if missing:
            raise MissingFieldError(f"Missing required fields: {', '.join(missing)}", details=missing)

    async def _execute(
        self,
        operation: Callable[[], Awaitable[Any]],
        code: str,
        message: str,
    ) -> ApiResult[Any]:
        """Run an operation and convert its outcome into an ApiResult.

        Args:
            operation: Zero-argument coroutine function holding the operation body
            code: Event name used when logging unexpected failures
            message: Message reported for unexpected failures

        Returns:
            ``ApiResult.ok(data)`` or ``ApiResult.fail(...)``
        """
        try:
            return ApiResult.ok(await operation())
        except SyncError as e:
            logger.warning("%s: %s (%s)", code, e.message, e.code)
            return ApiResult.fail(e.code, e.message, e.details)
        except Exception as e:
            logger.exception("%s: %s", code, message)
            return ApiResult.fail("operation_failed", message, str(e))

    async def _with_retry(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await self._ctx.retry.with_retry(operation)

    async def _load_or_none(self, key: StorageKey) -> Any | None:
        """Read for the read path: a local failure means "no data"."""
        try:
            return await self._storage.load(key)
        except LocalStoreError:
            return None

    async def _load_list(self, key: StorageKey) -> list[dict[str, Any]]:
        """Read a list-valued key for the write path; failures propagate."""
        value = await self._storage.load(key)
        return value if isinstance(value, list) else []

    async def _load_mapping(self, key: StorageKey) -> dict[str, Any]:
        """Read a mapping-valued key for the write path; failures propagate."""
        value = await self._storage.load(key)
        return value if isinstance(value, dict) else {}

    async def get_with_cache(
        self,
        cache_key: str,
        fetch_remote: Callable[[], Awaitable[Any]],
        fetch_local: Callable[[], Awaitable[Any]],
        online: bool,
        merge: Callable[[Any, Any], Any] | None = None,
        persist: Callable[[Any], Awaitable[None]] | None = None,
        default: Any = None,
    ) -> Any:
        """Cached read shared by every entity "get".

        1. Return a cache hit immediately.
        2. If online and the remote is reachable, fetch through the retry
           executor, sanitize, cache, merge with the local copy and persist
           the merge; return the remote-derived value.
        3. Otherwise (or on remote failure) return the local copy, caching it,
           or ``default`` when there is none.

        Args:
            cache_key: Cache key for the value
            fetch_remote: Coroutine function returning the remote value or None
            fetch_local: Coroutine function returning the local value or None;
                may raise LocalStoreError, which counts as no data
            online: Caller's connectivity flag
            merge: ``merge(local, remote)`` producing the value to persist
            persist: Coroutine function writing the merged value locally
            default: Returned when neither side has data

        Returns:
            The cached, remote-derived, or local value, or ``default``
        """
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        if self.can_use_remote(online):
            try:
                remote = await self._with_retry(fetch_remote)
            except Exception as e:
                logger.warning("Remote read failed for %s, using local data: %s", cache_key, e)
            else:
                if remote is not None:
                    remote = sanitize_document(remote)
                    self._cache.put(cache_key, remote)
                    if persist is not None:
                        await self._persist_merged(cache_key, remote, fetch_local, merge, persist)
                    return remote

        try:
            local = await fetch_local()
        except LocalStoreError:
            local = None

        if local is None:
            return default

        self._cache.put(cache_key, local)
        return local

    async def _persist_merged(
        self,
        cache_key: str,
        remote: Any,
        fetch_local: Callable[[], Awaitable[Any]],
        merge: Callable[[Any, Any], Any] | None,
        persist: Callable[[Any], Awaitable[None]],
    ) -> None:
        try:
            local = await fetch_local()
        except LocalStoreError:
            local = None

        merged = merge(local, remote) if merge is not None and local is not None else remote
        try:
            await persist(merged)
        except LocalStoreError as e:
            logger.warning("Could not persist remote data for %s locally: %s", cache_key, e)

    async def _remote_write(self, description: str, operation: Callable[[], Awaitable[T]]) -> T | None:
        """Best-effort remote write for the write path.

        Returns:
            The operation's result, or None when it failed (the failure is
            logged and swallowed)
        """
        try:
            return await self._with_retry(operation)
        except Exception as e:
            logger.warning("Remote write failed for %s, kept locally: %s", description, e)
            return None

    async def persist_cache_metadata(self, stats: CacheStats) -> None:
        """Record cache counters under the cache-metadata key.

        Used as the cache manager's ``on_sweep`` callback.
        """
        await self._storage.save(
            StorageKey.CACHE_METADATA,
            {**stats.to_dict(), "lastSweepAt": self.timestamp()},
        )
