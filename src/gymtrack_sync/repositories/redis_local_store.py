"""Redis implementation of LocalStore.

Redis (with AOF/RDB persistence enabled) serves as the durable device-side
store. It's the default implementation and satisfies the LocalStore
protocol.
"""

import logging

import redis.asyncio as redis

from gymtrack_sync.config import get_redis_client, settings

logger = logging.getLogger(__name__)


class RedisLocalStore:
    """Redis implementation of the LocalStore protocol.

    This class satisfies the LocalStore protocol through structural
    typing - no explicit inheritance needed.

    Every key is namespaced as ``{namespace}:{key}`` so several local
    stores can share one Redis database.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        namespace: str | None = None,
    ) -> None:
        """Initialize the Redis local store.

        Args:
            redis_client: Async Redis client instance. If None, creates default.
            namespace: Key prefix. Defaults to settings.
        """
        self._client = redis_client or get_redis_client()
        self._namespace = namespace or settings.local_store_namespace

    @classmethod
    def create(cls, namespace: str | None = None) -> "RedisLocalStore":
        """Factory method to create RedisLocalStore with defaults.

        Args:
            namespace: Key prefix. If None, uses settings.

        Returns:
            Configured RedisLocalStore
        """
        return cls(namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    async def get_item(self, key: str) -> str | None:
        """Read a value from Redis.

        Args:
            key: Storage key (without namespace)

        Returns:
            The stored string, or None if absent
        """
        value = await self._client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def set_item(self, key: str, value: str) -> None:
        """Write a value to Redis.

        Args:
            key: Storage key (without namespace)
            value: Serialized value
        """
        await self._client.set(self._key(key), value)

    async def remove_item(self, key: str) -> None:
        """Delete a key from Redis."""
        await self._client.delete(self._key(key))

    async def health_check(self) -> bool:
        """Check if Redis is accessible.

        Returns:
            True if healthy, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except redis.RedisError:
            logger.warning("Redis health check failed", exc_info=True)
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()

    @property
    def client(self) -> redis.Redis:
        """Get the Redis client."""
        return self._client
