"""Local durable key-value store protocol.

Defines the interface for the device-side store that survives process
restarts. Values are opaque strings; serialization is the adapter's job.

Implementations can include:
- Redis (default)
- In-memory dictionary (tests, ephemeral runs)
- Any other string key-value store
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class LocalStore(Protocol):
    """Protocol for local durable key-value stores.

    Example:
        ```python
        from gymtrack_sync.protocols import LocalStore

        store: LocalStore = RedisLocalStore.create()
        store: LocalStore = InMemoryLocalStore()
        ```
    """

    async def get_item(self, key: str) -> str | None:
        """Read a value.

        Args:
            key: Storage key

        Returns:
            The stored string, or None if the key is absent
        """
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Write a value, replacing any previous one.

        Args:
            key: Storage key
            value: Serialized value
        """
        ...

    async def remove_item(self, key: str) -> None:
        """Delete a key. Missing keys are ignored."""
        ...
