"""Local Store Adapter.

JSON (de)serialization and error reporting on top of a ``LocalStore``.
Both directions log failures and re-raise them as ``LocalStoreError``;
whether a failure is fatal is the caller's decision.
"""

import json
import logging
from typing import Any

from gymtrack_sync.errors import LocalStoreError
from gymtrack_sync.models import StorageKey
from gymtrack_sync.protocols import LocalStore

logger = logging.getLogger(__name__)


class LocalStoreAdapter:
    """Structured persistence over a string key-value store.

    Example:
        ```python
        adapter = LocalStoreAdapter(InMemoryLocalStore())
        await adapter.initialize()
        await adapter.save(StorageKey.WORKOUT_HISTORY, [{"id": "w1"}])
        await adapter.load(StorageKey.WORKOUT_HISTORY)  # [{"id": "w1"}]
        ```
    """

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    @staticmethod
    def _name(key: StorageKey | str) -> str:
        return key.value if isinstance(key, StorageKey) else key

    async def save(self, key: StorageKey | str, value: Any) -> None:
        """Serialize and persist a value.

        Raises:
            LocalStoreError: If serialization or the underlying write fails
        """
        name = self._name(key)
        try:
            await self._store.set_item(name, json.dumps(value))
        except Exception as e:
            logger.error("Local store write failed for %s: %s", name, e)
            raise LocalStoreError(f"Failed to save {name} locally", details=str(e)) from e

    async def load(self, key: StorageKey | str) -> Any | None:
        """Read and deserialize a value.

        Returns:
            The stored value, or None if the key is absent

        Raises:
            LocalStoreError: If the underlying read or deserialization fails
        """
        name = self._name(key)
        try:
            raw = await self._store.get_item(name)
            return json.loads(raw) if raw else None
        except Exception as e:
            logger.error("Local store read failed for %s: %s", name, e)
            raise LocalStoreError(f"Failed to load {name} locally", details=str(e)) from e

    async def initialize(self) -> None:
        """Seed every storage key that does not exist yet.

        Failures are logged per key and do not stop the other keys.
        """
        for key in StorageKey:
            try:
                if await self._store.get_item(key.value) is None:
                    await self._store.set_item(key.value, json.dumps(key.empty_value))
            except Exception:
                logger.exception("Failed to initialize local storage key %s", key.value)

    @property
    def store(self) -> LocalStore:
        """Get the underlying store (for testing)."""
        return self._store
