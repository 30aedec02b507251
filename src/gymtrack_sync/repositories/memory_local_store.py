"""In-memory implementation of LocalStore.

Keeps values in a process-local dictionary. Data does not survive a
restart, so this is meant for tests, demos and ephemeral sessions.
"""


class InMemoryLocalStore:
    """Dictionary-backed LocalStore.

    Example:
        ```python
        store = InMemoryLocalStore()
        await store.set_item("profile", "{}")
        await store.get_item("profile")  # "{}"
        ```
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        """List stored keys (for inspection in tests)."""
        return list(self._items)
