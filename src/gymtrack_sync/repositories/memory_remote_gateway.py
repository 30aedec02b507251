"""In-memory implementation of RemoteGateway.

A document store held in a dictionary of collections. Supports the same
filter operators as the HTTP API, can be switched offline, and can inject
failures per operation - which makes it the workhorse for tests and the
demo script.
"""

import copy
import uuid
from typing import Any

from gymtrack_sync.errors import PermanentTransportError, TransientTransportError
from gymtrack_sync.models import QueryFilter


class InMemoryRemoteGateway:
    """Dictionary-backed RemoteGateway.

    Example:
        ```python
        remote = InMemoryRemoteGateway()
        doc_id = await remote.add_document("friends", {"userId": "u1"})

        remote.available = False          # every call now raises a transient error
        remote.fail_on("set_document")    # next set_document raises
        ```
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._failures: dict[str, list[Exception]] = {}
        self.available = True
        self.calls: list[tuple[str, str]] = []

    def fail_on(self, operation: str, error: Exception | None = None, times: int = 1) -> None:
        """Make the next ``times`` calls of ``operation`` raise ``error``.

        Args:
            operation: Method name (e.g. ``"set_document"``)
            error: Exception to raise. Defaults to a transient transport error.
            times: Number of consecutive calls that fail
        """
        error = error or TransientTransportError(f"Injected failure in {operation}")
        self._failures.setdefault(operation, []).extend([error] * times)

    def _enter(self, operation: str, collection_path: str) -> None:
        self.calls.append((operation, collection_path))
        if not self.available:
            raise TransientTransportError("Remote store unavailable")
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    def _collection(self, collection_path: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(collection_path.strip("/"), {})

    @staticmethod
    def _export(doc_id: str, document: dict[str, Any]) -> dict[str, Any]:
        return {**copy.deepcopy(document), "id": doc_id}

    async def get_document(self, collection_path: str, doc_id: str) -> dict[str, Any] | None:
        self._enter("get_document", collection_path)
        document = self._collection(collection_path).get(doc_id)
        if document is None:
            return None
        return self._export(doc_id, document)

    async def get_collection(
        self,
        collection_path: str,
        filters: list[QueryFilter] | None = None,
    ) -> list[dict[str, Any]]:
        self._enter("get_collection", collection_path)
        documents = []
        for doc_id, document in self._collection(collection_path).items():
            exported = self._export(doc_id, document)
            if all(f.matches(exported) for f in filters or []):
                documents.append(exported)
        return documents

    async def set_document(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        self._enter("set_document", collection_path)
        document = copy.deepcopy(data)
        document.pop("id", None)
        self._collection(collection_path)[doc_id] = document

    async def update_document(
        self,
        collection_path: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        self._enter("update_document", collection_path)
        collection = self._collection(collection_path)
        if doc_id not in collection:
            raise PermanentTransportError(f"No document {collection_path}/{doc_id} to update")
        changes = copy.deepcopy(data)
        changes.pop("id", None)
        collection[doc_id].update(changes)

    async def delete_document(self, collection_path: str, doc_id: str) -> None:
        self._enter("delete_document", collection_path)
        self._collection(collection_path).pop(doc_id, None)

    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        self._enter("add_document", collection_path)
        doc_id = uuid.uuid4().hex[:20]
        document = copy.deepcopy(data)
        document.pop("id", None)
        self._collection(collection_path)[doc_id] = document
        return doc_id

    async def check_connection(self) -> bool:
        return self.available

    def documents(self, collection_path: str) -> dict[str, dict[str, Any]]:
        """Snapshot of a collection keyed by id (for inspection in tests)."""
        return {
            doc_id: self._export(doc_id, document)
            for doc_id, document in self._collection(collection_path).items()
        }

    def seed(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        """Insert a document directly, bypassing availability and fault injection."""
        document = copy.deepcopy(data)
        document.pop("id", None)
        self._collection(collection_path)[doc_id] = document
