"""Remote document store protocol.

Abstracts the remote document database: documents addressed by a
collection path and an id, with per-user data living under
``users/{userId}/{subcollection}``.

Implementations should raise ``TransientTransportError`` for network or
server-class failures and ``PermanentTransportError`` for everything else,
so the retry executor can tell them apart.
"""

from typing import Any, Protocol, runtime_checkable

from gymtrack_sync.models import QueryFilter


@runtime_checkable
class RemoteGateway(Protocol):
    """Protocol for remote document store backends.

    Returned documents always carry their id under ``"id"``.
    """

    async def get_document(self, collection_path: str, doc_id: str) -> dict[str, Any] | None:
        """Fetch a single document.

        Args:
            collection_path: Collection path (e.g. ``users``)
            doc_id: Document id

        Returns:
            The document, or None if it does not exist
        """
        ...

    async def get_collection(
        self,
        collection_path: str,
        filters: list[QueryFilter] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch all documents in a collection matching every filter.

        Args:
            collection_path: Collection path
            filters: Field filters, combined with AND

        Returns:
            Matching documents
        """
        ...

    async def set_document(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or replace a document under a known id."""
        ...

    async def update_document(
        self,
        collection_path: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        """Apply a partial update to an existing document.

        Raises:
            PermanentTransportError: If the document does not exist
        """
        ...

    async def delete_document(self, collection_path: str, doc_id: str) -> None:
        """Delete a document. Missing documents are ignored."""
        ...

    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        """Create a document with a store-generated id.

        Returns:
            The generated document id
        """
        ...

    async def check_connection(self) -> bool:
        """Probe whether the remote store is reachable.

        Returns:
            True if reachable, False otherwise (never raises)
        """
        ...
