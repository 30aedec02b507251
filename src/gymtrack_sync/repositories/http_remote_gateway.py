"""HTTP implementation of RemoteGateway.

Talks to a JSON document API over ``httpx.AsyncClient``:

- ``GET    {base}/{path}/{id}``        fetch one document (404 → absent)
- ``POST   {base}/{path}:query``       fetch a filtered collection
- ``PUT    {base}/{path}/{id}``        create or replace
- ``PATCH  {base}/{path}/{id}``        partial update
- ``DELETE {base}/{path}/{id}``        delete
- ``POST   {base}/{path}``             create with generated id
- ``GET    {base}/_health``            connectivity probe

Transport failures are translated into the transient/permanent split the
retry executor relies on.
"""

import logging
from typing import Any

import httpx

from gymtrack_sync.config import settings
from gymtrack_sync.errors import PermanentTransportError, TransientTransportError
from gymtrack_sync.models import QueryFilter

logger = logging.getLogger(__name__)

# Status codes worth retrying
TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class HttpRemoteGateway:
    """httpx-based implementation of the RemoteGateway protocol.

    This class satisfies the RemoteGateway protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        gateway = HttpRemoteGateway.create(base_url="https://docs.example.com/v1")

        doc = await gateway.get_document("users", "u1")
        await gateway.close()
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP remote gateway.

        Args:
            base_url: Document API base URL. Defaults to settings.remote_base_url.
            api_key: Bearer token for the API. Defaults to settings.remote_api_key.
            timeout: Request timeout in seconds. Defaults to settings.remote_timeout.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport`` in tests).
        """
        self._base_url = (base_url or settings.remote_base_url).rstrip("/")
        self._api_key = api_key if api_key is not None else settings.remote_api_key
        self._timeout = timeout or settings.remote_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(
        cls,
        base_url: str | None = None,
        api_key: str | None = None,
    ) -> "HttpRemoteGateway":
        """Factory method to create HttpRemoteGateway with defaults.

        Args:
            base_url: API base URL. If None, uses settings.
            api_key: API key. If None, uses settings.

        Returns:
            Configured HttpRemoteGateway
        """
        return cls(base_url=base_url, api_key=api_key)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self._api_key:
                headers["Authorization"] = f"Bearer {self._api_key}"
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    async def _request(
        self,
        method: str,
        url: str,
        json: Any = None,
        allow_not_found: bool = False,
    ) -> httpx.Response | None:
        """Send a request and translate failures.

        Returns:
            The response, or None when ``allow_not_found`` and the server said 404

        Raises:
            TransientTransportError: Connection errors, timeouts, 408/429/5xx
            PermanentTransportError: Any other non-success status
        """
        try:
            response = await self.client.request(method, url, json=json)
        except httpx.TransportError as e:
            raise TransientTransportError(f"{method} {url} failed: {e}") from e

        if allow_not_found and response.status_code == 404:
            return None

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = f"{method} {url} returned {response.status_code}"
            if response.status_code in TRANSIENT_STATUS_CODES:
                raise TransientTransportError(message, details=response.text) from e
            raise PermanentTransportError(message, details=response.text) from e

        return response

    @staticmethod
    def _with_id(document: dict[str, Any], doc_id: str) -> dict[str, Any]:
        return {**document, "id": document.get("id", doc_id)}

    async def get_document(self, collection_path: str, doc_id: str) -> dict[str, Any] | None:
        response = await self._request("GET", f"/{collection_path}/{doc_id}", allow_not_found=True)
        if response is None:
            return None
        return self._with_id(response.json(), doc_id)

    async def get_collection(
        self,
        collection_path: str,
        filters: list[QueryFilter] | None = None,
    ) -> list[dict[str, Any]]:
        payload = {"filters": [f.to_dict() for f in filters or []]}
        response = await self._request("POST", f"/{collection_path}:query", json=payload)
        data = response.json()

        # Accept both a bare list and {"documents": [...]}
        documents = data.get("documents", []) if isinstance(data, dict) else data
        if not isinstance(documents, list):
            raise PermanentTransportError(f"Unexpected response format: {data}")
        return documents

    async def set_document(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        await self._request("PUT", f"/{collection_path}/{doc_id}", json=data)

    async def update_document(
        self,
        collection_path: str,
        doc_id: str,
        data: dict[str, Any],
    ) -> None:
        await self._request("PATCH", f"/{collection_path}/{doc_id}", json=data)

    async def delete_document(self, collection_path: str, doc_id: str) -> None:
        await self._request("DELETE", f"/{collection_path}/{doc_id}", allow_not_found=True)

    async def add_document(self, collection_path: str, data: dict[str, Any]) -> str:
        response = await self._request("POST", f"/{collection_path}", json=data)
        body = response.json()
        if "id" not in body:
            raise PermanentTransportError(f"Unexpected response format: {body}")
        return str(body["id"])

    async def check_connection(self) -> bool:
        """Check if the document API is reachable.

        Returns:
            True if the health endpoint answered successfully, False otherwise
        """
        try:
            await self._request("GET", "/_health")
            return True
        except (TransientTransportError, PermanentTransportError) as e:
            logger.info("Remote store unreachable: %s", e)
            return False

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
