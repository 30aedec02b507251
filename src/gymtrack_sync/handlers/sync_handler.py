"""HTTP handlers for the synchronization facade.

Handlers convert ``ApiResult`` envelopes into HTTP responses. They handle
HTTP concerns like status codes and serialization; the operations
themselves live in the services layer.
"""

import logging
from collections.abc import Awaitable
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from gymtrack_sync.dto import ApiResult, HealthCheckResponse
from gymtrack_sync.services import GymTrackClient

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[str, int] = {
    "validation_failed": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "missing_required_field": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "not_found": status.HTTP_404_NOT_FOUND,
    "offline_write_rejected": status.HTTP_409_CONFLICT,
    "invalid_state_transition": status.HTTP_409_CONFLICT,
}


def status_for(result: ApiResult[Any]) -> int:
    """HTTP status code for an operation result."""
    if result.success:
        return status.HTTP_200_OK
    code = result.error.code if result.error else ""
    return ERROR_STATUS_CODES.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class SyncHandler:
    """HTTP handlers for facade operations.

    Example:
        ```python
        handler = SyncHandler(client=client)

        @app.get("/users/{uid}/profile")
        async def get_profile(uid: str, online: bool = True):
            return await handler.respond(client.get_profile(uid, online))
        ```
    """

    def __init__(self, client: GymTrackClient) -> None:
        """Initialize the handler.

        Args:
            client: The facade the routes delegate to (required).
        """
        self._client = client

    @property
    def client(self) -> GymTrackClient:
        return self._client

    async def respond(self, call: Awaitable[ApiResult[Any]]) -> JSONResponse:
        """Await a facade call and render its result.

        Args:
            call: Pending facade operation

        Returns:
            JSONResponse with the serialized ``ApiResult`` and the mapped status code
        """
        result = await call
        code = status_for(result)
        if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("Operation failed: %s", result.error.model_dump() if result.error else None)
        return JSONResponse(status_code=code, content=result.model_dump(mode="json"))

    async def health(self) -> HealthCheckResponse:
        """Handle GET /health requests.

        Re-probes the remote store and pings the local store when it
        supports a health check.
        """
        remote_available = await self._client.refresh_connection()

        local_store = self._client.context.storage.store
        check = getattr(local_store, "health_check", None)
        local_healthy = await check() if check is not None else True

        return HealthCheckResponse(
            status="healthy" if remote_available and local_healthy else "degraded",
            remote_available=remote_available,
            local_store_healthy=local_healthy,
            cache=self._client.cache.stats().to_dict(),
        )
