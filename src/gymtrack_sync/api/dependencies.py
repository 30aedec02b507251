"""Dependency injection configuration for FastAPI app.

Uses FastAPI's app.state pattern for storing service instances.

Pattern:
    - Facade and handler stored in app.state during lifespan
    - Dependency functions retrieve from request.app.state
    - Clean separation, no global mutable state
"""

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from gymtrack_sync.config import settings
from gymtrack_sync.handlers import SyncHandler
from gymtrack_sync.logging_config import configure_logging
from gymtrack_sync.repositories import HttpRemoteGateway, RedisLocalStore
from gymtrack_sync.services import GymTrackClient

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], Awaitable[GymTrackClient]]


async def default_client_factory() -> GymTrackClient:
    """Build the production facade: Redis local store and HTTP remote gateway."""
    return await GymTrackClient.create(
        local_store=RedisLocalStore.create(),
        remote=HttpRemoteGateway.create(),
    )


def get_client(request: Request) -> GymTrackClient:
    """Dependency injection for GymTrackClient from app.state.

    Args:
        request: FastAPI Request object

    Returns:
        The GymTrackClient instance from app.state

    Raises:
        RuntimeError: If the client is not initialized
    """
    client = getattr(request.app.state, "client", None)
    if client is None:
        raise RuntimeError("GymTrackClient not initialized. Check lifespan setup.")
    return client


def get_handler(request: Request) -> SyncHandler:
    """Dependency injection for SyncHandler from app.state.

    Raises:
        RuntimeError: If handler is not initialized
    """
    handler = getattr(request.app.state, "sync_handler", None)
    if handler is None:
        raise RuntimeError("SyncHandler not initialized. Check lifespan setup.")
    return handler


def create_lifespan(client_factory: ClientFactory = default_client_factory):
    """Build the lifespan context manager for a client factory.

    The lifespan initializes all layers and stores them in app.state:
    1. Facade (services over local store + remote gateway) - app.state.client
    2. Handler (HTTP endpoints) - app.state.sync_handler

    Args:
        client_factory: Coroutine function returning an initialized facade

    Returns:
        Lifespan context manager for ``FastAPI(lifespan=...)``
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, settings.log_json)

        client = await client_factory()
        await client.start()

        app.state.client = client
        app.state.sync_handler = SyncHandler(client=client)
        logger.info("Sync client initialized, remote available: %s", client.is_remote_available)

        yield

        await client.close()
        del app.state.sync_handler
        del app.state.client
        logger.info("Sync client shut down")

    return lifespan


# Type aliases for cleaner dependency injection
HandlerDep = Annotated[SyncHandler, Depends(get_handler)]
ClientDep = Annotated[GymTrackClient, Depends(get_client)]
