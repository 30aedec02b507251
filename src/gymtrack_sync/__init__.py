"""GymTrack Sync - Offline-first synchronization and caching for fitness data.

This package provides a layered architecture for keeping a device-local
store and a remote document store in step:

Layers:
    - protocols: Interface contracts (LocalStore, RemoteGateway)
    - repositories: Data access implementations (Redis, HTTP, in-memory)
    - services: Synchronization logic (per entity, plus the facade)
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (input validation, ApiResult)
    - entities: Domain models (internal)

Usage:
    ```python
    from gymtrack_sync.repositories import RedisLocalStore, HttpRemoteGateway
    from gymtrack_sync.services import GymTrackClient

    client = await GymTrackClient.create(RedisLocalStore.create(), HttpRemoteGateway.create())
    result = await client.get_all_workouts("u1", online=True)
    ```

For HTTP API:
    ```python
    from gymtrack_sync.api.app import app
    ```
"""

from gymtrack_sync.cache import CacheManager, create_cache_key
from gymtrack_sync.config import get_redis_client, settings
from gymtrack_sync.dto import ApiError, ApiResult
from gymtrack_sync.entities import CacheEntry, FriendRequestEntity, FriendRequestStatus
from gymtrack_sync.errors import SyncError
from gymtrack_sync.handlers import SyncHandler
from gymtrack_sync.protocols import LocalStore, RemoteGateway
from gymtrack_sync.repositories import (
    HttpRemoteGateway,
    InMemoryLocalStore,
    InMemoryRemoteGateway,
    RedisLocalStore,
)
from gymtrack_sync.retry import RetryExecutor
from gymtrack_sync.services import GymTrackClient, SyncContext

__all__ = [
    # Configuration
    "settings",
    "get_redis_client",
    # Protocols (interfaces)
    "LocalStore",
    "RemoteGateway",
    # Infrastructure
    "CacheManager",
    "create_cache_key",
    "RetryExecutor",
    # Services
    "GymTrackClient",
    "SyncContext",
    # Handlers (HTTP)
    "SyncHandler",
    # Repositories (data access)
    "RedisLocalStore",
    "InMemoryLocalStore",
    "HttpRemoteGateway",
    "InMemoryRemoteGateway",
    # Entities (domain models)
    "CacheEntry",
    "FriendRequestEntity",
    "FriendRequestStatus",
    # DTOs and errors
    "ApiResult",
    "ApiError",
    "SyncError",
]
