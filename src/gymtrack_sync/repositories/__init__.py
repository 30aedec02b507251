"""Repository layer for data access.

This layer abstracts external dependencies (Redis, the remote document
API) behind protocol-based interfaces. This enables:
- Easy swapping of implementations (Redis → in-memory, HTTP → in-memory)
- Unit testing with in-memory implementations
- Clear separation of concerns

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from gymtrack_sync.protocols import LocalStore, RemoteGateway

from .http_remote_gateway import HttpRemoteGateway
from .memory_local_store import InMemoryLocalStore
from .memory_remote_gateway import InMemoryRemoteGateway
from .redis_local_store import RedisLocalStore

__all__ = [
    "LocalStore",
    "RemoteGateway",
    "RedisLocalStore",
    "InMemoryLocalStore",
    "HttpRemoteGateway",
    "InMemoryRemoteGateway",
]
