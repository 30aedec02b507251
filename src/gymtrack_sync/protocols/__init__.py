"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (Redis → in-memory, HTTP → in-memory)
- Unit testing with fake implementations
- Clear separation of concerns

Usage:
    ```python
    from gymtrack_sync.protocols import LocalStore, RemoteGateway

    local: LocalStore = RedisLocalStore.create()
    remote: RemoteGateway = HttpRemoteGateway.create()
    ```
"""

from .local_store import LocalStore
from .remote_gateway import RemoteGateway

__all__ = [
    "LocalStore",
    "RemoteGateway",
]
