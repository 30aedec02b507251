"""Handler layer for HTTP endpoints.

This layer contains the HTTP request/response handlers.
Handlers depend on services (the facade), not directly on repositories.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Sync)  -> (Data Access)
"""

from .sync_handler import SyncHandler, status_for

__all__ = [
    "SyncHandler",
    "status_for",
]
