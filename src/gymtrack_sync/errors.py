"""Exception hierarchy for the synchronization layer.

Every exception carries the ``code`` that ends up in ``ApiResult.error``.
Services raise these internally; the base service converts them to
``ApiResult`` failures so nothing escapes a public operation.
"""

from typing import Any


class SyncError(Exception):
    """Base class for all errors raised by the synchronization layer."""

    code = "operation_failed"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class MissingFieldError(SyncError):
    """A required identity or input field is absent."""

    code = "missing_required_field"


class ValidationFailedError(SyncError):
    """Input failed entity-specific validation rules."""

    code = "validation_failed"


class NotFoundError(SyncError):
    """The requested identity is absent in cache, local store and remote."""

    code = "not_found"


class OfflineRejectedError(SyncError):
    """The operation intrinsically requires connectivity."""

    code = "offline_write_rejected"


class InvalidStateTransitionError(SyncError):
    """A friend request transition was attempted from a terminal state."""

    code = "invalid_state_transition"


class LocalStoreError(SyncError):
    """The local durable store failed to read or write."""

    code = "operation_failed"


class TransportError(SyncError):
    """Base class for remote gateway failures."""

    code = "operation_failed"
    transient = False


class TransientTransportError(TransportError):
    """Network or server-class failure, eligible for retry."""

    transient = True


class PermanentTransportError(TransportError):
    """Any other remote failure; never retried."""

    transient = False


def is_transient(error: BaseException) -> bool:
    """Check whether an error should be retried by the retry executor.

    Args:
        error: The exception raised by a remote operation

    Returns:
        True for network/server-class errors, False otherwise
    """
    if isinstance(error, TransportError):
        return error.transient
    return isinstance(error, (ConnectionError, TimeoutError))
