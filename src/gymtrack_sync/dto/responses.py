"""Response DTOs: the operation result envelope and HTTP-only models."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiError(BaseModel):
    """Error half of an ``ApiResult``."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Any = Field(None, description="Optional structured context")


class ApiResult(BaseModel, Generic[T]):
    """Result of every public service operation.

    Exactly one of ``data`` / ``error`` is meaningful, selected by ``success``.

    Example:
        ```python
        result = await client.get_profile("u1", online=True)
        if result.success:
            print(result.data["username"])
        else:
            print(result.error.code)
        ```
    """

    success: bool = Field(..., description="Whether the operation succeeded")
    data: T | None = Field(None, description="Operation payload on success")
    error: ApiError | None = Field(None, description="Error information on failure")

    @classmethod
    def ok(cls, data: Any = None) -> "ApiResult[Any]":
        """Build a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, code: str, message: str, details: Any = None) -> "ApiResult[Any]":
        """Build a failed result."""
        return cls(success=False, error=ApiError(code=code, message=message, details=details))


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'degraded'")
    remote_available: bool = Field(..., description="Whether the remote store answered the probe")
    local_store_healthy: bool = Field(..., description="Whether the local store is reachable")
    cache: dict[str, Any] = Field(default_factory=dict, description="Cache counters")
