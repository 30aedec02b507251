"""Bounded retry with exponential backoff for remote operations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from gymtrack_sync.config import settings
from gymtrack_sync.errors import is_transient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryExecutor:
    """Retries transient failures with exponential backoff.

    The delay after failed attempt ``n`` (zero-based) is ``base_delay * 2**n``,
    so with the defaults a call is tried at most three times with 0.2s and
    0.4s pauses in between. Errors that are not transient propagate on the
    first failure.

    Example:
        ```python
        retry = RetryExecutor()
        doc = await retry.with_retry(lambda: gateway.get_document("users", "u1"))
        ```
    """

    def __init__(
        self,
        max_attempts: int | None = None,
        base_delay: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the retry executor.

        Args:
            max_attempts: Maximum number of attempts. Defaults to settings.retry_max_attempts.
            base_delay: Backoff base in seconds. Defaults to settings.retry_base_delay.
            sleep: Coroutine used to wait between attempts (replaceable in tests).
        """
        self._max_attempts = max_attempts or settings.retry_max_attempts
        self._base_delay = base_delay if base_delay is not None else settings.retry_base_delay
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given zero-based failed attempt."""
        return self._base_delay * (2**attempt)

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or attempts are exhausted.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            max_attempts: Override the executor's attempt limit for this call

        Returns:
            Whatever the operation returns

        Raises:
            Exception: The first non-transient error, or the last transient
                error once attempts are exhausted
        """
        attempts = max(1, max_attempts or self._max_attempts)

        for attempt in range(attempts):
            try:
                return await operation()
            except Exception as e:
                if not is_transient(e):
                    raise

                if attempt == attempts - 1:
                    logger.error("Giving up after %d attempts: %s", attempts, e)
                    raise

                delay = self.delay_for(attempt)
                logger.warning(
                    "Attempt %d/%d failed (%s), retrying in %.2fs",
                    attempt + 1,
                    attempts,
                    e,
                    delay,
                )
                await self._sleep(delay)

        # Unreachable: the loop either returns or raises
        raise RuntimeError("Retry loop exited without a result")

    @property
    def max_attempts(self) -> int:
        """Get the default attempt limit."""
        return self._max_attempts
