"""
Tests for the retry executor.
"""

import pytest

from gymtrack_sync.errors import PermanentTransportError, TransientTransportError, is_transient
from gymtrack_sync.retry import RetryExecutor


class Flaky:
    """Operation failing with the given errors before succeeding."""

    def __init__(self, *errors, result="done"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def test_delay_doubles_per_attempt():
    retry = RetryExecutor(max_attempts=3, base_delay=0.2)
    assert retry.delay_for(0) == pytest.approx(0.2)
    assert retry.delay_for(1) == pytest.approx(0.4)
    assert retry.delay_for(2) == pytest.approx(0.8)


async def test_success_needs_no_retry(retry, sleeper):
    operation = Flaky()
    assert await retry.with_retry(operation) == "done"
    assert operation.calls == 1
    assert sleeper.delays == []


async def test_transient_errors_are_retried_with_backoff(retry, sleeper):
    operation = Flaky(TransientTransportError("503"), ConnectionError("reset"))
    assert await retry.with_retry(operation) == "done"
    assert operation.calls == 3
    assert sleeper.delays == pytest.approx([0.2, 0.4])


async def test_last_error_is_raised_after_exhaustion(retry, sleeper):
    operation = Flaky(
        TransientTransportError("first"),
        TransientTransportError("second"),
        TransientTransportError("third"),
    )
    with pytest.raises(TransientTransportError, match="third"):
        await retry.with_retry(operation)
    assert operation.calls == 3
    assert len(sleeper.delays) == 2


async def test_permanent_errors_propagate_immediately(retry, sleeper):
    operation = Flaky(PermanentTransportError("403"))
    with pytest.raises(PermanentTransportError):
        await retry.with_retry(operation)
    assert operation.calls == 1
    assert sleeper.delays == []


async def test_non_transport_errors_are_not_retried(retry):
    operation = Flaky(ValueError("bad input"))
    with pytest.raises(ValueError):
        await retry.with_retry(operation)
    assert operation.calls == 1


async def test_per_call_attempt_override(retry):
    operation = Flaky(TransientTransportError("a"), TransientTransportError("b"))
    with pytest.raises(TransientTransportError):
        await retry.with_retry(operation, max_attempts=2)
    assert operation.calls == 2


def test_is_transient_classification():
    assert is_transient(TransientTransportError("x"))
    assert is_transient(TimeoutError())
    assert not is_transient(PermanentTransportError("x"))
    assert not is_transient(KeyError("x"))
