"""Tests for llm_orch.requests.base - the shared retry/timeout loop."""

from __future__ import annotations

import asyncio

import pytest

from llm_orch.core.errors import (
    MalformedResponseError,
    OrchError,
    RateLimitError,
    RemoteRequestError,
    RemoteServiceError,
    RemoteTimeoutError,
    RetriesExhaustedError,
    TransientError,
)
from llm_orch.execution.policies import Policies
from llm_orch.execution.retry import RetryPolicy
from llm_orch.requests.base import run_with_policies


class ScriptedCall:
    """Zero-argument async callable replaying outcomes; the last one repeats."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome == "hang":
            await asyncio.sleep(10)
        return outcome


def immediate(max_retries: int = 5) -> Policies:
    return Policies(retry_policy=RetryPolicy.immediate(max_retries))


async def run(call, policies: Policies, timeout: float = 1.0):
    return await run_with_policies(call, policies=policies, request_id=1, timeout=timeout, operation="test")


class TestSuccess:
    @pytest.mark.asyncio
    async def test_first_attempt(self):
        call = ScriptedCall("ok")
        assert await run(call, immediate()) == "ok"
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        call = ScriptedCall(RemoteServiceError("503"), RateLimitError("429"), "ok")
        policies = immediate()
        assert await run(call, policies) == "ok"
        assert call.calls == 3
        assert policies.retry_policy.current_retries == 2


class TestExhaustion:
    @pytest.mark.asyncio
    async def test_six_attempts_with_five_retries(self):
        last = RemoteServiceError("still down")
        call = ScriptedCall(last)
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await run(call, immediate(5))
        error = exc_info.value
        assert call.calls == 6
        assert error.attempts == 6
        assert error.cause is last
        assert error.__cause__ is last
        assert "max retries reached" in str(error)
        assert error.context.request_id == 1
        assert error.context.operation == "test"
        assert error.context.max_retries == 5

    @pytest.mark.asyncio
    async def test_zero_retries_means_one_attempt(self):
        call = ScriptedCall(RemoteServiceError("down"))
        with pytest.raises(RetriesExhaustedError):
            await run(call, immediate(0))
        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_backoff_delays_between_attempts(self, recorded_sleeps):
        policies = Policies(retry_policy=RetryPolicy.exponential_backoff(5, 1.0, 10.0))
        call = ScriptedCall(RemoteServiceError("down"))
        with pytest.raises(RetriesExhaustedError):
            await run(call, policies)
        assert call.calls == 6
        assert recorded_sleeps == [1.0, 2.0, 4.0, 8.0, 10.0]


class TestPermanentErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [MalformedResponseError("missing content"), RemoteRequestError("bad model")],
    )
    async def test_not_retried(self, error):
        call = ScriptedCall(error)
        policies = immediate()
        with pytest.raises(type(error)) as exc_info:
            await run(call, policies)
        assert exc_info.value is error
        assert call.calls == 1
        assert policies.retry_policy.current_retries == 0

    @pytest.mark.asyncio
    async def test_unexpected_exception_propagates(self):
        call = ScriptedCall(KeyError("bug"))
        with pytest.raises(KeyError):
            await run(call, immediate())
        assert call.calls == 1


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_timeout_consumes_a_retry(self):
        call = ScriptedCall("hang", "ok")
        policies = immediate()
        assert await run(call, policies, timeout=0.01) == "ok"
        assert call.calls == 2
        assert policies.retry_policy.current_retries == 1

    @pytest.mark.asyncio
    async def test_repeated_timeouts_exhaust(self):
        call = ScriptedCall("hang")
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await run(call, immediate(2), timeout=0.01)
        assert call.calls == 3
        assert isinstance(exc_info.value.cause, RemoteTimeoutError)


class TestRetryableFlag:
    @pytest.mark.asyncio
    async def test_retryable_base_error_is_retried(self):
        call = ScriptedCall(OrchError("flaky", retryable=True))
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await run(call, immediate(2))
        assert call.calls == 3
        assert exc_info.value.attempts == 3

    @pytest.mark.asyncio
    async def test_transient_marked_not_retryable_fails_fast(self):
        error = TransientError("no", retryable=False)
        call = ScriptedCall(error)
        policies = immediate()
        with pytest.raises(TransientError) as exc_info:
            await run(call, policies)
        assert exc_info.value is error
        assert call.calls == 1
        assert policies.retry_policy.current_retries == 0
