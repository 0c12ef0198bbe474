"""Tests for llm_orch.execution.concurrency, timeout and policies."""

from __future__ import annotations

import asyncio

import pytest

from llm_orch.core.errors import InvalidConfigError, RemoteTimeoutError
from llm_orch.core.settings import OrchSettings
from llm_orch.execution.concurrency import AdmissionGate, ConcurrencyPolicy
from llm_orch.execution.policies import Policies
from llm_orch.execution.retry import ExponentialBackoffRetry
from llm_orch.execution.timeout import TimeoutPolicy, with_deadline_async


class TestConcurrencyPolicy:
    def test_default(self):
        assert ConcurrencyPolicy().max_concurrent_requests == 10

    def test_rejects_zero(self):
        with pytest.raises(InvalidConfigError):
            ConcurrencyPolicy(0)


class TestAdmissionGate:
    def test_from_policy(self):
        gate = AdmissionGate.from_policy(ConcurrencyPolicy(4))
        assert gate.capacity == 4
        assert gate.available == 4
        assert gate.in_flight == 0

    @pytest.mark.asyncio
    async def test_acquire_release_tracks_in_flight(self):
        gate = AdmissionGate(2)
        async with gate:
            assert gate.in_flight == 1
            async with gate:
                assert gate.in_flight == 2
                assert gate.available == 0
        assert gate.in_flight == 0
        assert gate.peak_in_flight == 2

    @pytest.mark.asyncio
    async def test_waits_when_full(self):
        gate = AdmissionGate(1)
        await gate.acquire()

        waiter = asyncio.create_task(gate.acquire())
        await asyncio.sleep(0.01)
        assert not waiter.done()

        gate.release()
        await asyncio.wait_for(waiter, timeout=1.0)
        assert gate.in_flight == 1
        gate.release()

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        gate = AdmissionGate(1)
        with pytest.raises(RuntimeError):
            async with gate:
                raise RuntimeError("boom")
        assert gate.available == 1

    @pytest.mark.asyncio
    async def test_bounds_concurrent_holders(self):
        gate = AdmissionGate(3)
        active = 0
        peak = 0

        async def hold() -> None:
            nonlocal active, peak
            async with gate:
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0.005)
                active -= 1

        await asyncio.gather(*(hold() for _ in range(20)))
        assert peak == 3
        assert gate.peak_in_flight == 3


class TestTimeoutPolicy:
    def test_effective_without_estimate(self):
        assert TimeoutPolicy(30.0).effective() == 30.0

    def test_effective_is_min(self):
        policy = TimeoutPolicy(30.0)
        assert policy.effective(5.0) == 5.0
        assert policy.effective(120.0) == 30.0

    def test_rejects_non_positive(self):
        with pytest.raises(InvalidConfigError):
            TimeoutPolicy(0)


class TestWithDeadlineAsync:
    @pytest.mark.asyncio
    async def test_fast_body_completes(self):
        async with with_deadline_async(1.0, "fast") as ctx:
            await asyncio.sleep(0)
        assert ctx.timeout_seconds == 1.0
        assert ctx.operation == "fast"
        assert not ctx.is_expired()

    @pytest.mark.asyncio
    async def test_slow_body_raises_remote_timeout(self):
        with pytest.raises(RemoteTimeoutError) as exc_info:
            async with with_deadline_async(0.01, "slow"):
                await asyncio.sleep(1.0)
        error = exc_info.value
        assert error.timeout == 0.01
        assert error.retryable
        assert error.context.operation == "slow"
        assert isinstance(error.__cause__, TimeoutError)

    @pytest.mark.asyncio
    async def test_negative_timeout(self):
        with pytest.raises(ValueError):
            async with with_deadline_async(-1):
                pass


class TestPolicies:
    def test_defaults(self):
        policies = Policies()
        assert isinstance(policies.retry_policy, ExponentialBackoffRetry)
        assert policies.retry_policy.max_retries == 5
        assert policies.concurrency_policy.max_concurrent_requests == 10
        assert policies.timeout_policy.timeout == 30.0

    def test_copy_is_deep(self):
        policies = Policies()
        copied = policies.copy()
        assert copied == policies
        assert copied.retry_policy is not policies.retry_policy

    def test_copy_keeps_counter(self):
        policies = Policies(retry_policy=ExponentialBackoffRetry(current_retries=2))
        assert policies.copy().retry_policy.current_retries == 2

    def test_from_settings(self):
        settings = OrchSettings(
            max_concurrent_requests=25,
            timeout_seconds=12.0,
            retry_max_retries=3,
            retry_initial_delay=0.5,
            retry_max_delay=4.0,
        )
        policies = Policies.from_settings(settings)
        assert policies.concurrency_policy.max_concurrent_requests == 25
        assert policies.timeout_policy.timeout == 12.0
        assert policies.retry_policy == ExponentialBackoffRetry(
            max_retries=3, initial_delay=0.5, max_delay=4.0
        )
