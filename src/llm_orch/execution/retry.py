"""Retry policies: stateful rules deciding whether a failed attempt is retried.

A policy is consulted once per failed attempt through ``on_failure()``. It
either sleeps for its delay, counts the retry and returns ``True``, or returns
``False`` once ``max_retries`` retries have been spent. That call is the only
place retry delays happen.

Policies are mutable: each request must own its own instance (the
orchestrator deep-copies :class:`~llm_orch.execution.policies.Policies` per
submission).

Example:
    >>> policy = RetryPolicy.exponential_backoff(max_retries=5, initial_delay=1.0, max_delay=10.0)
    >>> [exponential_backoff(n, 1.0, 10.0) for n in range(7)]
    [1.0, 2.0, 4.0, 8.0, 10.0, 10.0, 10.0]
    >>> while await policy.on_failure():
    ...     ...  # retry the call
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 10.0
_MAX_EXPONENT = 62


def exponential_backoff(current_retries: int, initial_delay: float, max_delay: float) -> float:
    """Delay = min(initial_delay * 2 ** current_retries, max_delay).

    Large retry counts saturate at ``max_delay``.
    """
    return min(initial_delay * (2 ** min(current_retries, _MAX_EXPONENT)), max_delay)


class RetryPolicy(ABC):
    """Abstract base for retry policies.

    Subclasses are dataclasses with ``current_retries`` and ``max_retries``
    fields and implement :meth:`next_delay`.
    """

    current_retries: int
    max_retries: int

    @abstractmethod
    def next_delay(self) -> float:
        """Seconds the next successful ``on_failure()`` call will sleep."""
        ...

    @property
    def exhausted(self) -> bool:
        """True once no retries remain."""
        return self.current_retries >= self.max_retries

    async def on_failure(self) -> bool:
        """Record a failed attempt.

        Returns:
            True if the caller should retry (after this call has slept for
            the policy's delay), False if retries are exhausted.
        """
        if self.exhausted:
            return False
        delay = self.next_delay()
        if delay > 0:
            await asyncio.sleep(delay)
        self.current_retries += 1
        return True

    # ── Factories ────────────────────────────────────────────────────

    @staticmethod
    def immediate(max_retries: int) -> ImmediateRetry:
        """Retry with no delay, up to ``max_retries`` times."""
        return ImmediateRetry(max_retries=max_retries)

    @staticmethod
    def constant_delay(max_retries: int, delay: float) -> ConstantDelayRetry:
        """Retry after a fixed ``delay`` seconds, up to ``max_retries`` times."""
        return ConstantDelayRetry(max_retries=max_retries, delay=delay)

    @staticmethod
    def exponential_backoff(
        max_retries: int, initial_delay: float, max_delay: float
    ) -> ExponentialBackoffRetry:
        """Retry after a doubling delay capped at ``max_delay``."""
        return ExponentialBackoffRetry(
            max_retries=max_retries,
            initial_delay=initial_delay,
            max_delay=max_delay,
        )

    @staticmethod
    def default() -> ExponentialBackoffRetry:
        """Exponential backoff: 5 retries, 1s initial delay, 10s cap."""
        return ExponentialBackoffRetry()


@dataclass
class ImmediateRetry(RetryPolicy):
    """Retry immediately."""

    max_retries: int = DEFAULT_MAX_RETRIES
    current_retries: int = field(default=0, kw_only=True)

    def next_delay(self) -> float:
        return 0.0


@dataclass
class ConstantDelayRetry(RetryPolicy):
    """Retry after the same delay every time."""

    max_retries: int = DEFAULT_MAX_RETRIES
    delay: float = DEFAULT_INITIAL_DELAY
    current_retries: int = field(default=0, kw_only=True)

    def next_delay(self) -> float:
        return self.delay


@dataclass
class ExponentialBackoffRetry(RetryPolicy):
    """Retry after an exponentially increasing delay.

    The delay is computed from the retry count *before* it is incremented, so
    the first retry waits ``initial_delay``.

    Attributes:
        max_retries: Maximum number of retries after the first attempt
        initial_delay: Delay before the first retry, in seconds
        max_delay: Upper bound on any single delay, in seconds
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay: float = DEFAULT_INITIAL_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    current_retries: int = field(default=0, kw_only=True)

    def next_delay(self) -> float:
        return exponential_backoff(self.current_retries, self.initial_delay, self.max_delay)


__all__ = [
    "RetryPolicy",
    "ImmediateRetry",
    "ConstantDelayRetry",
    "ExponentialBackoffRetry",
    "exponential_backoff",
]
