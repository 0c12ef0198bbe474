"""Timeout policy and per-attempt deadline enforcement.

A :class:`TimeoutPolicy` is a static ceiling. Request kinds may estimate a
tighter, request-specific timeout, but the effective value never exceeds the
ceiling::

    effective_timeout = min(ceiling, dynamic_estimate)

Each attempt runs inside :func:`with_deadline_async`. Overrunning it raises
:class:`~llm_orch.core.errors.RemoteTimeoutError`, a transient error that the
retry loop routes through ``RetryPolicy.on_failure()`` like any remote
failure.

Example:
    >>> policy = TimeoutPolicy(timeout=30.0)
    >>> policy.effective(5.0)
    5.0
    >>> policy.effective(120.0)
    30.0
    >>> async with with_deadline_async(policy.effective(5.0), "chat"):
    ...     response = await client.chat.completions.create(...)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from llm_orch.core.errors import InvalidConfigError, RemoteTimeoutError

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class TimeoutPolicy:
    """Static per-attempt timeout ceiling, in seconds."""

    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise InvalidConfigError("timeout", self.timeout, "timeout must be positive")

    def effective(self, dynamic: float | None = None) -> float:
        """Clamp a request-specific estimate to the ceiling."""
        if dynamic is None:
            return self.timeout
        return min(self.timeout, dynamic)


@dataclass
class DeadlineContext:
    """Deadline state for one attempt.

    Attributes:
        deadline: Absolute deadline (monotonic clock)
        timeout_seconds: Original timeout value in seconds
        operation: Name of the operation, used in error messages
        start_time: When the attempt started
    """

    deadline: float
    timeout_seconds: float
    operation: str = "operation"
    start_time: float = field(default_factory=time.monotonic)

    def remaining(self) -> float:
        """Seconds until the deadline; negative once expired."""
        return self.deadline - time.monotonic()

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def is_expired(self) -> bool:
        return time.monotonic() >= self.deadline


@asynccontextmanager
async def with_deadline_async(
    seconds: float, operation: str | None = None
) -> AsyncIterator[DeadlineContext]:
    """Async context manager enforcing a time limit on its body.

    Uses ``asyncio.timeout``; the body is cancelled when the deadline passes.

    Raises:
        RemoteTimeoutError: If the deadline is exceeded
        ValueError: If seconds < 0
    """
    if seconds < 0:
        raise ValueError(f"Timeout must be non-negative, got {seconds}")

    now = time.monotonic()
    ctx = DeadlineContext(
        deadline=now + seconds,
        timeout_seconds=seconds,
        operation=operation or "operation",
        start_time=now,
    )

    try:
        async with asyncio.timeout(seconds):
            yield ctx
    except TimeoutError as exc:
        raise RemoteTimeoutError(
            timeout=seconds,
            elapsed=ctx.elapsed,
            operation=ctx.operation,
            cause=exc,
        ) from exc


__all__ = ["TimeoutPolicy", "DeadlineContext", "with_deadline_async", "DEFAULT_TIMEOUT_SECONDS"]
