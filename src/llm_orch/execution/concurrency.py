"""Concurrency policy and the admission gate it sizes.

WHY
───
The remote service is rate-limited, so only a bounded number of requests may
be executing at once. Submission must still never wait: callers can queue
any number of requests and the gate decides when each one starts.

ARCHITECTURE
────────────
::

    ConcurrencyPolicy(max_concurrent_requests=10)
      │
      ▼
    AdmissionGate(capacity)          ─ one per Orchestrator
      ├── async with gate: ...       ─ acquire a permit / release on exit
      ├── .in_flight                 ─ permits currently held
      ├── .peak_in_flight            ─ high-water mark
      └── .available                 ─ permits free right now

Waiting tasks are admitted as permits free up; asyncio.Semaphore wakes
waiters in roughly FIFO order but no ordering is promised.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from types import TracebackType

from llm_orch.core.errors import InvalidConfigError

DEFAULT_MAX_CONCURRENT_REQUESTS = 10


@dataclass(frozen=True)
class ConcurrencyPolicy:
    """How many requests may execute simultaneously."""

    max_concurrent_requests: int = DEFAULT_MAX_CONCURRENT_REQUESTS

    def __post_init__(self) -> None:
        if self.max_concurrent_requests < 1:
            raise InvalidConfigError(
                "max_concurrent_requests",
                self.max_concurrent_requests,
                "max_concurrent_requests must be at least 1",
            )


class AdmissionGate:
    """Counting permit pool bounding concurrently executing tasks.

    Parameters
    ----------
    capacity : int
        Number of permits. Backed by an ``asyncio.Semaphore``.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise InvalidConfigError("capacity", capacity, "gate capacity must be at least 1")
        self._capacity = capacity
        self._semaphore = asyncio.Semaphore(capacity)
        self._in_flight = 0
        self._peak_in_flight = 0

    @classmethod
    def from_policy(cls, policy: ConcurrencyPolicy) -> AdmissionGate:
        return cls(policy.max_concurrent_requests)

    async def acquire(self) -> None:
        """Wait for a permit."""
        await self._semaphore.acquire()
        self._in_flight += 1
        self._peak_in_flight = max(self._peak_in_flight, self._in_flight)

    def release(self) -> None:
        """Return a permit to the pool."""
        self._in_flight -= 1
        self._semaphore.release()

    async def __aenter__(self) -> AdmissionGate:
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def in_flight(self) -> int:
        """Permits currently held."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of permits held at once."""
        return self._peak_in_flight

    @property
    def available(self) -> int:
        return self._capacity - self._in_flight


__all__ = ["ConcurrencyPolicy", "AdmissionGate", "DEFAULT_MAX_CONCURRENT_REQUESTS"]
