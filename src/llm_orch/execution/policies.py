"""The policy bundle handed to every request."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from llm_orch.core.settings import OrchSettings
from llm_orch.execution.concurrency import ConcurrencyPolicy
from llm_orch.execution.retry import RetryPolicy
from llm_orch.execution.timeout import TimeoutPolicy


@dataclass
class Policies:
    """Retry, concurrency and timeout policies for an orchestrator.

    Only the retry policy carries state. :meth:`copy` gives each request an
    independent bundle so retry counters never leak between requests.
    """

    retry_policy: RetryPolicy = field(default_factory=RetryPolicy.default)
    concurrency_policy: ConcurrencyPolicy = field(default_factory=ConcurrencyPolicy)
    timeout_policy: TimeoutPolicy = field(default_factory=TimeoutPolicy)

    def copy(self) -> Policies:
        """Deep copy, including the retry counter."""
        return copy.deepcopy(self)

    @classmethod
    def from_settings(cls, settings: OrchSettings) -> Policies:
        return cls(
            retry_policy=RetryPolicy.exponential_backoff(
                max_retries=settings.retry_max_retries,
                initial_delay=settings.retry_initial_delay,
                max_delay=settings.retry_max_delay,
            ),
            concurrency_policy=ConcurrencyPolicy(settings.max_concurrent_requests),
            timeout_policy=TimeoutPolicy(settings.timeout_seconds),
        )
