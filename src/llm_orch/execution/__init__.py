"""llm-orch execution - policies, admission gate, registry and orchestrator.

ARCHITECTURE
────────────
::

    Orchestrator (submit / get_result / get_response)
      ├── ResponseRegistry  ─ id → single-use result slot
      ├── AdmissionGate     ─ semaphore sized by ConcurrencyPolicy
      └── Policies          ─ deep-copied per request
            ├── RetryPolicy        ─ immediate / constant / exponential
            ├── ConcurrencyPolicy  ─ max_concurrent_requests
            └── TimeoutPolicy      ─ per-attempt ceiling

    Executable (Protocol)   ─ what a request kind implements

MODULE MAP
──────────
  1. retry.py         ─ RetryPolicy and its variants
  2. concurrency.py   ─ ConcurrencyPolicy, AdmissionGate
  3. timeout.py       ─ TimeoutPolicy, with_deadline_async
  4. policies.py      ─ Policies bundle
  5. protocol.py      ─ Executable
  6. registry.py      ─ RequestId, ResponseSlot, ResponseRegistry
  7. orchestrator.py  ─ Orchestrator
"""

from llm_orch.execution.concurrency import AdmissionGate, ConcurrencyPolicy
from llm_orch.execution.orchestrator import Orchestrator
from llm_orch.execution.policies import Policies
from llm_orch.execution.protocol import Executable
from llm_orch.execution.registry import RequestId, ResponseRegistry, ResponseSlot
from llm_orch.execution.retry import (
    ConstantDelayRetry,
    ExponentialBackoffRetry,
    ImmediateRetry,
    RetryPolicy,
    exponential_backoff,
)
from llm_orch.execution.timeout import TimeoutPolicy, with_deadline_async

__all__ = [
    "Orchestrator",
    "Executable",
    # Policies
    "Policies",
    "RetryPolicy",
    "ImmediateRetry",
    "ConstantDelayRetry",
    "ExponentialBackoffRetry",
    "exponential_backoff",
    "ConcurrencyPolicy",
    "AdmissionGate",
    "TimeoutPolicy",
    "with_deadline_async",
    # Registry
    "RequestId",
    "ResponseSlot",
    "ResponseRegistry",
]
