#!/usr/bin/env python3
"""Bulk embeddings - fan out many requests under one concurrency limit.

Every text is submitted up front; at most ``max_concurrent_requests`` calls
are in flight at once. Failures come back as ``Err`` values instead of
aborting the batch::

    ids = [await orchestrator.submit(EmbeddingRequest(t)) for t in texts]
    results = [await orchestrator.get_result(i) for i in ids]

Run this example (needs ``OPENAI_API_KEY``):
    python examples/02_bulk_embeddings.py
"""

import asyncio

from llm_orch import (
    ConcurrencyPolicy,
    Credentials,
    EmbeddingRequest,
    Orchestrator,
    Policies,
    RetryPolicy,
    TimeoutPolicy,
)
from llm_orch.core.logging import configure_logging

TEXTS = [f"Sentence number {i} about rate-limited APIs." for i in range(50)]


async def main() -> None:
    configure_logging(level="WARNING", json_format=False)

    policies = Policies(
        retry_policy=RetryPolicy.exponential_backoff(max_retries=5, initial_delay=1.0, max_delay=10.0),
        concurrency_policy=ConcurrencyPolicy(max_concurrent_requests=10),
        timeout_policy=TimeoutPolicy(timeout=20.0),
    )
    orchestrator = Orchestrator(policies, Credentials.from_env())

    ids = [await orchestrator.submit(EmbeddingRequest(text)) for text in TEXTS]
    results = [await orchestrator.get_result(request_id) for request_id in ids]

    ok = [r.value for r in results if r.is_ok()]
    failed = [r.error for r in results if r.is_err()]
    print(f"{len(ok)} embeddings, {len(failed)} failures, peak in flight {orchestrator.gate.peak_in_flight}")
    for error in failed:
        print(f"  {type(error).__name__}: {error}")


if __name__ == "__main__":
    asyncio.run(main())
