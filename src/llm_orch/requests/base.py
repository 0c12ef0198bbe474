"""The retry/timeout loop shared by request kinds.

Each request kind builds a zero-argument coroutine factory for one attempt
and hands it to :func:`run_with_policies`, which:

1. bounds the attempt with the effective timeout,
2. on a retryable failure (any ``OrchError`` with ``retryable=True``, such as a
   timeout or a remote 5xx) calls ``policies.retry_policy.on_failure()`` and
   retries while it returns True,
3. raises :class:`RetriesExhaustedError` chained to the last failure once the
   policy gives up,
4. lets non-retryable errors through untouched on the first occurrence.

Attempts are strictly sequential.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from llm_orch.core.errors import OrchError, RemoteTimeoutError, RetriesExhaustedError, is_retryable
from llm_orch.core.logging import get_logger
from llm_orch.execution.policies import Policies
from llm_orch.execution.timeout import with_deadline_async

logger = get_logger(__name__)

T = TypeVar("T")


async def run_with_policies(
    call: Callable[[], Awaitable[T]],
    *,
    policies: Policies,
    request_id: int,
    timeout: float,
    operation: str,
) -> T:
    """Run ``call`` until it succeeds, fails permanently, or retries run out.

    Args:
        call: Produces one attempt's awaitable. Must raise ``OrchError``
            subclasses for failures.
        policies: The request's own policies; its retry counter is consumed.
        request_id: For logging and error context.
        timeout: Effective per-attempt timeout in seconds.
        operation: Short name for logs and error messages.

    Raises:
        RetriesExhaustedError: After the last allowed retryable failure.
        OrchError: Immediately, if an attempt raises one with ``retryable=False``.
    """
    retry_policy = policies.retry_policy
    attempt = 0

    while True:
        attempt += 1
        started = time.monotonic()
        try:
            async with with_deadline_async(timeout, operation):
                response = await call()
        except OrchError as exc:
            if not is_retryable(exc):
                raise
            logger.debug(
                "request.timed_out" if isinstance(exc, RemoteTimeoutError) else "request.attempt_failed",
                request_id=request_id,
                operation=operation,
                attempt=attempt,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            if await retry_policy.on_failure():
                continue
            logger.error(
                "request.max_retries_reached",
                request_id=request_id,
                operation=operation,
                attempts=attempt,
            )
            raise RetriesExhaustedError(attempt, cause=exc).with_context(
                request_id=request_id,
                operation=operation,
                attempt=attempt,
                max_retries=retry_policy.max_retries,
            ) from exc

        logger.debug(
            "request.completed",
            request_id=request_id,
            operation=operation,
            attempt=attempt,
            elapsed_seconds=round(time.monotonic() - started, 3),
        )
        return response
