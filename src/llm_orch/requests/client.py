"""OpenAI client construction and SDK error translation."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import openai

from llm_orch.core.credentials import Credentials
from llm_orch.core.errors import (
    ErrorContext,
    MalformedResponseError,
    OrchError,
    RateLimitError,
    RemoteRequestError,
    RemoteServiceError,
)

T = TypeVar("T")

# Status codes worth another attempt besides 429 and 5xx.
RETRYABLE_STATUS_CODES = frozenset({408, 409})


def get_openai_client(credentials: Credentials) -> openai.AsyncOpenAI:
    """Build an async client for ``credentials``.

    SDK-level retries are disabled; the request's retry policy owns retries.
    """
    return openai.AsyncOpenAI(
        api_key=credentials.api_key,
        organization=credentials.org_id,
        max_retries=0,
    )


def translate_openai_error(exc: openai.APIError) -> OrchError:
    """Map an SDK exception onto the transient/permanent taxonomy."""
    if isinstance(exc, openai.RateLimitError):
        return RateLimitError(str(exc), context=ErrorContext(http_status=exc.status_code), cause=exc)
    if isinstance(exc, openai.APIConnectionError):
        # Includes APITimeoutError raised by the transport.
        return RemoteServiceError(f"Connection to remote service failed: {exc}", cause=exc)
    if isinstance(exc, openai.APIStatusError):
        context = ErrorContext(http_status=exc.status_code)
        if exc.status_code >= 500 or exc.status_code in RETRYABLE_STATUS_CODES:
            return RemoteServiceError(str(exc), context=context, cause=exc)
        return RemoteRequestError(str(exc), context=context, cause=exc)
    if isinstance(exc, openai.APIResponseValidationError):
        return MalformedResponseError(f"Response failed validation: {exc}", cause=exc)
    return RemoteServiceError(str(exc), cause=exc)


async def call_openai(create: Callable[..., Awaitable[T]], **payload: Any) -> T:
    """Await an SDK call, re-raising SDK errors as :class:`OrchError`."""
    try:
        return await create(**payload)
    except openai.APIError as exc:
        raise translate_openai_error(exc) from exc
