"""
Structured error types for llm-orch.

Every failure a request can produce is one of these types, so the retry loop,
the orchestrator and the caller can make decisions without string matching.
Each error carries:

- **Category:** what kind of failure (remote, timeout, usage, config...)
- **Retryable:** whether the retry policy may try the attempt again
- **Context:** request id, operation, model, attempt counters
- **Cause:** the chained underlying exception

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                         OrchError                             │
        │       (category, retryable, context, cause)                   │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  TransientError        PermanentError      RetriesExhausted   │
        │  (retryable=True)      (never retried)     (terminal)         │
        │       │                     │                                 │
        │  RemoteTimeoutError    MalformedResponseError                 │
        │  RemoteServiceError    RemoteRequestError                     │
        │  RateLimitError                                               │
        │                                                               │
        │  OrchestrationError                ConfigError                │
        │       │                                 │                     │
        │  RequestNotFoundError              MissingConfigError         │
        │  ResponseTypeMismatchError         InvalidConfigError         │
        │  ChannelClosedError                                           │
        └──────────────────────────────────────────────────────────────┘

Transient errors are routed through ``RetryPolicy.on_failure()``; permanent
errors surface immediately; ``RetriesExhaustedError`` wraps the last
transient cause once the policy gives up. Orchestration errors signal misuse
of the orchestrator (unknown id, wrong response kind) and are raised at the
call site rather than delivered as results.

Examples:
    >>> error = RemoteServiceError("upstream returned 503")
    >>> error.retryable
    True
    >>> error.with_context(request_id=42, operation="chat").context.request_id
    42

    >>> try:
    ...     raise ConnectionError("reset by peer")
    ... except ConnectionError as e:
    ...     exhausted = RetriesExhaustedError(attempts=6, cause=e)
    >>> "max retries reached" in str(exhausted)
    True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and logging."""

    # Remote service failures (usually transient)
    REMOTE = "REMOTE"             # Server errors, connection resets
    TIMEOUT = "TIMEOUT"           # Attempt exceeded its deadline
    RATE_LIMIT = "RATE_LIMIT"     # 429 from the remote service

    # Response / request problems (never retried)
    RESPONSE = "RESPONSE"         # Malformed or incomplete payload
    REQUEST = "REQUEST"           # Remote rejected the request itself

    # Terminal
    EXHAUSTED = "EXHAUSTED"       # Retry policy gave up

    # Caller misuse and setup
    ORCHESTRATION = "ORCHESTRATION"
    CONFIG = "CONFIG"

    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Only fields that are set are emitted by ``to_dict()``; anything without a
    dedicated field lands in ``metadata``.
    """

    request_id: int | None = None
    operation: str | None = None
    model: str | None = None
    attempt: int | None = None
    max_retries: int | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return the non-empty fields as a dict."""
        result: dict[str, Any] = {}
        for name in ("request_id", "operation", "model", "attempt", "max_retries", "http_status"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result


class OrchError(Exception):
    """Base class for all llm-orch errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can be
    overridden per instance.

    Args:
        message: Human-readable description.
        category: Overrides the class default category.
        retryable: Overrides the class default retry flag.
        context: Structured metadata for logging.
        cause: Underlying exception; also set as ``__cause__``.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> OrchError:
        """Add context to this error (fluent API).

        Usage:
            raise MalformedResponseError("no content").with_context(
                request_id=request_id, operation="chat"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (retried through the retry policy)
# =============================================================================


class TransientError(OrchError):
    """A failure that may succeed if the attempt is repeated."""

    default_category = ErrorCategory.REMOTE
    default_retryable = True


class RemoteTimeoutError(TransientError):
    """An attempt exceeded its effective timeout.

    Attributes:
        timeout: The deadline that was exceeded, in seconds.
        elapsed: How long the attempt ran before it was abandoned.
    """

    default_category = ErrorCategory.TIMEOUT

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
        **kwargs: Any,
    ):
        self.timeout = timeout
        self.elapsed = elapsed
        message = f"Operation '{operation}' timed out after {timeout:.2f}s"
        if elapsed is not None:
            message += f" (ran for {elapsed:.2f}s)"
        super().__init__(message, **kwargs)
        self.context.operation = self.context.operation or operation


class RemoteServiceError(TransientError):
    """The remote service failed (5xx, dropped connection, conflict)."""


class RateLimitError(TransientError):
    """The remote service rejected the call for rate limiting."""

    default_category = ErrorCategory.RATE_LIMIT


# =============================================================================
# PERMANENT ERRORS (never retried)
# =============================================================================


class PermanentError(OrchError):
    """A failure that repeating the attempt cannot fix."""

    default_category = ErrorCategory.RESPONSE
    default_retryable = False


class MalformedResponseError(PermanentError):
    """A timely response is missing a required field."""


class RemoteRequestError(PermanentError):
    """The remote service rejected the request (bad input, auth, not found)."""

    default_category = ErrorCategory.REQUEST


# =============================================================================
# EXHAUSTION
# =============================================================================


class RetriesExhaustedError(OrchError):
    """The retry policy declined another attempt.

    ``cause`` is the last transient error; ``attempts`` counts every attempt
    made, including the first.
    """

    default_category = ErrorCategory.EXHAUSTED
    default_retryable = False

    def __init__(self, attempts: int, cause: BaseException | None = None, **kwargs: Any):
        self.attempts = attempts
        message = f"max retries reached after {attempts} attempt(s)"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message, cause=cause, **kwargs)


# =============================================================================
# ORCHESTRATION ERRORS (caller misuse)
# =============================================================================


class OrchestrationError(OrchError):
    """Base for errors caused by how the orchestrator is being used."""

    default_category = ErrorCategory.ORCHESTRATION


class RequestNotFoundError(OrchestrationError):
    """The request id is unknown or its response was already consumed."""

    def __init__(self, request_id: int):
        self.request_id = request_id
        super().__init__(
            f"No response receiver found for request {request_id}; "
            "it was never submitted or has already been retrieved",
            context=ErrorContext(request_id=request_id),
        )


class ResponseTypeMismatchError(OrchestrationError):
    """A response was retrieved as a different kind than it was submitted with."""

    def __init__(self, request_id: int, expected: type, actual: type):
        self.request_id = request_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Request {request_id} yields {actual.__qualname__}, "
            f"but was retrieved as {expected.__qualname__}",
            context=ErrorContext(request_id=request_id),
        )


class ChannelClosedError(OrchestrationError):
    """The task producing a response ended without delivering one."""

    def __init__(self, request_id: int, cause: BaseException | None = None):
        self.request_id = request_id
        super().__init__(
            f"No response found for request {request_id}; the task ended without sending one",
            context=ErrorContext(request_id=request_id),
            cause=cause,
        )


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(OrchError):
    """Invalid or missing configuration."""

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """A required setting is absent."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


class InvalidConfigError(ConfigError):
    """A setting has a value outside its allowed range."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# HELPERS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """True when ``error`` should be routed through the retry policy."""
    if isinstance(error, OrchError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "OrchError",
    "TransientError",
    "RemoteTimeoutError",
    "RemoteServiceError",
    "RateLimitError",
    "PermanentError",
    "MalformedResponseError",
    "RemoteRequestError",
    "RetriesExhaustedError",
    "OrchestrationError",
    "RequestNotFoundError",
    "ResponseTypeMismatchError",
    "ChannelClosedError",
    "ConfigError",
    "MissingConfigError",
    "InvalidConfigError",
    "is_retryable",
]
