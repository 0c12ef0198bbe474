"""llm-orch core primitives: errors, results, logging, settings, credentials."""

from llm_orch.core.credentials import Credentials
from llm_orch.core.errors import (
    ChannelClosedError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    MalformedResponseError,
    MissingConfigError,
    OrchError,
    OrchestrationError,
    PermanentError,
    RateLimitError,
    RemoteRequestError,
    RemoteServiceError,
    RemoteTimeoutError,
    RequestNotFoundError,
    ResponseTypeMismatchError,
    RetriesExhaustedError,
    TransientError,
    is_retryable,
)
from llm_orch.core.logging import LogContext, configure_logging, get_logger
from llm_orch.core.result import Err, Ok, Result
from llm_orch.core.settings import OrchSettings, get_settings

__all__ = [
    # Credentials / settings
    "Credentials",
    "OrchSettings",
    "get_settings",
    # Errors
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
    # Results
    "Ok",
    "Err",
    "Result",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
]
