"""Environment-driven settings for llm-orch.

All orchestrator knobs can be set through ``LLM_ORCH_*`` environment
variables or a ``.env`` file. Credentials use the conventional unprefixed
``OPENAI_API_KEY`` / ``OPENAI_ORG_ID`` names.

Examples:
    >>> import os
    >>> os.environ["LLM_ORCH_MAX_CONCURRENT_REQUESTS"] = "25"
    >>> get_settings(_force_reload=True).max_concurrent_requests
    25
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrchSettings(BaseSettings):
    """Orchestrator configuration.

    Fields
    ──────
    max_concurrent_requests : admission gate capacity
    timeout_seconds         : static timeout ceiling per attempt
    retry_max_retries       : retries after the first attempt
    retry_initial_delay     : first exponential backoff delay (seconds)
    retry_max_delay         : backoff cap (seconds)
    log_level / log_json    : structlog configuration
    openai_api_key          : OPENAI_API_KEY
    openai_org_id           : OPENAI_ORG_ID
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_ORCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Policies ─────────────────────────────────────────────────
    max_concurrent_requests: int = Field(default=10, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0)
    retry_max_retries: int = Field(default=5, ge=0)
    retry_initial_delay: float = Field(default=1.0, ge=0)
    retry_max_delay: float = Field(default=10.0, ge=0)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(default=None, description="None = JSON unless stdout is a tty")

    # ── Credentials ──────────────────────────────────────────────
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "LLM_ORCH_OPENAI_API_KEY"),
    )
    openai_org_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_ORG_ID", "LLM_ORCH_OPENAI_ORG_ID"),
    )


_settings_cache: OrchSettings | None = None


def get_settings(*, _force_reload: bool = False) -> OrchSettings:
    """Load and cache an :class:`OrchSettings` instance."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = OrchSettings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Drop the cached settings (for testing)."""
    global _settings_cache
    _settings_cache = None


__all__ = ["OrchSettings", "get_settings", "clear_settings_cache"]
