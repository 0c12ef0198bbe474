"""API credentials passed through to request kinds.

The orchestrator never inspects these; it hands the same value to every
executable it runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from llm_orch.core.errors import MissingConfigError
from llm_orch.core.settings import OrchSettings, get_settings


@dataclass(frozen=True)
class Credentials:
    """An API key plus an optional organization id."""

    api_key: str = field(repr=False)
    org_id: str | None = None

    @classmethod
    def from_settings(cls, settings: OrchSettings) -> Credentials:
        """Build credentials from loaded settings.

        Raises:
            MissingConfigError: If no API key is configured.
        """
        if settings.openai_api_key is None:
            raise MissingConfigError("OPENAI_API_KEY")
        return cls(
            api_key=settings.openai_api_key.get_secret_value(),
            org_id=settings.openai_org_id,
        )

    @classmethod
    def from_env(cls) -> Credentials:
        """Read ``OPENAI_API_KEY`` / ``OPENAI_ORG_ID`` from the environment or ``.env``."""
        return cls.from_settings(get_settings(_force_reload=True))
