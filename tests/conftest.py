"""
Shared pytest fixtures for llm-orch tests.

This module provides:
- Environment and settings-cache isolation
- Test credentials
- A scripted stand-in for ``openai.AsyncOpenAI``
- A sleep recorder so retry delays can be asserted without waiting

Usage:
    @pytest.mark.asyncio
    async def test_chat(fake_client, credentials):
        fake_client.chat_outcomes.append(make_completion("hi"))
        ...
"""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest
import structlog

from llm_orch.core.credentials import Credentials
from llm_orch.core.settings import clear_settings_cache

ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_ORG_ID",
    "LLM_ORCH_OPENAI_API_KEY",
    "LLM_ORCH_OPENAI_ORG_ID",
    "LLM_ORCH_MAX_CONCURRENT_REQUESTS",
    "LLM_ORCH_TIMEOUT_SECONDS",
    "LLM_ORCH_RETRY_MAX_RETRIES",
    "LLM_ORCH_RETRY_INITIAL_DELAY",
    "LLM_ORCH_RETRY_MAX_DELAY",
    "LLM_ORCH_LOG_LEVEL",
    "LLM_ORCH_LOG_JSON",
)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Run every test without ambient credentials, ``.env`` files or cached settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(api_key="sk-test", org_id="org-test")


# =============================================================================
# Sleep recorder
# =============================================================================


@pytest.fixture
def recorded_sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace ``asyncio.sleep`` inside retry policies with a recorder.

    The recorder yields to the loop once so scheduling stays realistic.
    """
    delays: list[float] = []
    real_sleep = asyncio.sleep

    async def fake_sleep(delay: float, *args: Any, **kwargs: Any) -> None:
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr("llm_orch.execution.retry.asyncio.sleep", fake_sleep)
    return delays


# =============================================================================
# OpenAI stand-in
# =============================================================================


def make_completion(
    content: str | None = "Hello!",
    *,
    model: str = "gpt-3.5-turbo-0125",
    finish_reason: str = "stop",
    choices: bool = True,
) -> SimpleNamespace:
    """Shape-compatible with ``openai.types.chat.ChatCompletion``."""
    choice = SimpleNamespace(
        index=0,
        message=SimpleNamespace(role="assistant", content=content),
        finish_reason=finish_reason,
    )
    return SimpleNamespace(
        model=model,
        choices=[choice] if choices else [],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=3, total_tokens=15),
    )


def make_embedding(size: int = 1536, *, model: str = "text-embedding-ada-002") -> SimpleNamespace:
    """Shape-compatible with ``openai.types.CreateEmbeddingResponse``."""
    vector = [i / size for i in range(size)]
    data = [SimpleNamespace(index=0, embedding=vector)] if size else []
    return SimpleNamespace(model=model, data=data)


class _Endpoint:
    """One ``create`` method that replays scripted outcomes in order.

    Each outcome is either a response object, an exception instance to
    raise, or an awaitable factory (used to simulate slow calls).
    """

    def __init__(self, outcomes: list[Any]) -> None:
        self.outcomes = outcomes
        self.calls: list[dict[str, Any]] = []

    async def create(self, **payload: Any) -> Any:
        self.calls.append(payload)
        if not self.outcomes:
            raise AssertionError("no scripted outcome left")
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome()
        return outcome


class FakeOpenAIClient:
    """Stand-in for ``openai.AsyncOpenAI`` covering chat and embeddings.

    The last scripted outcome repeats once earlier ones are used up.
    """

    def __init__(self) -> None:
        self.chat_outcomes: list[Any] = []
        self.embedding_outcomes: list[Any] = []
        self._chat = _Endpoint(self.chat_outcomes)
        self._embeddings = _Endpoint(self.embedding_outcomes)
        self.chat = SimpleNamespace(completions=self._chat)
        self.embeddings = self._embeddings
        self.closed = 0

    @property
    def chat_calls(self) -> list[dict[str, Any]]:
        return self._chat.calls

    @property
    def embedding_calls(self) -> list[dict[str, Any]]:
        return self._embeddings.calls

    async def __aenter__(self) -> FakeOpenAIClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.closed += 1


@pytest.fixture
def fake_client(monkeypatch: pytest.MonkeyPatch) -> FakeOpenAIClient:
    """Route every request kind to one scripted fake client."""
    client = FakeOpenAIClient()
    monkeypatch.setattr("llm_orch.requests.chat.get_openai_client", lambda credentials: client)
    monkeypatch.setattr("llm_orch.requests.embed.get_openai_client", lambda credentials: client)
    return client
