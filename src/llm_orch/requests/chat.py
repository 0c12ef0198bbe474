"""Chat completion requests: one system prompt, one user prompt, one answer.

ARCHITECTURE
────────────
::

    ChatRequest(system_prompt, user_prompt, model_params)
      ├── .estimated_timeout()  ─ scaled to max_tokens + prompt length
      ├── .build_payload()      ─ chat.completions.create kwargs
      └── .execute(...)         → ChatResponse(content, model, usage)

    ChatModelParams             ─ model, temperature, top_p, stop,
                                  max_tokens, frequency/presence penalty

Example::

    request = ChatRequest(
        "You are a helpful assistant.",
        "What are you?",
        ChatModelParams(max_tokens=64),
    )
    request_id = await orchestrator.submit(request)
    print(await orchestrator.get_response(request_id))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from llm_orch.core.credentials import Credentials
from llm_orch.core.errors import MalformedResponseError
from llm_orch.core.logging import get_logger
from llm_orch.execution.policies import Policies
from llm_orch.requests.base import run_with_policies
from llm_orch.requests.client import call_openai, get_openai_client

logger = get_logger(__name__)

# Rough characters-per-token ratio used for the timeout estimate.
CHARS_PER_TOKEN = 4
# Seconds allowed per 512 tokens of prompt + completion.
SECONDS_PER_512_TOKENS = 10.0


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """A single message in a conversation."""

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class ChatModelParams:
    """Parameters common to all chat models."""

    model: str = "gpt-3.5-turbo"
    temperature: float = 0.0
    top_p: float = 1.0
    stop: list[str] = field(default_factory=list)
    max_tokens: int = 256
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported for a call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class ChatResponse:
    """The generated message content, plus what the service reported about it."""

    content: str
    model: str = ""
    finish_reason: str | None = None
    usage: TokenUsage = field(default_factory=TokenUsage)

    def __str__(self) -> str:
        return self.content


@dataclass
class ChatRequest:
    """Single-system, single-user chat completion."""

    response_type: ClassVar[type] = ChatResponse

    system_prompt: str
    user_prompt: str
    model_params: ChatModelParams = field(default_factory=ChatModelParams)

    def messages(self) -> list[Message]:
        return [Message.system(self.system_prompt), Message.user(self.user_prompt)]

    def estimated_timeout(self) -> float:
        """Seconds this request should need, from output budget and prompt size."""
        prompt_tokens = (len(self.system_prompt) + len(self.user_prompt)) / CHARS_PER_TOKEN
        return SECONDS_PER_512_TOKENS * ((self.model_params.max_tokens + prompt_tokens) / 512)

    def build_payload(self) -> dict[str, Any]:
        params = self.model_params
        payload: dict[str, Any] = {
            "model": params.model,
            "messages": [m.to_dict() for m in self.messages()],
            "temperature": params.temperature,
            "top_p": params.top_p,
            "max_tokens": params.max_tokens,
            "presence_penalty": params.presence_penalty,
            "frequency_penalty": params.frequency_penalty,
        }
        if len(params.stop) == 1:
            payload["stop"] = params.stop[0]
        elif params.stop:
            payload["stop"] = list(params.stop)
        return payload

    async def execute(
        self,
        policies: Policies,
        credentials: Credentials,
        request_id: int,
    ) -> ChatResponse:
        logger.debug("request.started", request_id=request_id, operation="chat", model=self.model_params.model)
        timeout = policies.timeout_policy.effective(self.estimated_timeout())
        payload = self.build_payload()

        async with get_openai_client(credentials) as client:
            completion = await run_with_policies(
                lambda: call_openai(client.chat.completions.create, **payload),
                policies=policies,
                request_id=request_id,
                timeout=timeout,
                operation="chat",
            )

        return parse_completion(completion, request_id)


def parse_completion(completion: Any, request_id: int) -> ChatResponse:
    """Validate a chat completion and extract the first choice.

    Raises:
        MalformedResponseError: No choices, or the first choice has no content.
    """
    if not completion.choices:
        raise MalformedResponseError("response.choices is empty").with_context(
            request_id=request_id, operation="chat"
        )
    choice = completion.choices[0]
    content = choice.message.content
    if content is None:
        raise MalformedResponseError("response.choices[0].message.content is None").with_context(
            request_id=request_id, operation="chat"
        )

    usage = TokenUsage()
    if getattr(completion, "usage", None) is not None:
        usage = TokenUsage(
            prompt_tokens=completion.usage.prompt_tokens,
            completion_tokens=completion.usage.completion_tokens,
            total_tokens=completion.usage.total_tokens,
        )

    return ChatResponse(
        content=content,
        model=getattr(completion, "model", "") or "",
        finish_reason=getattr(choice, "finish_reason", None),
        usage=usage,
    )
