"""Request kinds the orchestrator can run against an OpenAI-compatible API."""

from llm_orch.requests.base import run_with_policies
from llm_orch.requests.chat import (
    ChatModelParams,
    ChatRequest,
    ChatResponse,
    Message,
    Role,
    TokenUsage,
)
from llm_orch.requests.client import get_openai_client, translate_openai_error
from llm_orch.requests.embed import (
    EMBEDDING_SIZE,
    EmbeddingRequest,
    EmbeddingResponse,
)

__all__ = [
    # Chat
    "ChatModelParams",
    "ChatRequest",
    "ChatResponse",
    "Message",
    "Role",
    "TokenUsage",
    # Embeddings
    "EMBEDDING_SIZE",
    "EmbeddingRequest",
    "EmbeddingResponse",
    # Plumbing
    "run_with_policies",
    "get_openai_client",
    "translate_openai_error",
]
