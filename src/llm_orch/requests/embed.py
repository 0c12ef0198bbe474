"""Embedding requests: one text in, one vector out."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from llm_orch.core.credentials import Credentials
from llm_orch.core.errors import MalformedResponseError
from llm_orch.core.logging import get_logger
from llm_orch.execution.policies import Policies
from llm_orch.requests.base import run_with_policies
from llm_orch.requests.client import call_openai, get_openai_client

logger = get_logger(__name__)

EMBEDDING_SIZE = 1536
DEFAULT_EMBEDDING_MODEL = "text-embedding-ada-002"


@dataclass(frozen=True)
class EmbeddingResponse:
    """A single embedding vector."""

    vector: tuple[float, ...]
    model: str = ""

    def __len__(self) -> int:
        return len(self.vector)


@dataclass
class EmbeddingRequest:
    """Embed ``text`` with ``model``.

    ``dimensions`` is the vector length the response must have; ``None``
    accepts any non-empty vector. Uses the static timeout ceiling.
    """

    response_type: ClassVar[type] = EmbeddingResponse

    text: str
    model: str = DEFAULT_EMBEDDING_MODEL
    dimensions: int | None = EMBEDDING_SIZE

    async def execute(
        self,
        policies: Policies,
        credentials: Credentials,
        request_id: int,
    ) -> EmbeddingResponse:
        logger.debug("request.started", request_id=request_id, operation="embed", model=self.model)
        payload = {"model": self.model, "input": self.text}

        async with get_openai_client(credentials) as client:
            response = await run_with_policies(
                lambda: call_openai(client.embeddings.create, **payload),
                policies=policies,
                request_id=request_id,
                timeout=policies.timeout_policy.effective(),
                operation="embed",
            )

        return self.parse(response, request_id)

    def parse(self, response: Any, request_id: int) -> EmbeddingResponse:
        """Validate the payload and extract the first embedding.

        Raises:
            MalformedResponseError: Empty data, or a vector of the wrong length.
        """
        if not response.data:
            raise MalformedResponseError("response.data is empty").with_context(
                request_id=request_id, operation="embed"
            )
        vector = tuple(response.data[0].embedding)
        if not vector:
            raise MalformedResponseError("response.data[0].embedding is empty").with_context(
                request_id=request_id, operation="embed"
            )
        if self.dimensions is not None and len(vector) != self.dimensions:
            raise MalformedResponseError(
                f"expected an embedding of {self.dimensions} values, got {len(vector)}"
            ).with_context(request_id=request_id, operation="embed", model=self.model)
        return EmbeddingResponse(vector=vector, model=getattr(response, "model", "") or self.model)
