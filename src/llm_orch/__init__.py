"""
llm-orch - bulk requests to rate-limited LLM APIs under global concurrency,
retry and timeout policies.

Submit requests to an :class:`Orchestrator`, keep the returned ids, and
collect responses whenever you need them::

    from llm_orch import ChatRequest, ChatResponse, Credentials, Orchestrator, Policies

    orchestrator = Orchestrator(Policies(), Credentials.from_env())
    request_id = await orchestrator.submit(
        ChatRequest("You are a helpful assistant.", "What are you?")
    )
    response: ChatResponse = await orchestrator.get_response(request_id)
"""

__version__ = "0.1.0"

from llm_orch.core.credentials import Credentials
from llm_orch.core.errors import (
    ChannelClosedError,
    MalformedResponseError,
    OrchError,
    RequestNotFoundError,
    ResponseTypeMismatchError,
    RetriesExhaustedError,
)
from llm_orch.core.result import Err, Ok, Result
from llm_orch.execution import (
    ConcurrencyPolicy,
    Executable,
    Orchestrator,
    Policies,
    RequestId,
    RetryPolicy,
    TimeoutPolicy,
)
from llm_orch.requests import (
    ChatModelParams,
    ChatRequest,
    ChatResponse,
    EmbeddingRequest,
    EmbeddingResponse,
)

__all__ = [
    "__version__",
    "Orchestrator",
    "Executable",
    "RequestId",
    "Policies",
    "RetryPolicy",
    "ConcurrencyPolicy",
    "TimeoutPolicy",
    "Credentials",
    "Ok",
    "Err",
    "Result",
    "OrchError",
    "RetriesExhaustedError",
    "MalformedResponseError",
    "RequestNotFoundError",
    "ResponseTypeMismatchError",
    "ChannelClosedError",
    "ChatModelParams",
    "ChatRequest",
    "ChatResponse",
    "EmbeddingRequest",
    "EmbeddingResponse",
]
