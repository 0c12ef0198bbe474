"""Executable Protocol - the contract every request kind satisfies.

ARCHITECTURE
────────────
::

    Executable[R] (Protocol)
      ├── response_type : type[R]      ─ tag recorded in the registry
      └── async execute(policies, credentials, request_id) → R

    Implementors
      ├── ChatRequest       → ChatResponse
      └── EmbeddingRequest  → EmbeddingResponse

``execute`` owns the whole retry loop for its request: build the remote
call, bound each attempt by the effective timeout, consult
``policies.retry_policy.on_failure()`` on transient failures, and raise a
terminal :class:`~llm_orch.core.errors.OrchError` when it gives up. No base
class is needed; any object with these two members works.

Example::

    class Echo:
        response_type = str

        def __init__(self, text: str) -> None:
            self.text = text

        async def execute(self, policies, credentials, request_id):
            return self.text
"""

from __future__ import annotations

from typing import ClassVar, Protocol, TypeVar, runtime_checkable

from llm_orch.core.credentials import Credentials
from llm_orch.execution.policies import Policies

R = TypeVar("R", covariant=True)


@runtime_checkable
class Executable(Protocol[R]):
    """Protocol for units of work the orchestrator can run."""

    response_type: ClassVar[type]

    async def execute(
        self,
        policies: Policies,
        credentials: Credentials,
        request_id: int,
    ) -> R:
        """Run the request to a terminal outcome.

        Parameters
        ----------
        policies
            This request's own copy of the policies; the retry policy may be
            mutated freely.
        credentials
            Passed through unmodified from the orchestrator.
        request_id
            Numeric id, for logging.

        Returns
        -------
        R
            A response of ``response_type``.

        Raises
        ------
        OrchError
            ``RetriesExhaustedError`` or a permanent error.
        """
        ...
