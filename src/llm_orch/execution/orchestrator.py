"""Orchestrator - submit requests now, collect their responses later.

WHY
───
Bulk work against a rate-limited API (hundreds of chat completions or
embeddings) wants fan-out without thinking about concurrency: submit every
request up front, let a global limit decide how many run at once, and pick up
each response whenever the caller is ready for it.

ARCHITECTURE
────────────
::

    Orchestrator(policies, credentials)
      ├── .submit(executable)        → RequestId   (never waits on the work)
      ├── .get_result(request_id)    → Ok | Err    (exactly once per id)
      ├── .get_response(request_id)  → response    (raises the task's error)
      ├── .join()                    ─ wait for every spawned task
      │
      ├── ResponseRegistry           ─ id → slot, lock-guarded
      └── AdmissionGate              ─ semaphore sized by ConcurrencyPolicy

    submit ─▶ register slot ─▶ spawn task ─▶ return id
                                   │
                                   ▼
                  acquire permit ─▶ execute(policies copy, credentials, id)
                                   │
                  release permit ◀─┘
                                   │
                                   ▼
                          slot.send(Ok | Err)  ◀── get_result awaits here

The slot is registered before the task exists, so a retrieval issued right
after ``submit`` always finds it. Outcomes are buffered in the slot until
retrieved.

Example::

    orchestrator = Orchestrator(Policies(), Credentials.from_env())
    request_id = await orchestrator.submit(
        ChatRequest("You are a helpful assistant.", "What are you?")
    )
    response = await orchestrator.get_response(request_id)
    print(response)
"""

from __future__ import annotations

import asyncio
from typing import Any, TypeVar

from llm_orch.core.credentials import Credentials
from llm_orch.core.errors import OrchError, ResponseTypeMismatchError
from llm_orch.core.logging import LogContext, get_logger
from llm_orch.core.result import Err, Ok, Result
from llm_orch.core.settings import OrchSettings, get_settings
from llm_orch.execution.concurrency import AdmissionGate
from llm_orch.execution.policies import Policies
from llm_orch.execution.protocol import Executable
from llm_orch.execution.registry import RequestId, ResponseRegistry, ResponseSlot

logger = get_logger(__name__)

R = TypeVar("R")


class Orchestrator:
    """Concurrency-bounded request orchestrator.

    One instance owns one registry and one admission gate; every request it
    runs shares both. Policies are deep-copied per request.

    Parameters
    ----------
    policies : Policies | None
        Defaults to ``Policies()``.
    credentials : Credentials | None
        Defaults to ``Credentials.from_env()``.
    registry : ResponseRegistry | None
        Injectable for tests.
    """

    def __init__(
        self,
        policies: Policies | None = None,
        credentials: Credentials | None = None,
        *,
        registry: ResponseRegistry | None = None,
    ) -> None:
        self._policies = policies if policies is not None else Policies()
        self._credentials = credentials if credentials is not None else Credentials.from_env()
        self._registry = registry if registry is not None else ResponseRegistry()
        self._gate = AdmissionGate.from_policy(self._policies.concurrency_policy)
        self._tasks: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(cls, settings: OrchSettings | None = None) -> Orchestrator:
        """Build policies and credentials from ``LLM_ORCH_*`` / ``OPENAI_*`` settings."""
        settings = settings or get_settings()
        return cls(Policies.from_settings(settings), Credentials.from_settings(settings))

    # ── Submission ───────────────────────────────────────────────────

    async def submit(self, executable: Executable[R]) -> RequestId[R]:
        """Queue a request and return its id immediately.

        The request runs in a background task once a permit is free.
        """
        slot = self._registry.register(executable.response_type)
        request_id = slot.request_id

        task = asyncio.create_task(
            self._run(executable, slot, self._policies.copy()),
            name=f"llm-orch-{request_id.value}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.debug(
            "orchestrator.submitted",
            request_id=request_id.value,
            kind=type(executable).__name__,
            pending=len(self._registry),
        )
        return request_id

    add_request = submit

    async def _run(self, executable: Executable[Any], slot: ResponseSlot[Any], policies: Policies) -> None:
        request_id = slot.request_id.value
        async with LogContext(request_id=request_id):
            try:
                async with self._gate:
                    logger.debug("orchestrator.admitted", in_flight=self._gate.in_flight)
                    try:
                        response = await executable.execute(policies, self._credentials, request_id)
                    except OrchError as exc:
                        result: Result[Any] = Err(exc)
                    else:
                        result = Ok(response)
            except asyncio.CancelledError:
                slot.close()
                logger.warning("orchestrator.task_cancelled")
                raise
            except Exception as exc:
                logger.exception("orchestrator.task_crashed", error=str(exc))
                slot.close(cause=exc)
                return

            if result.is_err():
                logger.info("orchestrator.request_failed", error=str(result.error))
            else:
                logger.debug("orchestrator.request_completed")

            if not slot.send(result):
                logger.warning("orchestrator.response_dropped")

    # ── Retrieval ────────────────────────────────────────────────────

    async def get_result(
        self,
        request_id: RequestId[R] | int,
        response_type: type[R] | None = None,
    ) -> Result[R]:
        """Wait for a request's outcome and consume it.

        The registry entry is removed before waiting, so each id can be
        retrieved exactly once.

        Args:
            request_id: Id returned by :meth:`submit`.
            response_type: Expected response kind. Defaults to the kind
                carried by ``request_id``.

        Returns:
            ``Ok(response)`` or ``Err(error)`` exactly as the request ended.

        Raises:
            RequestNotFoundError: Unknown or already retrieved id.
            ResponseTypeMismatchError: The expected kind differs from the
                submitted kind, or the response is not an instance of it.
        """
        slot = self._registry.take(request_id)
        value = slot.request_id.value

        expected = response_type
        if expected is None and isinstance(request_id, RequestId):
            expected = request_id.response_type
        if expected is not None and expected is not slot.response_type:
            raise ResponseTypeMismatchError(value, expected, slot.response_type)

        result = await slot.receive()
        if isinstance(result, Ok) and not isinstance(result.value, slot.response_type):
            raise ResponseTypeMismatchError(value, slot.response_type, type(result.value))
        return result

    async def get_response(
        self,
        request_id: RequestId[R] | int,
        response_type: type[R] | None = None,
    ) -> R:
        """Like :meth:`get_result`, but return the response or raise its error."""
        result = await self.get_result(request_id, response_type)
        return result.unwrap()

    # ── Lifecycle / inspection ───────────────────────────────────────

    async def join(self) -> None:
        """Wait until every spawned task has finished.

        Outcomes stay in the registry until retrieved.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def policies(self) -> Policies:
        return self._policies

    @property
    def pending_count(self) -> int:
        """Submitted requests whose responses have not been retrieved."""
        return len(self._registry)

    @property
    def in_flight(self) -> int:
        """Requests currently holding a permit."""
        return self._gate.in_flight

    @property
    def gate(self) -> AdmissionGate:
        return self._gate


__all__ = ["Orchestrator"]
