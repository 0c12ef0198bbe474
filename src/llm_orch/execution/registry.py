"""Response Registry - request id → single-use result slot.

Manifesto:
Submission and retrieval happen at different times, often in different
coroutines. The registry is the rendezvous: ``submit`` registers a slot
before the work is spawned, the task writes its outcome into the slot, and
the caller later takes the slot out (exactly once) and awaits it.

ARCHITECTURE
────────────
::

    ResponseRegistry
      ├── .register(response_type)  ─ mint id, create slot   (under lock)
      ├── .take(request_id)         ─ remove slot or raise   (under lock)
      ├── len(registry)             ─ live (unconsumed) slots
      └── request_id in registry    ─ liveness check

    ResponseSlot
      ├── .request_id               ─ RequestId(value, response_type)
      ├── .response_type            ─ kind tag checked on retrieval
      ├── .send(result)             ─ Ok/Err, first write wins
      ├── .close(cause)             ─ Err(ChannelClosedError)
      └── await .receive()          ─ wait for the outcome

Slots are buffered: a result sent before anyone is waiting is kept until
the slot is taken, so no outcome is lost between completion and retrieval.

Ids are random unsigned 64-bit integers. A collision with a live slot is
regenerated; an id may be reused once its slot has been taken.
"""

from __future__ import annotations

import asyncio
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from llm_orch.core.errors import ChannelClosedError, OrchestrationError, RequestNotFoundError
from llm_orch.core.logging import get_logger
from llm_orch.core.result import Err, Result

logger = get_logger(__name__)

R = TypeVar("R")

MAX_ID_ATTEMPTS = 64


def random_u64() -> int:
    """Draw a random unsigned 64-bit id."""
    return secrets.randbits(64)


@dataclass(frozen=True)
class RequestId(Generic[R]):
    """Opaque handle for a submitted request.

    ``response_type`` is the kind of response the request yields; retrieval
    checks it against the kind recorded in the registry.
    """

    value: int
    response_type: type[R]

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class ResponseSlot(Generic[R]):
    """Single-producer, single-consumer, single-value result slot."""

    def __init__(self, request_id: RequestId[R], future: asyncio.Future[Result[R]]) -> None:
        self._request_id = request_id
        self._future = future

    @property
    def request_id(self) -> RequestId[R]:
        return self._request_id

    @property
    def response_type(self) -> type[R]:
        return self._request_id.response_type

    @property
    def done(self) -> bool:
        """True once an outcome has been written."""
        return self._future.done()

    def send(self, result: Result[R]) -> bool:
        """Write the outcome. Returns False if one was already written."""
        if self._future.done():
            return False
        self._future.set_result(result)
        return True

    def close(self, cause: BaseException | None = None) -> bool:
        """Mark the producer as gone without a normal outcome."""
        return self.send(Err(ChannelClosedError(self._request_id.value, cause=cause)))

    async def receive(self) -> Result[R]:
        """Wait for the outcome."""
        return await self._future


class ResponseRegistry:
    """Lock-guarded map of live request ids to their result slots.

    Parameters
    ----------
    id_factory
        Callable producing candidate ids; defaults to :func:`random_u64`.
    """

    def __init__(self, id_factory: Callable[[], int] | None = None) -> None:
        self._lock = threading.Lock()
        self._slots: dict[int, ResponseSlot[Any]] = {}
        self._id_factory = id_factory or random_u64

    def register(
        self,
        response_type: type[R],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> ResponseSlot[R]:
        """Mint a fresh id and register an empty slot for it.

        Must be called with a running event loop unless ``loop`` is given.

        Raises:
            OrchestrationError: If no free id is found after repeated collisions.
        """
        loop = loop or asyncio.get_running_loop()
        with self._lock:
            for _ in range(MAX_ID_ATTEMPTS):
                value = self._id_factory()
                if value not in self._slots:
                    break
                logger.warning("registry.id_collision", request_id=value)
            else:
                raise OrchestrationError(
                    f"Could not allocate a unique request id after {MAX_ID_ATTEMPTS} attempts"
                )
            slot: ResponseSlot[R] = ResponseSlot(RequestId(value, response_type), loop.create_future())
            self._slots[value] = slot
        return slot

    def take(self, request_id: RequestId[Any] | int) -> ResponseSlot[Any]:
        """Remove and return the slot for ``request_id``.

        Raises:
            RequestNotFoundError: If the id is unknown or already taken.
        """
        value = int(request_id)
        with self._lock:
            slot = self._slots.pop(value, None)
        if slot is None:
            raise RequestNotFoundError(value)
        return slot

    def __contains__(self, request_id: object) -> bool:
        if not isinstance(request_id, (RequestId, int)):
            return False
        with self._lock:
            return int(request_id) in self._slots

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)


__all__ = ["RequestId", "ResponseSlot", "ResponseRegistry", "random_u64"]
