#!/usr/bin/env python3
"""Basic chat - submit one request, collect its response later.

================================================================================
WHY SUBMIT / RETRIEVE?
================================================================================

``submit`` never waits on the remote call. It returns a ``RequestId`` right
away and the request runs in the background once the admission gate has a
free permit. Retrieval is separate and happens exactly once per id::

    request_id = await orchestrator.submit(request)     # returns immediately
    ...                                                 # submit more work
    response = await orchestrator.get_response(request_id)

================================================================================
EXAMPLE USAGE
================================================================================

Run this example (needs ``OPENAI_API_KEY`` in the environment or ``.env``):
    python examples/01_basic_chat.py
"""

import asyncio

from llm_orch import ChatRequest, ChatResponse, Credentials, Orchestrator, Policies
from llm_orch.core.logging import configure_logging


async def main() -> None:
    configure_logging(level="INFO", json_format=False)

    orchestrator = Orchestrator(Policies(), Credentials.from_env())

    request = ChatRequest("You are a helpful assistant.", "What are you?")
    request_id = await orchestrator.submit(request)

    response = await orchestrator.get_response(request_id, ChatResponse)
    print(response)


if __name__ == "__main__":
    asyncio.run(main())
