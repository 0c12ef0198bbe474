"""
CLI utility helpers - orchestrator construction and output formatting.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.markup import escape

from llm_orch.core.credentials import Credentials
from llm_orch.core.errors import ConfigError
from llm_orch.core.logging import configure_logging
from llm_orch.core.result import Ok, Result
from llm_orch.core.settings import get_settings
from llm_orch.execution.concurrency import ConcurrencyPolicy
from llm_orch.execution.orchestrator import Orchestrator
from llm_orch.execution.policies import Policies
from llm_orch.execution.protocol import Executable
from llm_orch.execution.retry import RetryPolicy
from llm_orch.execution.timeout import TimeoutPolicy

console = Console()
err_console = Console(stderr=True)


# ── Orchestrator helper ──────────────────────────────────────────────────


def make_orchestrator(
    *,
    concurrency: int | None = None,
    timeout: float | None = None,
    max_retries: int | None = None,
) -> Orchestrator:
    """Build an orchestrator from settings, with command-line overrides.

    Configuration problems are reported and turned into exit code 2.
    """
    try:
        settings = get_settings(_force_reload=True)
        configure_logging(level=settings.log_level, json_format=settings.log_json)
        policies = Policies.from_settings(settings)
        if concurrency is not None:
            policies.concurrency_policy = ConcurrencyPolicy(concurrency)
        if timeout is not None:
            policies.timeout_policy = TimeoutPolicy(timeout)
        if max_retries is not None:
            policies.retry_policy = RetryPolicy.exponential_backoff(
                max_retries=max_retries,
                initial_delay=settings.retry_initial_delay,
                max_delay=settings.retry_max_delay,
            )
        credentials = Credentials.from_settings(settings)
    except ConfigError as exc:
        err_console.print(f"[bold red]Config error[/bold red]: {exc.message}")
        raise typer.Exit(code=2) from exc
    return Orchestrator(policies, credentials)


async def fan_out(orchestrator: Orchestrator, requests: Sequence[Executable[Any]]) -> list[Result[Any]]:
    """Submit every request, then collect results in submission order."""
    request_ids = [await orchestrator.submit(request) for request in requests]
    return [await orchestrator.get_result(request_id) for request_id in request_ids]


def run_requests(orchestrator: Orchestrator, requests: Sequence[Executable[Any]]) -> list[Result[Any]]:
    return asyncio.run(fan_out(orchestrator, requests))


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert a dataclass response to a plain dict."""
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return {"value": str(obj)}


def output_results(
    inputs: Sequence[str],
    results: Sequence[Result[Any]],
    *,
    as_json: bool = False,
    render: Any = str,
) -> None:
    """Print one entry per input; exit 1 if any request failed."""
    failed = sum(1 for result in results if result.is_err())

    if as_json:
        payload = []
        for text, result in zip(inputs, results, strict=True):
            entry: dict[str, Any] = {"input": text}
            if isinstance(result, Ok):
                entry["response"] = _to_dict(result.value)
            else:
                entry["error"] = result.error.to_dict()
            payload.append(entry)
        console.print_json(json.dumps(payload, default=str))
    else:
        for index, result in enumerate(results):
            if isinstance(result, Ok):
                console.print(f"[bold cyan]\\[{index}][/bold cyan] {escape(render(result.value))}")
            else:
                err_console.print(f"[bold red]\\[{index}] Error[/bold red]: {escape(str(result.error))}")

    if failed:
        raise typer.Exit(code=1)
