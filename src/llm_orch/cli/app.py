"""
Root Typer application for the llm-orch CLI.

Every command submits all of its inputs at once and prints the responses in
input order, so ``--concurrency`` directly controls how many calls overlap.
"""

from __future__ import annotations

import typer
from typer import Typer

from llm_orch.cli.utils import make_orchestrator, output_results, run_requests
from llm_orch.requests.chat import ChatModelParams, ChatRequest, ChatResponse
from llm_orch.requests.embed import DEFAULT_EMBEDDING_MODEL, EmbeddingRequest, EmbeddingResponse

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."

app = Typer(
    name="llm-orch",
    help="llm-orch - bulk chat and embedding requests under concurrency, retry and timeout policies.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from llm_orch import __version__

        typer.echo(f"llm-orch {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """llm-orch CLI - fan out prompts and texts to an OpenAI-compatible API."""


# ── Commands ─────────────────────────────────────────────────────────────


def _render_chat(response: ChatResponse) -> str:
    return response.content


def _render_embedding(response: EmbeddingResponse) -> str:
    head = ", ".join(f"{value:.4f}" for value in response.vector[:4])
    return f"{len(response)} dims [{head}, ...]"


@app.command("chat")
def chat(
    prompts: list[str] = typer.Argument(..., help="One request is sent per prompt."),
    system: str = typer.Option(DEFAULT_SYSTEM_PROMPT, "--system", "-s", help="System prompt."),
    model: str = typer.Option("gpt-3.5-turbo", "--model", "-m"),
    max_tokens: int = typer.Option(256, "--max-tokens", min=1),
    concurrency: int | None = typer.Option(None, "--concurrency", "-c", min=1),
    timeout: float | None = typer.Option(None, "--timeout", "-t", help="Timeout ceiling in seconds."),
    max_retries: int | None = typer.Option(None, "--max-retries", min=0),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Send one chat completion per prompt."""
    orchestrator = make_orchestrator(concurrency=concurrency, timeout=timeout, max_retries=max_retries)
    params = ChatModelParams(model=model, max_tokens=max_tokens)
    requests = [ChatRequest(system, prompt, params) for prompt in prompts]
    results = run_requests(orchestrator, requests)
    output_results(prompts, results, as_json=json_out, render=_render_chat)


@app.command("embed")
def embed(
    texts: list[str] = typer.Argument(..., help="One request is sent per text."),
    model: str = typer.Option(DEFAULT_EMBEDDING_MODEL, "--model", "-m"),
    concurrency: int | None = typer.Option(None, "--concurrency", "-c", min=1),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Embed each text."""
    orchestrator = make_orchestrator(concurrency=concurrency)
    requests = [EmbeddingRequest(text, model=model) for text in texts]
    results = run_requests(orchestrator, requests)
    output_results(texts, results, as_json=json_out, render=_render_embedding)
