"""
llm-orch CLI - Typer-based command-line interface.

Usage::

    llm-orch --help
    llm-orch chat "What is a semaphore?" "What is a future?" --concurrency 2
    llm-orch embed "first text" "second text" --json
"""
