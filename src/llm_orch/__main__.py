"""Allow ``python -m llm_orch``."""

from llm_orch.cli.app import app

app()
