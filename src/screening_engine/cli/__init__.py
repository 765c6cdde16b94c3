"""CLI package: Typer-based command-line interface.

Usage:
    screening --help
    screening validate questionnaire.yaml
    screening screen responses.yaml --rules rules.yaml
"""

from screening_engine.cli._app import app

# Register command modules (side-effect imports)
import screening_engine.cli.cmd_validate  # noqa: F401
import screening_engine.cli.cmd_screen  # noqa: F401

__all__ = ["app"]
