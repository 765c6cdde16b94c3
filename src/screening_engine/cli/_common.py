"""Shared CLI utilities: logging setup and configuration resolution."""

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from screening_engine.cli._console import console
from screening_engine.engine.loader import (
    load_classification_rules,
    load_default_question_set,
    load_default_rules,
    load_question_set,
)
from screening_engine.schemas.questionnaire import QuestionSet
from screening_engine.schemas.screening import ClassificationRules
from screening_engine.startup import StartupState
from screening_engine.startup import ensure_initialized as _ensure_initialized

logger = logging.getLogger(__name__)


def ensure_initialized() -> StartupState:
    """Load .env and resolve the configuration directory."""
    return _ensure_initialized()


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def resolve_question_set(path: Optional[Path], state: StartupState) -> QuestionSet:
    """Explicit path, then SCREENING_CONFIG_DIR, then the bundled questionnaire."""
    if path is not None:
        return load_question_set(path)
    if state.questionnaire_path is not None:
        return load_question_set(state.questionnaire_path)
    logger.debug("Using bundled questionnaire")
    return load_default_question_set()


def resolve_rules(path: Optional[Path], state: StartupState) -> ClassificationRules:
    """Explicit path, then SCREENING_CONFIG_DIR, then the bundled rules."""
    if path is not None:
        return load_classification_rules(path)
    if state.rules_path is not None:
        return load_classification_rules(state.rules_path)
    logger.debug("Using bundled classification rules")
    return load_default_rules()
