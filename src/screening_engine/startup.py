"""Centralized initialization for screening_engine entry points.

Loads ``.env`` from the project root and resolves which questionnaire and
classification rules to use:

- ``SCREENING_CONFIG_DIR``: directory holding ``questionnaire.yaml`` and/or
  ``rules.yaml`` overrides
- otherwise the bundled solar configuration is used
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "SCREENING_CONFIG_DIR"
QUESTIONNAIRE_FILE = "questionnaire.yaml"
RULES_FILE = "rules.yaml"


@dataclass
class StartupState:
    """Resolved configuration after initialization."""

    project_root: Path
    config_dir: Optional[Path] = None
    questionnaire_path: Optional[Path] = None
    rules_path: Optional[Path] = None
    env_loaded: bool = False


# Module-level state
_state: Optional[StartupState] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Find project root by looking for pyproject.toml or .env."""
    current = start_path or Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists() or (parent / ".env").exists():
            return parent
    return current


def _load_env(project_root: Path) -> bool:
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded .env from {env_path}")
        return True
    return False


def _resolve_config_dir() -> Optional[Path]:
    raw = os.getenv(CONFIG_DIR_ENV)
    if not raw:
        return None
    config_dir = Path(raw).expanduser()
    if not config_dir.is_dir():
        logger.warning(f"{CONFIG_DIR_ENV}={raw} is not a directory, using bundled configuration")
        return None
    return config_dir


def ensure_initialized(start_path: Optional[Path] = None, *, force: bool = False) -> StartupState:
    """Initialize once and return the resolved state."""
    global _state
    if _state is not None and not force:
        return _state

    project_root = _find_project_root(start_path)
    env_loaded = _load_env(project_root)
    config_dir = _resolve_config_dir()

    questionnaire_path = None
    rules_path = None
    if config_dir is not None:
        if (config_dir / QUESTIONNAIRE_FILE).exists():
            questionnaire_path = config_dir / QUESTIONNAIRE_FILE
        if (config_dir / RULES_FILE).exists():
            rules_path = config_dir / RULES_FILE

    _state = StartupState(
        project_root=project_root,
        config_dir=config_dir,
        questionnaire_path=questionnaire_path,
        rules_path=rules_path,
        env_loaded=env_loaded,
    )
    return _state


def reset_state() -> None:
    """Forget the cached state (tests)."""
    global _state
    _state = None
