"""Shared fixtures for screening engine tests."""

import pytest

from screening_engine.engine.loader import load_default_question_set, load_default_rules
from screening_engine.startup import reset_state


@pytest.fixture
def solar_question_set():
    """The bundled solar feasibility questionnaire."""
    return load_default_question_set()


@pytest.fixture
def solar_rules():
    """The bundled solar classification rules."""
    return load_default_rules()


@pytest.fixture
def clean_startup(monkeypatch):
    """Forget cached startup state and any config dir override."""
    # setenv first so teardown also removes values loaded from .env files
    monkeypatch.setenv("SCREENING_CONFIG_DIR", "")
    monkeypatch.delenv("SCREENING_CONFIG_DIR")
    reset_state()
    yield
    reset_state()
