"""
Screening Engine - dynamic screening questionnaires with feasibility scoring.

Decides which questions are visible as answers come in, tracks completion
and submit eligibility, and classifies the finished response set into a
feasibility decision.
"""

__version__ = "0.1.0"

from screening_engine.engine import (
    ScreeningSession,
    classify,
    compute_progress,
    compute_visible,
    score,
)

__all__ = [
    "ScreeningSession",
    "classify",
    "compute_progress",
    "compute_visible",
    "score",
]
