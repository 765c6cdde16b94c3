"""Scoring engine: completeness weighted by question importance.

Every visible question contributes its weight to the maximum; answered
visible questions contribute to the raw score.  Which answers indicate
good or bad feasibility is the classifier's concern, not this module's.
"""

import logging
from typing import Dict, Sequence

from pydantic import BaseModel, Field

from screening_engine.engine.progress import is_answered, percent
from screening_engine.schemas.questionnaire import Question, ResponseMap

logger = logging.getLogger(__name__)


class CategoryScore(BaseModel):
    """Raw/max score of the visible questions in one category."""

    category: str
    raw: float = 0.0
    max: float = 0.0
    percentage: int = 0


class ScoreBreakdown(BaseModel):
    """Output of the scoring pass."""

    raw: float = Field(ge=0)
    max: float = Field(ge=0)
    percentage: int = Field(ge=0, le=100)
    categories: Dict[str, CategoryScore] = Field(default_factory=dict)


def score(visible: Sequence[Question], responses: ResponseMap) -> ScoreBreakdown:
    """Compute raw and maximum weighted score over the visible questions."""
    raw = 0.0
    maximum = 0.0
    categories: Dict[str, CategoryScore] = {}

    for q in visible:
        cat = categories.setdefault(q.category, CategoryScore(category=q.category))
        maximum += q.weight
        cat.max += q.weight
        if is_answered(responses.get(q.id)):
            raw += q.weight
            cat.raw += q.weight

    for cat in categories.values():
        cat.percentage = percent(cat.raw, cat.max)

    breakdown = ScoreBreakdown(
        raw=raw,
        max=maximum,
        percentage=percent(raw, maximum),
        categories=categories,
    )
    logger.debug(f"Score {breakdown.raw}/{breakdown.max} ({breakdown.percentage}%)")
    return breakdown
