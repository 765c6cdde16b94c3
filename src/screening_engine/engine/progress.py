"""Progress tracker over the visible question set."""

import logging
import math
from typing import Any, List, Sequence

from screening_engine.schemas.questionnaire import (
    Question,
    QuestionnaireProgress,
    ResponseMap,
)

logger = logging.getLogger(__name__)


def is_answered(value: Any) -> bool:
    """Answered means present, not None and not the empty string.

    Empty lists, ``0`` and ``False`` are answers.
    """
    return value is not None and not (isinstance(value, str) and value == "")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def percent(part: float, whole: float) -> int:
    """``round(100 * part / whole)`` clamped to [0, 100]; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return max(0, min(100, round_half_up(100.0 * part / whole)))


def missing_required(visible: Sequence[Question], responses: ResponseMap) -> List[str]:
    """Ids of visible required questions that have no answer yet."""
    return [
        q.id for q in visible
        if q.is_required and not is_answered(responses.get(q.id))
    ]


def compute_progress(visible: Sequence[Question], responses: ResponseMap) -> QuestionnaireProgress:
    """Compute completion counters and submit eligibility.

    Args:
        visible: Questions currently visible (output of compute_visible).
        responses: Current response map.

    Returns:
        QuestionnaireProgress.  ``can_submit`` is True when every visible
        required question is answered, which includes the case of no
        required questions at all.
    """
    total = len(visible)
    answered = [q for q in visible if is_answered(responses.get(q.id))]
    required = [q for q in visible if q.is_required]
    answered_required = [q for q in answered if q.is_required]

    progress = QuestionnaireProgress(
        total_questions=total,
        answered_questions=len(answered),
        required_questions=len(required),
        answered_required_questions=len(answered_required),
        percent_complete=percent(len(answered), total),
        can_submit=len(answered_required) == len(required),
        current_score=sum(q.weight for q in answered),
    )
    logger.debug(
        f"Progress {progress.answered_questions}/{progress.total_questions} "
        f"(required {progress.answered_required_questions}/{progress.required_questions})"
    )
    return progress
