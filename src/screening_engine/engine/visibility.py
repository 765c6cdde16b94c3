"""Visibility calculator.

Derives the currently visible questions from the static question list and
a response snapshot.  Recomputed in full after every response change; each
question's visibility depends only on the responses, never on another
question's visibility.
"""

import logging
from typing import List, Sequence

from screening_engine.engine.conditions import evaluate_condition
from screening_engine.schemas.questionnaire import Condition, Question, ResponseMap

logger = logging.getLogger(__name__)


def _any_holds(conditions: Sequence[Condition], responses: ResponseMap) -> bool:
    return any(
        evaluate_condition(responses.get(c.question_id), c.operator, c.value)
        for c in conditions
    )


def is_visible(question: Question, responses: ResponseMap) -> bool:
    """Resolve one question's show/hide rules.

    ``show_if`` is OR-ed (empty means shown); a true ``hide_if`` condition
    overrides a positive ``show_if``.
    """
    logic = question.conditional_logic
    if logic is None:
        return True

    should_show = True
    if logic.show_if:
        should_show = _any_holds(logic.show_if, responses)

    if should_show and logic.hide_if:
        if _any_holds(logic.hide_if, responses):
            should_show = False

    return should_show


def compute_visible(questions: Sequence[Question], responses: ResponseMap) -> List[Question]:
    """Return the visible subset of ``questions`` in authoring order."""
    visible = [q for q in questions if is_visible(q, responses)]
    logger.debug(f"Visible questions: {len(visible)}/{len(questions)}")
    return visible


def hidden_question_ids(questions: Sequence[Question], responses: ResponseMap) -> List[str]:
    """Ids of questions currently hidden by their conditional logic."""
    return [q.id for q in questions if not is_visible(q, responses)]
