"""Dynamic screening questionnaire engine.

Pure, synchronous components, leaves first::

    conditions   -> evaluate_condition
    visibility   -> compute_visible
    validation   -> build_constraint (answer intake)
    progress     -> compute_progress
    scoring      -> score
    classifier   -> classify

``ScreeningSession`` wires them together for one respondent.
"""

from screening_engine.engine.classifier import ScreeningClassifier, classify
from screening_engine.engine.conditions import evaluate_condition
from screening_engine.engine.format_validators import FormatValidatorRegistry
from screening_engine.engine.loader import (
    check_reference_graph,
    load_classification_rules,
    load_default_question_set,
    load_default_rules,
    load_question_set,
    load_responses,
)
from screening_engine.engine.progress import compute_progress, is_answered
from screening_engine.engine.scoring import ScoreBreakdown, score
from screening_engine.engine.session import ResultSink, ScreeningSession, SessionStatus
from screening_engine.engine.validation import AnswerConstraint, build_constraint
from screening_engine.engine.visibility import compute_visible

__all__ = [
    "ScreeningClassifier",
    "classify",
    "evaluate_condition",
    "FormatValidatorRegistry",
    "check_reference_graph",
    "load_classification_rules",
    "load_default_question_set",
    "load_default_rules",
    "load_question_set",
    "load_responses",
    "compute_progress",
    "is_answered",
    "ScoreBreakdown",
    "score",
    "ResultSink",
    "ScreeningSession",
    "SessionStatus",
    "AnswerConstraint",
    "build_constraint",
    "compute_visible",
]
