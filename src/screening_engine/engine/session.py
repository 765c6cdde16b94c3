"""Screening session: one respondent's response map and its derived views.

The session owns an independent ResponseMap.  Every mutation is validated
at intake, written atomically and followed by a synchronous recompute of
visibility, progress and score, so callers only ever observe a consistent
state.  Submission is one-shot and refused until ``can_submit`` is True.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from screening_engine.engine.classifier import ScreeningClassifier
from screening_engine.engine.format_validators import FormatValidatorRegistry
from screening_engine.engine.loader import check_rule_references, ensure_valid_question_set
from screening_engine.engine.progress import compute_progress, missing_required
from screening_engine.engine.scoring import ScoreBreakdown, score as compute_score
from screening_engine.engine.validation import AnswerConstraint, build_constraints
from screening_engine.engine.visibility import compute_visible, hidden_question_ids
from screening_engine.errors import (
    AnswerValidationError,
    SubmissionRejectedError,
    UnknownQuestionError,
)
from screening_engine.schemas.questionnaire import (
    Answer,
    Question,
    QuestionnaireProgress,
    QuestionSet,
    ResponseMap,
)
from screening_engine.schemas.screening import ClassificationRules, ScreeningResult

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    """Lifecycle of a screening session."""

    PENDING = "pending"          # collecting answers, not yet submittable
    SUBMITTABLE = "submittable"  # every visible required question answered
    COMPLETED = "completed"      # result produced


class ResultSink(ABC):
    """Persistence collaborator that receives finished screenings."""

    @abstractmethod
    def persist(
        self,
        question_set: QuestionSet,
        responses: ResponseMap,
        result: ScreeningResult,
    ) -> None:
        """Store the response set and its screening result."""
        pass


class ScreeningSession:
    """Drives one questionnaire run from empty responses to a result."""

    def __init__(
        self,
        question_set: QuestionSet,
        rules: Optional[ClassificationRules] = None,
        *,
        validators: Optional[FormatValidatorRegistry] = None,
        sink: Optional[ResultSink] = None,
    ) -> None:
        self.question_set = ensure_valid_question_set(question_set)
        self.classifier = ScreeningClassifier(rules)
        self.sink = sink

        for problem in check_rule_references(self.classifier.rules, question_set):
            logger.warning(f"Classification rules: {problem}")

        self._constraints: Dict[str, AnswerConstraint] = build_constraints(
            question_set.questions, validators
        )
        self._responses: ResponseMap = {}
        self._result: Optional[ScreeningResult] = None
        self._recompute()

    # ── State ────────────────────────────────────────────────────────

    @property
    def responses(self) -> ResponseMap:
        """Copy of the current response map."""
        return dict(self._responses)

    @property
    def visible_questions(self) -> List[Question]:
        return list(self._visible)

    @property
    def hidden_question_ids(self) -> List[str]:
        return hidden_question_ids(self.question_set.questions, self._responses)

    @property
    def progress(self) -> QuestionnaireProgress:
        return self._progress

    @property
    def score(self) -> ScoreBreakdown:
        return self._score

    @property
    def result(self) -> Optional[ScreeningResult]:
        return self._result

    @property
    def status(self) -> SessionStatus:
        if self._result is not None:
            return SessionStatus.COMPLETED
        if self._progress.can_submit:
            return SessionStatus.SUBMITTABLE
        return SessionStatus.PENDING

    def constraint_for(self, question_id: str) -> AnswerConstraint:
        try:
            return self._constraints[question_id]
        except KeyError:
            raise UnknownQuestionError(question_id)

    # ── Mutations ────────────────────────────────────────────────────

    def answer(self, question_id: str, value: Any) -> Optional[Answer]:
        """Validate and store one answer, then recompute.

        Raises:
            UnknownQuestionError: ``question_id`` is not in the question set.
            AnswerValidationError: the value is rejected; the map is unchanged.
            SubmissionRejectedError: the session is already completed.
        """
        self._ensure_open()
        constraint = self.constraint_for(question_id)
        try:
            normalised = constraint.validate(value)
        except AnswerValidationError as e:
            logger.warning(f"Rejected answer for '{question_id}': {e.message}")
            raise

        if normalised is None:
            self._responses.pop(question_id, None)
        else:
            self._responses[question_id] = normalised
        self._recompute()
        return normalised

    def clear(self, question_id: str) -> None:
        """Remove an answer, then recompute."""
        self._ensure_open()
        self.constraint_for(question_id)
        self._responses.pop(question_id, None)
        self._recompute()

    def submit(self) -> ScreeningResult:
        """Classify the response set and hand it to the sink.

        Raises:
            SubmissionRejectedError: the form is not submittable yet or the
                session was already submitted.  No result is produced.
        """
        self._ensure_open()
        if not self._progress.can_submit:
            missing = missing_required(self._visible, self._responses)
            logger.warning(f"Submission refused, missing required answers: {missing}")
            raise SubmissionRejectedError(
                f"Cannot submit: {len(missing)} required question(s) unanswered",
                missing,
            )

        result = self.classifier.classify(
            self._score.percentage,
            self._responses,
            raw=self._score.raw,
            maximum=self._score.max,
            question_set=self.question_set,
        )
        self._result = result
        logger.info(
            f"Session for '{self.question_set.id}' submitted: "
            f"{result.feasibility_rating.value} ({result.percentage}%)"
        )

        if self.sink is not None:
            self.sink.persist(self.question_set, self.responses, result)
        return result

    # ── Internals ────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._result is not None:
            raise SubmissionRejectedError("Session already submitted")

    def _recompute(self) -> None:
        self._visible = compute_visible(self.question_set.questions, self._responses)
        self._progress = compute_progress(self._visible, self._responses)
        self._score = compute_score(self._visible, self._responses)
