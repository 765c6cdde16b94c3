"""Dynamic validation rule builder.

Builds, per question, the constraint used by response intake to accept or
reject a candidate answer before it is written into the ResponseMap.  Each
constraint wraps a pydantic ``TypeAdapter`` over an ``Annotated`` type
assembled from the question type and its validation rules:

- short_text / long_text: str, min/max length, regex pattern, named format
- number: numeric coercion, min/max, no NaN/inf, no booleans
- email / phone / url: str checked by a registered format predicate
- date / time / datetime: must parse
- boolean: strictly True/False
- single_choice / multiple_choice: declared option values only
- scale: numeric within [min, max], snapped to the step grid
- file_reference: non-empty reference string

Optional questions accept an empty value (None, "" or a whitespace-only
string) and normalise it to None; required questions reject it.  An empty
list is an answer.  Everything else is validated only when a value is
present.
"""

import logging
import math
import re
from datetime import date, datetime, time
from typing import Annotated, Any, Callable, Dict, List, Optional, Sequence

from pydantic import (
    AfterValidator,
    BeforeValidator,
    Field,
    StrictBool,
    StrictStr,
    TypeAdapter,
    ValidationError,
)
from pydantic_core import PydanticCustomError

from screening_engine.engine.format_validators import FormatValidatorRegistry
from screening_engine.errors import AnswerValidationError, QuestionnaireConfigError
from screening_engine.schemas.questionnaire import (
    Answer,
    Question,
    QuestionType,
    ResponseMap,
    ScaleConfig,
)

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This question is required"

# Question types checked by a format predicate of the same name
FORMAT_TYPES = {
    QuestionType.EMAIL: "email",
    QuestionType.PHONE: "phone",
    QuestionType.URL: "url",
}

TEXT_TYPES = {
    QuestionType.SHORT_TEXT,
    QuestionType.LONG_TEXT,
    QuestionType.EMAIL,
    QuestionType.PHONE,
    QuestionType.URL,
}


def is_empty_answer(value: Any) -> bool:
    """An answer counts as empty when absent or a blank string."""
    return value is None or (isinstance(value, str) and not value.strip())


# ── Validator factories ──────────────────────────────────────────────


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise PydanticCustomError("number_type", "Expected a number, got a boolean")
    return value


def _tidy_number(value: float) -> Any:
    return int(value) if float(value).is_integer() else value


def _pattern_check(pattern: str) -> Callable[[str], str]:
    compiled = re.compile(pattern)

    def check(value: str) -> str:
        if not compiled.search(value):
            raise PydanticCustomError(
                "pattern_mismatch",
                "Value does not match the expected pattern",
            )
        return value

    return check


def _format_check(name: str, predicate: Callable[[str], bool]) -> Callable[[str], str]:
    def check(value: str) -> str:
        if not predicate(value):
            raise PydanticCustomError(
                "invalid_format",
                "Invalid {format_name} format",
                {"format_name": name},
            )
        return value

    return check


def _one_of(allowed: Sequence[str]) -> Callable[[str], str]:
    allowed_set = set(allowed)

    def check(value: str) -> str:
        if value not in allowed_set:
            raise PydanticCustomError(
                "invalid_option",
                "Value '{value}' is not one of the allowed options: {allowed}",
                {"value": value, "allowed": ", ".join(allowed)},
            )
        return value

    return check


def snap_to_step(value: float, scale: ScaleConfig) -> float:
    """Round ``value`` to the nearest point on the scale's step grid."""
    steps = math.floor((value - scale.min) / scale.step + 0.5)
    snapped = round(scale.min + steps * scale.step, 10)
    if snapped > scale.max:
        snapped = round(snapped - scale.step, 10)
    return snapped


def _scale_snap(scale: ScaleConfig) -> Callable[[float], Any]:
    def snap(value: float) -> Any:
        return _tidy_number(snap_to_step(value, scale))

    return snap


# ── Type assembly ────────────────────────────────────────────────────


def _text_type(question: Question, registry: FormatValidatorRegistry) -> Any:
    rules = question.validation
    validators: List[Any] = [
        Field(min_length=rules.min_length, max_length=rules.max_length),
    ]
    if rules.pattern:
        validators.append(AfterValidator(_pattern_check(rules.pattern)))

    format_names = []
    if question.type in FORMAT_TYPES:
        format_names.append(FORMAT_TYPES[question.type])
    if rules.format and rules.format not in format_names:
        format_names.append(rules.format)

    for name in format_names:
        predicate = registry.get(name)
        if predicate is None:
            raise QuestionnaireConfigError(
                f"Question '{question.id}' uses unknown format '{name}'"
            )
        validators.append(AfterValidator(_format_check(name, predicate)))

    return Annotated[(StrictStr, *validators)]


def _answer_type(question: Question, registry: FormatValidatorRegistry) -> Any:
    qtype = question.type
    rules = question.validation

    if qtype in TEXT_TYPES:
        return _text_type(question, registry)

    if qtype == QuestionType.NUMBER:
        return Annotated[
            float,
            BeforeValidator(_reject_bool),
            Field(ge=rules.min, le=rules.max, allow_inf_nan=False),
            AfterValidator(_tidy_number),
        ]

    if qtype == QuestionType.SCALE:
        scale = question.scale
        return Annotated[
            float,
            BeforeValidator(_reject_bool),
            Field(ge=scale.min, le=scale.max, allow_inf_nan=False),
            AfterValidator(_scale_snap(scale)),
        ]

    if qtype == QuestionType.BOOLEAN:
        return StrictBool

    if qtype == QuestionType.DATE:
        return date

    if qtype == QuestionType.TIME:
        return time

    if qtype == QuestionType.DATETIME:
        return datetime

    if qtype == QuestionType.SINGLE_CHOICE:
        return Annotated[StrictStr, AfterValidator(_one_of(question.option_values))]

    if qtype == QuestionType.MULTIPLE_CHOICE:
        option = Annotated[StrictStr, AfterValidator(_one_of(question.option_values))]
        return List[option]

    if qtype == QuestionType.FILE_REFERENCE:
        return Annotated[StrictStr, Field(min_length=1)]

    raise QuestionnaireConfigError(f"Unsupported question type '{qtype}'")


# ── Constraint ───────────────────────────────────────────────────────


class AnswerConstraint:
    """Accept/reject descriptor for one question's answers."""

    def __init__(self, question: Question, answer_type: Any) -> None:
        self.question_id = question.id
        self.question_type = question.type
        self.required = question.is_required
        self.custom_message = question.validation.custom_message
        self._adapter = TypeAdapter(answer_type)

    def validate(self, value: Any) -> Optional[Answer]:
        """Return the normalised answer or raise AnswerValidationError."""
        if is_empty_answer(value):
            if self.required:
                raise AnswerValidationError(
                    self.question_id, self.custom_message or REQUIRED_MESSAGE
                )
            return None

        try:
            return self._adapter.validate_python(value)
        except ValidationError as e:
            message = self.custom_message or e.errors()[0]["msg"]
            raise AnswerValidationError(self.question_id, message) from e

    def accepts(self, value: Any) -> bool:
        try:
            self.validate(value)
        except AnswerValidationError:
            return False
        return True


def build_constraint(
    question: Question,
    validators: Optional[FormatValidatorRegistry] = None,
) -> AnswerConstraint:
    """Build the answer constraint for one question."""
    registry = validators or FormatValidatorRegistry()
    return AnswerConstraint(question, _answer_type(question, registry))


def build_constraints(
    questions: Sequence[Question],
    validators: Optional[FormatValidatorRegistry] = None,
) -> Dict[str, AnswerConstraint]:
    """Build constraints for every question, keyed by question id."""
    registry = validators or FormatValidatorRegistry()
    return {q.id: build_constraint(q, registry) for q in questions}


def validate_responses(
    questions: Sequence[Question],
    responses: ResponseMap,
    validators: Optional[FormatValidatorRegistry] = None,
) -> List[AnswerValidationError]:
    """Validate every present answer; returns all rejections.

    Missing answers are not reported here: required-ness over the visible
    set is the progress tracker's concern.
    """
    constraints = build_constraints(questions, validators)
    errors: List[AnswerValidationError] = []
    for question_id, value in responses.items():
        constraint = constraints.get(question_id)
        if constraint is None or value is None:
            continue
        try:
            constraint.validate(value)
        except AnswerValidationError as e:
            errors.append(e)
    if errors:
        logger.debug(f"{len(errors)} answer(s) rejected during bulk validation")
    return errors
