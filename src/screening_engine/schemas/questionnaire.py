"""Pydantic models for screening questionnaires.

A ``QuestionSet`` is authored externally (YAML/JSON) and loaded read-only
for the duration of a screening session.  Questions carry their own
conditional show/hide rules, validation constraints and score weight.
Answers live in a plain ``ResponseMap`` owned by the session.
"""

import re
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# ── Answer types ─────────────────────────────────────────────────────

Answer = Union[bool, int, float, str, List[str], datetime, date, time, None]
ResponseMap = Dict[str, Answer]


# ── Enums ────────────────────────────────────────────────────────────


class QuestionType(str, Enum):
    """Closed set of question types understood by the engine."""

    SHORT_TEXT = "short_text"
    LONG_TEXT = "long_text"
    NUMBER = "number"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    SCALE = "scale"
    FILE_REFERENCE = "file_reference"


# Spellings used by older questionnaire exports
LEGACY_TYPE_ALIASES: Dict[str, QuestionType] = {
    "text": QuestionType.SHORT_TEXT,
    "textarea": QuestionType.LONG_TEXT,
    "file_upload": QuestionType.FILE_REFERENCE,
}


class ConditionOperator(str, Enum):
    """Operators understood by the visibility evaluator."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


# ── Question payloads ────────────────────────────────────────────────


class Condition(BaseModel):
    """A single show/hide condition on an earlier question's answer.

    ``operator`` is kept as a plain string: unknown operators must load
    and then evaluate to ``False`` rather than fail the whole questionnaire.
    """

    question_id: str = Field(description="Id of the question whose answer is tested")
    operator: str = Field(description="One of ConditionOperator values")
    value: Any = Field(default=None, description="Target value to compare against")


class ConditionalLogic(BaseModel):
    """Show/hide rules. ``show_if`` is OR-ed, ``hide_if`` overrides it."""

    show_if: List[Condition] = Field(default_factory=list)
    hide_if: List[Condition] = Field(default_factory=list)

    def referenced_ids(self) -> List[str]:
        return [c.question_id for c in self.show_if + self.hide_if]


class QuestionOption(BaseModel):
    """A selectable option for choice questions."""

    value: str
    label: str = ""
    score: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _from_plain_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"value": data, "label": data}
        return data


class ScaleConfig(BaseModel):
    """Numeric range of a scale question."""

    min: float
    max: float
    step: float = Field(default=1.0, gt=0)
    min_label: Optional[str] = None
    max_label: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self) -> "ScaleConfig":
        if self.min > self.max:
            raise ValueError(f"Scale min ({self.min}) is greater than max ({self.max})")
        return self


class ValidationRules(BaseModel):
    """Per-question answer constraints."""

    min_length: Optional[int] = Field(default=None, ge=0)
    max_length: Optional[int] = Field(default=None, ge=0)
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    format: Optional[str] = Field(
        default=None,
        description="Name of a registered format predicate (e.g. 'cpf', 'cep')",
    )
    custom_message: Optional[str] = None

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        """Validate that pattern is a valid regex."""
        if v is None:
            return v
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regex pattern '{v}': {e}")
        return v


# ── Question / QuestionSet ───────────────────────────────────────────


class Question(BaseModel):
    """One screening question."""

    id: str = Field(min_length=1)
    text: str = ""
    type: QuestionType
    options: List[QuestionOption] = Field(default_factory=list)
    scale: Optional[ScaleConfig] = None
    validation: ValidationRules = Field(default_factory=ValidationRules)
    is_required: bool = True
    weight: float = Field(default=1.0, ge=0)
    conditional_logic: Optional[ConditionalLogic] = None
    category: str = "general"
    sort_order: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            key = v.strip().lower().replace("-", "_")
            return LEGACY_TYPE_ALIASES.get(key, key)
        return v

    @model_validator(mode="after")
    def _check_type_payload(self) -> "Question":
        if self.type == QuestionType.SCALE and self.scale is None:
            raise ValueError(f"Scale question '{self.id}' needs a 'scale' range")
        return self

    @property
    def option_values(self) -> List[str]:
        return [o.value for o in self.options]


class QuestionSet(BaseModel):
    """An authored questionnaire: ordered questions plus identity."""

    id: str
    name: str = ""
    version: str = Field(default="1.0", pattern=r"^\d+\.\d+$")
    description: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def get(self, question_id: str) -> Optional[Question]:
        for q in self.questions:
            if q.id == question_id:
                return q
        return None

    @property
    def question_ids(self) -> List[str]:
        return [q.id for q in self.questions]


# ── Progress ─────────────────────────────────────────────────────────


class QuestionnaireProgress(BaseModel):
    """Live completion view, recomputed after every response change."""

    total_questions: int = Field(ge=0)
    answered_questions: int = Field(ge=0)
    required_questions: int = Field(ge=0)
    answered_required_questions: int = Field(ge=0)
    percent_complete: int = Field(ge=0, le=100)
    can_submit: bool
    current_score: float = Field(ge=0)
