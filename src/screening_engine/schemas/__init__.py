"""Pydantic schemas for questionnaires, progress and screening results."""

from screening_engine.schemas.questionnaire import (
    Answer,
    Condition,
    ConditionalLogic,
    ConditionOperator,
    Question,
    QuestionnaireProgress,
    QuestionOption,
    QuestionSet,
    QuestionType,
    ResponseMap,
    ScaleConfig,
    ValidationRules,
)
from screening_engine.schemas.screening import (
    ClassificationRules,
    EstimateConfig,
    FeasibilityRating,
    FeasibilityThresholds,
    FollowUpPriority,
    QualificationLevel,
    RiskLevel,
    RiskThresholds,
    RuleCondition,
    RuleKind,
    ScreeningResult,
    ScreeningRule,
)

__all__ = [
    "Answer",
    "Condition",
    "ConditionalLogic",
    "ConditionOperator",
    "Question",
    "QuestionnaireProgress",
    "QuestionOption",
    "QuestionSet",
    "QuestionType",
    "ResponseMap",
    "ScaleConfig",
    "ValidationRules",
    "ClassificationRules",
    "EstimateConfig",
    "FeasibilityRating",
    "FeasibilityThresholds",
    "FollowUpPriority",
    "QualificationLevel",
    "RiskLevel",
    "RiskThresholds",
    "RuleCondition",
    "RuleKind",
    "ScreeningResult",
    "ScreeningRule",
]
