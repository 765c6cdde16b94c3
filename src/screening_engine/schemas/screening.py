"""Pydantic models for screening classification.

``ClassificationRules`` is domain configuration (loaded from YAML): band
thresholds, hard disqualifiers, qualification downgrades, answer-driven
recommendation rules and the estimate projection.  ``ScreeningResult`` is
the immutable decision produced once at submission.

Band mapping:
- high         -> qualified,            follow-up high
- medium       -> qualified (or partially_qualified if a downgrade fires),
                  follow-up medium
- low          -> partially_qualified,  follow-up medium
- not_feasible -> not_qualified,        follow-up low
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ── Enums ────────────────────────────────────────────────────────────


class FeasibilityRating(str, Enum):
    """Four-band qualitative outcome, ordered best to worst."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NOT_FEASIBLE = "not_feasible"


class QualificationLevel(str, Enum):
    QUALIFIED = "qualified"
    PARTIALLY_QUALIFIED = "partially_qualified"
    NOT_QUALIFIED = "not_qualified"


class FollowUpPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RuleKind(str, Enum):
    """How a rule combines its conditions."""

    ALL = "all"
    WEIGHTED_SUM = "weighted_sum"


BAND_ORDER: List[FeasibilityRating] = [
    FeasibilityRating.HIGH,
    FeasibilityRating.MEDIUM,
    FeasibilityRating.LOW,
    FeasibilityRating.NOT_FEASIBLE,
]


# ── Rule configuration ───────────────────────────────────────────────


class RuleCondition(BaseModel):
    """Condition used by classification rules.

    Supports the visibility operators plus ``between`` (inclusive numeric
    range, ``value`` is ``[low, high]``).  Weighted-sum rules ignore
    ``operator`` and ``value`` and use ``weight`` instead.
    """

    question_id: str
    operator: str = "equals"
    value: Any = None
    weight: float = 1.0


class ScreeningRule(BaseModel):
    """A data-driven rule over individual answers.

    With ``kind: all`` every condition must hold (AND).  With
    ``kind: weighted_sum`` the answers named by the conditions are scored,
    weighted and summed, and the rule fires once the sum reaches
    ``threshold``.  When the rule fires, its texts are added to the result.
    ``bands`` restricts the rule to the listed feasibility bands (empty
    means any band).
    """

    id: str
    name: str = ""
    description: Optional[str] = None
    kind: RuleKind = RuleKind.ALL
    threshold: Optional[float] = None
    conditions: List[RuleCondition] = Field(default_factory=list)
    bands: List[FeasibilityRating] = Field(default_factory=list)
    recommendation: Optional[str] = None
    risk_factor: Optional[str] = None
    next_step: Optional[str] = None

    @model_validator(mode="after")
    def _check_threshold(self) -> "ScreeningRule":
        if self.kind == RuleKind.WEIGHTED_SUM and self.threshold is None:
            raise ValueError(f"Weighted-sum rule '{self.id}' needs a threshold")
        return self


class FeasibilityThresholds(BaseModel):
    """Lower bounds (percent) of the high / medium / low bands."""

    high: float = 80.0
    medium: float = 60.0
    low: float = 40.0

    @model_validator(mode="after")
    def _check_order(self) -> "FeasibilityThresholds":
        for name in ("high", "medium", "low"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"Threshold '{name}' must be within 0-100, got {value}")
        if not self.high > self.medium > self.low:
            raise ValueError(
                f"Thresholds must be strictly decreasing "
                f"(high={self.high}, medium={self.medium}, low={self.low})"
            )
        return self


class RiskThresholds(BaseModel):
    """Minimum number of risk factors for each risk level."""

    medium: int = Field(default=1, ge=1)
    high: int = Field(default=2, ge=1)
    critical: int = Field(default=3, ge=1)

    @model_validator(mode="after")
    def _check_order(self) -> "RiskThresholds":
        if not self.medium <= self.high <= self.critical:
            raise ValueError("Risk thresholds must satisfy medium <= high <= critical")
        return self


class EstimateConfig(BaseModel):
    """Linear projection from one numeric answer to system size / cost.

    recommended = answer * annual_multiplier / yield_divisor
    size range  = recommended * (size_spread_min, size_spread_max)
    investment  = recommended * (cost_per_unit_min, cost_per_unit_max)
    """

    source_question_id: str
    annual_multiplier: float = Field(default=12.0, gt=0)
    yield_divisor: float = Field(default=1200.0, gt=0)
    size_spread_min: float = Field(default=0.8, gt=0)
    size_spread_max: float = Field(default=1.2, gt=0)
    unit: str = "kWp"
    cost_per_unit_min: float = Field(default=3000.0, ge=0)
    cost_per_unit_max: float = Field(default=5000.0, ge=0)
    currency: str = "BRL"


class ClassificationRules(BaseModel):
    """Complete classifier configuration."""

    feasibility_thresholds: FeasibilityThresholds = Field(default_factory=FeasibilityThresholds)
    risk_thresholds: RiskThresholds = Field(default_factory=RiskThresholds)
    disqualifiers: List[ScreeningRule] = Field(
        default_factory=list,
        description="Rules that force not_feasible regardless of score",
    )
    downgrades: List[ScreeningRule] = Field(
        default_factory=list,
        description="Rules that turn a medium band into partially_qualified",
    )
    answer_rules: List[ScreeningRule] = Field(default_factory=list)
    band_next_steps: Dict[FeasibilityRating, List[str]] = Field(default_factory=dict)
    estimates: Optional[EstimateConfig] = None


# ── Result ───────────────────────────────────────────────────────────


class SystemSizeEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    recommended: float
    unit: str = "kWp"


class InvestmentEstimate(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    currency: str = "BRL"


class AppliedRule(BaseModel):
    """Audit entry for one evaluated classification rule."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    kind: str = Field(description="disqualifier, downgrade or answer_rule")
    fired: bool


class ResultMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_set_id: Optional[str] = None
    question_set_version: Optional[str] = None
    calculated_at: datetime = Field(default_factory=datetime.now)


class ScreeningResult(BaseModel):
    """Final screening decision.  Immutable once created."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(ge=0)
    max_score: float = Field(ge=0)
    percentage: int = Field(ge=0, le=100)
    feasibility_rating: FeasibilityRating
    qualification_level: QualificationLevel
    follow_up_priority: FollowUpPriority
    risk_level: RiskLevel = RiskLevel.LOW
    recommendations: Tuple[str, ...] = ()
    risk_factors: Tuple[str, ...] = ()
    next_steps: Tuple[str, ...] = ()
    disqualified_by: Tuple[str, ...] = ()
    applied_rules: Tuple[AppliedRule, ...] = ()
    estimated_system_size: Optional[SystemSizeEstimate] = None
    estimated_investment: Optional[InvestmentEstimate] = None
    metadata: ResultMetadata = Field(default_factory=ResultMetadata)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict for the persistence / rendering collaborators."""
        return self.model_dump(mode="json")
