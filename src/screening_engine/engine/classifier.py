"""Screening result classifier.

Maps a completeness percentage plus the raw answers onto exactly one of
four feasibility bands and derives the structured decision from it.

Band selection (thresholds from ``ClassificationRules``):
    percentage >= high    -> high
    percentage >= medium  -> medium
    percentage >= low     -> low
    otherwise / NaN       -> not_feasible
Any disqualifier rule firing forces not_feasible regardless of score.

Recommendations, risk factors and next steps come from data rules over
individual answers, so new screening flows need no code changes.  A rule
either ANDs its conditions or, as a weighted sum, scores the named answers
(choice values by their declared option score) against a threshold.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from screening_engine.engine.conditions import evaluate_rule_condition, to_number
from screening_engine.engine.progress import is_answered, round_half_up
from screening_engine.schemas.questionnaire import QuestionSet, ResponseMap
from screening_engine.schemas.screening import (
    AppliedRule,
    ClassificationRules,
    EstimateConfig,
    FeasibilityRating,
    FollowUpPriority,
    InvestmentEstimate,
    QualificationLevel,
    ResultMetadata,
    RiskLevel,
    RuleKind,
    ScreeningResult,
    ScreeningRule,
    SystemSizeEstimate,
)

logger = logging.getLogger(__name__)

# question id -> option value -> declared score
OptionScores = Dict[str, Dict[str, float]]

# ── Band outcomes ────────────────────────────────────────────────────

BAND_QUALIFICATION: Dict[FeasibilityRating, QualificationLevel] = {
    FeasibilityRating.HIGH: QualificationLevel.QUALIFIED,
    FeasibilityRating.MEDIUM: QualificationLevel.QUALIFIED,
    FeasibilityRating.LOW: QualificationLevel.PARTIALLY_QUALIFIED,
    FeasibilityRating.NOT_FEASIBLE: QualificationLevel.NOT_QUALIFIED,
}

BAND_FOLLOW_UP: Dict[FeasibilityRating, FollowUpPriority] = {
    FeasibilityRating.HIGH: FollowUpPriority.HIGH,
    FeasibilityRating.MEDIUM: FollowUpPriority.MEDIUM,
    FeasibilityRating.LOW: FollowUpPriority.MEDIUM,
    FeasibilityRating.NOT_FEASIBLE: FollowUpPriority.LOW,
}

DEFAULT_NEXT_STEPS: Dict[FeasibilityRating, List[str]] = {
    FeasibilityRating.HIGH: [
        "Schedule a free technical site visit",
        "Request a personalised proposal",
    ],
    FeasibilityRating.MEDIUM: [
        "Schedule a free technical site visit",
        "Review the answers with a specialist",
    ],
    FeasibilityRating.LOW: [
        "A more detailed analysis is required",
        "Consult a specialist",
    ],
    FeasibilityRating.NOT_FEASIBLE: [
        "Send educational material about solar energy",
        "Re-evaluate in 6-12 months",
    ],
}


def percentage_to_band(percentage: float, rules: ClassificationRules) -> FeasibilityRating:
    """Map a 0-100 percentage to a feasibility band.  Total over all floats."""
    thresholds = rules.feasibility_thresholds
    if percentage is None or math.isnan(percentage):
        return FeasibilityRating.NOT_FEASIBLE
    if percentage >= thresholds.high:
        return FeasibilityRating.HIGH
    elif percentage >= thresholds.medium:
        return FeasibilityRating.MEDIUM
    elif percentage >= thresholds.low:
        return FeasibilityRating.LOW
    else:
        return FeasibilityRating.NOT_FEASIBLE


def option_scores(question_set: Optional[QuestionSet]) -> OptionScores:
    """Collect declared option scores; options without a score are left out."""
    if question_set is None:
        return {}
    return {
        q.id: {o.value: o.score for o in q.options if o.score is not None}
        for q in question_set.questions
        if q.options
    }


def answer_score(answer: Any, scores: Dict[str, float]) -> float:
    """Numeric contribution of one answer to a weighted sum.

    Option values use their declared score, numbers and numeric strings
    their value, booleans 1/0 and lists the sum of their elements.
    Anything else scores 0.
    """
    if isinstance(answer, (list, tuple)):
        return sum(answer_score(item, scores) for item in answer)
    if isinstance(answer, str) and answer in scores:
        return scores[answer]
    value = to_number(answer)
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def weighted_sum(
    rule: ScreeningRule, responses: ResponseMap, scores: Optional[OptionScores] = None
) -> Optional[float]:
    """Weighted score of the answers named by ``rule``; None when none is answered."""
    scores = scores or {}
    total = 0.0
    answered = 0
    for c in rule.conditions:
        answer = responses.get(c.question_id)
        if not is_answered(answer):
            continue
        answered += 1
        total += answer_score(answer, scores.get(c.question_id, {})) * c.weight
    return total if answered else None


def rule_fires(
    rule: ScreeningRule, responses: ResponseMap, scores: Optional[OptionScores] = None
) -> bool:
    """True when ``rule`` holds for ``responses``.  Rules without conditions never fire."""
    if not rule.conditions:
        return False
    if rule.kind == RuleKind.WEIGHTED_SUM:
        total = weighted_sum(rule, responses, scores)
        logger.debug(f"Rule '{rule.id}' weighted sum {total} (threshold {rule.threshold})")
        return total is not None and total >= rule.threshold
    return all(
        evaluate_rule_condition(responses.get(c.question_id), c.operator, c.value)
        for c in rule.conditions
    )


def _dedupe(items: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    out: List[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return tuple(out)


def _clamp_percentage(percentage: float) -> int:
    if percentage is None or math.isnan(percentage):
        return 0
    return round_half_up(max(0.0, min(100.0, percentage)))


class ScreeningClassifier:
    """Produces the final ScreeningResult from a percentage and the answers."""

    def __init__(self, rules: Optional[ClassificationRules] = None) -> None:
        self.rules = rules or ClassificationRules()

    def classify(
        self,
        percentage: float,
        responses: ResponseMap,
        *,
        raw: float = 0.0,
        maximum: float = 0.0,
        question_set: Optional[QuestionSet] = None,
    ) -> ScreeningResult:
        """Classify a submitted response set.

        Args:
            percentage: Completeness percentage from the scoring pass.
            responses: Full response map (used by the qualitative rules).
            raw: Raw weighted score (reported in the result).
            maximum: Maximum weighted score (reported in the result).
            question_set: Optional question set, recorded in result metadata
                and source of the option scores used by weighted-sum rules.

        Returns:
            An immutable ScreeningResult.
        """
        applied: List[AppliedRule] = []
        recommendations: List[str] = []
        risk_factors: List[str] = []
        next_steps: List[str] = []

        band = percentage_to_band(percentage, self.rules)
        scores = option_scores(question_set)

        # Hard disqualifiers override the score
        disqualified_by: List[str] = []
        for rule in self.rules.disqualifiers:
            fired = rule_fires(rule, responses, scores)
            applied.append(AppliedRule(rule_id=rule.id, kind="disqualifier", fired=fired))
            if fired:
                disqualified_by.append(rule.id)
                self._collect(rule, recommendations, risk_factors, next_steps)
        if disqualified_by:
            logger.info(f"Disqualified by {', '.join(disqualified_by)} (score band was {band.value})")
            band = FeasibilityRating.NOT_FEASIBLE

        qualification = BAND_QUALIFICATION[band]

        # Supplementary conditions only matter inside the medium band
        if band == FeasibilityRating.MEDIUM:
            for rule in self.rules.downgrades:
                fired = rule_fires(rule, responses, scores)
                applied.append(AppliedRule(rule_id=rule.id, kind="downgrade", fired=fired))
                if fired:
                    qualification = QualificationLevel.PARTIALLY_QUALIFIED
                    self._collect(rule, recommendations, risk_factors, next_steps)

        for rule in self.rules.answer_rules:
            if rule.bands and band not in rule.bands:
                continue
            fired = rule_fires(rule, responses, scores)
            applied.append(AppliedRule(rule_id=rule.id, kind="answer_rule", fired=fired))
            if fired:
                self._collect(rule, recommendations, risk_factors, next_steps)

        next_steps.extend(self.rules.band_next_steps.get(band, DEFAULT_NEXT_STEPS[band]))

        risk_factors_final = _dedupe(risk_factors)
        size, investment = self._estimate(responses)

        result = ScreeningResult(
            score=max(0.0, raw),
            max_score=max(0.0, maximum),
            percentage=_clamp_percentage(percentage),
            feasibility_rating=band,
            qualification_level=qualification,
            follow_up_priority=BAND_FOLLOW_UP[band],
            risk_level=self._risk_level(len(risk_factors_final), bool(disqualified_by)),
            recommendations=_dedupe(recommendations),
            risk_factors=risk_factors_final,
            next_steps=_dedupe(next_steps),
            disqualified_by=tuple(disqualified_by),
            applied_rules=tuple(applied),
            estimated_system_size=size,
            estimated_investment=investment,
            metadata=ResultMetadata(
                question_set_id=question_set.id if question_set else None,
                question_set_version=question_set.version if question_set else None,
            ),
        )
        logger.info(
            f"Screening classified: {result.feasibility_rating.value} / "
            f"{result.qualification_level.value} ({result.percentage}%)"
        )
        return result

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _collect(
        rule: ScreeningRule,
        recommendations: List[str],
        risk_factors: List[str],
        next_steps: List[str],
    ) -> None:
        if rule.recommendation:
            recommendations.append(rule.recommendation)
        if rule.risk_factor:
            risk_factors.append(rule.risk_factor)
        if rule.next_step:
            next_steps.append(rule.next_step)

    def _risk_level(self, n_risk_factors: int, disqualified: bool) -> RiskLevel:
        thresholds = self.rules.risk_thresholds
        if disqualified or n_risk_factors >= thresholds.critical:
            return RiskLevel.CRITICAL
        elif n_risk_factors >= thresholds.high:
            return RiskLevel.HIGH
        elif n_risk_factors >= thresholds.medium:
            return RiskLevel.MEDIUM
        else:
            return RiskLevel.LOW

    def _estimate(
        self, responses: ResponseMap
    ) -> Tuple[Optional[SystemSizeEstimate], Optional[InvestmentEstimate]]:
        config: Optional[EstimateConfig] = self.rules.estimates
        if config is None:
            return None, None

        value = to_number(responses.get(config.source_question_id))
        if math.isnan(value) or math.isinf(value) or value <= 0:
            return None, None

        recommended = value * config.annual_multiplier / config.yield_divisor
        size = SystemSizeEstimate(
            min=round(recommended * config.size_spread_min, 2),
            max=round(recommended * config.size_spread_max, 2),
            recommended=round(recommended, 2),
            unit=config.unit,
        )
        investment = InvestmentEstimate(
            min=round(recommended * config.cost_per_unit_min, 2),
            max=round(recommended * config.cost_per_unit_max, 2),
            currency=config.currency,
        )
        return size, investment


def classify(
    percentage: float,
    responses: ResponseMap,
    rules: Optional[ClassificationRules] = None,
    *,
    raw: float = 0.0,
    maximum: float = 0.0,
    question_set: Optional[QuestionSet] = None,
) -> ScreeningResult:
    """Functional form of ScreeningClassifier.classify."""
    return ScreeningClassifier(rules).classify(
        percentage,
        responses,
        raw=raw,
        maximum=maximum,
        question_set=question_set,
    )
