"""Condition evaluator: (answer, operator, target) -> bool.

Pure and total.  A missing answer never satisfies any condition, including
``not_equals`` / ``not_contains``.  Unknown operators evaluate to False.
Numeric comparisons that cannot coerce either side evaluate to False.
"""

import math
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Optional

from screening_engine.schemas.questionnaire import Answer, ConditionOperator


def strict_equals(left: Any, right: Any) -> bool:
    """Value equality without type coercion.

    ``True`` never equals ``1`` and ``"5"`` never equals ``5``.  Ints and
    floats compare by value.  Lists compare element-wise.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(
            strict_equals(a, b) for a, b in zip(left, right)
        )
    if type(left) is not type(right):
        return False
    return left == right


def to_text(value: Any) -> str:
    """String form used for substring tests."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(v) for v in value)
    return str(value)


def to_number(value: Any) -> float:
    """Numeric form used for comparisons; NaN when not coercible."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return math.nan
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def _contains(answer: Any, target: Any) -> bool:
    if isinstance(answer, (list, tuple)):
        return any(strict_equals(item, target) for item in answer)
    return to_text(target) in to_text(answer)


def _greater_than(answer: Any, target: Any) -> bool:
    left, right = to_number(answer), to_number(target)
    if math.isnan(left) or math.isnan(right):
        return False
    return left > right


def _less_than(answer: Any, target: Any) -> bool:
    left, right = to_number(answer), to_number(target)
    if math.isnan(left) or math.isnan(right):
        return False
    return left < right


def _between(answer: Any, target: Any) -> bool:
    if not isinstance(target, (list, tuple)) or len(target) < 2:
        return False
    value, low, high = to_number(answer), to_number(target[0]), to_number(target[1])
    if math.isnan(value) or math.isnan(low) or math.isnan(high):
        return False
    return low <= value <= high


_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    ConditionOperator.EQUALS.value: strict_equals,
    ConditionOperator.NOT_EQUALS.value: lambda a, t: not strict_equals(a, t),
    ConditionOperator.CONTAINS.value: _contains,
    ConditionOperator.NOT_CONTAINS.value: lambda a, t: not _contains(a, t),
    ConditionOperator.GREATER_THAN.value: _greater_than,
    ConditionOperator.LESS_THAN.value: _less_than,
}

# Classification rules may also test inclusive numeric ranges
_RULE_OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    **_OPERATORS,
    "between": _between,
}


def _operator_key(operator: Any) -> Optional[str]:
    if isinstance(operator, ConditionOperator):
        return operator.value
    if isinstance(operator, str):
        return operator
    return None


def evaluate_condition(answer: Optional[Answer], operator: Any, target: Any) -> bool:
    """Evaluate one visibility condition against an answer."""
    if answer is None:
        return False
    fn = _OPERATORS.get(_operator_key(operator))
    if fn is None:
        return False
    return fn(answer, target)


def evaluate_rule_condition(answer: Optional[Answer], operator: Any, target: Any) -> bool:
    """Evaluate a classification-rule condition (adds ``between``)."""
    if answer is None:
        return False
    fn = _RULE_OPERATORS.get(_operator_key(operator))
    if fn is None:
        return False
    return fn(answer, target)
