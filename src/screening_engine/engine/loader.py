"""Loading and checking questionnaires, classification rules and responses.

Questionnaires and rules are YAML (or JSON) documents authored outside the
engine.  Everything is validated at load time so that a malformed file
surfaces as a ``QuestionnaireConfigError`` instead of a runtime anomaly:

- pydantic validation of every question / rule
- duplicate question ids
- conditions that reference the question itself, a later question or an
  unknown id (conditions may only look backwards)
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import yaml
from pydantic import ValidationError

from screening_engine.errors import QuestionnaireConfigError
from screening_engine.schemas.questionnaire import Question, QuestionSet, ResponseMap
from screening_engine.schemas.screening import ClassificationRules

logger = logging.getLogger(__name__)

BUNDLED_CONFIG_DIR = Path(__file__).parent.parent / "config"
DEFAULT_QUESTIONNAIRE_FILE = "solar_questionnaire.yaml"
DEFAULT_RULES_FILE = "solar_rules.yaml"


# ── File helpers ─────────────────────────────────────────────────────


def _read_document(file_path: Union[str, Path], what: str) -> Any:
    path = Path(file_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except FileNotFoundError:
        raise QuestionnaireConfigError(f"{what} file not found: {path}")
    except json.JSONDecodeError as e:
        raise QuestionnaireConfigError(f"Invalid JSON in {what} file {path}: {e}")
    except yaml.YAMLError as e:
        raise QuestionnaireConfigError(f"Invalid YAML in {what} file {path}: {e}")
    except OSError as e:
        raise QuestionnaireConfigError(f"Could not read {what} file {path}: {e}")


def _format_validation_error(e: ValidationError) -> List[str]:
    problems = []
    for err in e.errors():
        location = ".".join(str(part) for part in err["loc"])
        problems.append(f"{location}: {err['msg']}")
    return problems


# ── Reference graph ──────────────────────────────────────────────────


def check_reference_graph(questions: Sequence[Question]) -> List[str]:
    """Return every problem in the conditional reference graph.

    Conditions may only reference questions that appear strictly earlier,
    which also rules out cycles.
    """
    problems: List[str] = []
    position: Dict[str, int] = {}
    all_ids = set()

    for q in questions:
        if q.id in all_ids:
            problems.append(f"duplicate question id '{q.id}'")
        all_ids.add(q.id)

    for index, q in enumerate(questions):
        if q.conditional_logic is not None:
            for ref in q.conditional_logic.referenced_ids():
                if ref == q.id:
                    problems.append(f"question '{q.id}' references itself")
                elif ref not in all_ids:
                    problems.append(f"question '{q.id}' references unknown question '{ref}'")
                elif ref not in position:
                    problems.append(
                        f"question '{q.id}' references later question '{ref}'"
                    )
        position.setdefault(q.id, index)

    return problems


def ensure_valid_question_set(question_set: QuestionSet) -> QuestionSet:
    """Raise QuestionnaireConfigError when the reference graph is invalid."""
    problems = check_reference_graph(question_set.questions)
    if problems:
        raise QuestionnaireConfigError(
            f"Questionnaire '{question_set.id}' has invalid conditional references",
            problems,
        )
    return question_set


# ── Questionnaires ───────────────────────────────────────────────────


def parse_question_set(data: Any) -> QuestionSet:
    """Build a validated QuestionSet from a decoded document."""
    if not isinstance(data, dict):
        raise QuestionnaireConfigError("Questionnaire document must be a mapping")
    if "questions" not in data or not isinstance(data["questions"], list):
        raise QuestionnaireConfigError("Questionnaire must contain a 'questions' list")

    try:
        question_set = QuestionSet.model_validate(data)
    except ValidationError as e:
        raise QuestionnaireConfigError(
            "Questionnaire failed validation", _format_validation_error(e)
        )

    # Stable: questions without sort_order keep their authoring order
    question_set.questions = sorted(question_set.questions, key=lambda q: q.sort_order)
    return ensure_valid_question_set(question_set)


def load_question_set(file_path: Union[str, Path]) -> QuestionSet:
    """Load and validate a questionnaire file."""
    question_set = parse_question_set(_read_document(file_path, "questionnaire"))
    logger.info(
        f"Loaded questionnaire '{question_set.id}' v{question_set.version} "
        f"({len(question_set.questions)} questions) from {file_path}"
    )
    return question_set


def load_default_question_set() -> QuestionSet:
    """Load the bundled solar feasibility questionnaire."""
    return load_question_set(BUNDLED_CONFIG_DIR / DEFAULT_QUESTIONNAIRE_FILE)


# ── Classification rules ─────────────────────────────────────────────


def parse_classification_rules(data: Optional[Dict[str, Any]]) -> ClassificationRules:
    """Build ClassificationRules; missing keys fall back to defaults."""
    if data is None:
        return ClassificationRules()
    if not isinstance(data, dict):
        raise QuestionnaireConfigError("Classification rules document must be a mapping")
    try:
        return ClassificationRules.model_validate(data)
    except ValidationError as e:
        raise QuestionnaireConfigError(
            "Classification rules failed validation", _format_validation_error(e)
        )


def load_classification_rules(file_path: Optional[Union[str, Path]] = None) -> ClassificationRules:
    """Load classification rules, or the built-in defaults when no path is given."""
    if file_path is None:
        return ClassificationRules()
    rules = parse_classification_rules(_read_document(file_path, "classification rules"))
    logger.info(f"Loaded classification rules from {file_path}")
    return rules


def load_default_rules() -> ClassificationRules:
    """Load the bundled solar classification rules."""
    return load_classification_rules(BUNDLED_CONFIG_DIR / DEFAULT_RULES_FILE)


def check_rule_references(rules: ClassificationRules, question_set: QuestionSet) -> List[str]:
    """Return rule conditions that point at questions missing from ``question_set``."""
    known = set(question_set.question_ids)
    problems: List[str] = []
    groups = {
        "disqualifier": rules.disqualifiers,
        "downgrade": rules.downgrades,
        "answer_rule": rules.answer_rules,
    }
    for kind, group in groups.items():
        for rule in group:
            for cond in rule.conditions:
                if cond.question_id not in known:
                    problems.append(
                        f"{kind} '{rule.id}' references unknown question '{cond.question_id}'"
                    )
    if rules.estimates and rules.estimates.source_question_id not in known:
        problems.append(
            f"estimates reference unknown question '{rules.estimates.source_question_id}'"
        )
    return problems


# ── Responses ────────────────────────────────────────────────────────


def load_responses(file_path: Union[str, Path]) -> ResponseMap:
    """Load a response map (question id -> answer) from YAML or JSON."""
    data = _read_document(file_path, "responses")
    if data is None:
        return {}
    if isinstance(data, dict) and isinstance(data.get("responses"), dict):
        data = data["responses"]
    if not isinstance(data, dict):
        raise QuestionnaireConfigError("Responses document must be a mapping of question id to answer")
    return {str(k): v for k, v in data.items()}
