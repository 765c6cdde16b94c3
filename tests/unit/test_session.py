"""Unit tests for ScreeningSession, the stateful driver over the engine."""

import pytest

from screening_engine.engine.session import ResultSink, ScreeningSession, SessionStatus
from screening_engine.errors import (
    AnswerValidationError,
    QuestionnaireConfigError,
    SubmissionRejectedError,
    UnknownQuestionError,
)
from screening_engine.schemas.questionnaire import QuestionSet
from screening_engine.schemas.screening import (
    FeasibilityRating,
    QualificationLevel,
    RiskLevel,
)


class RecordingSink(ResultSink):
    """In-memory sink capturing persisted screenings."""

    def __init__(self):
        self.calls = []

    def persist(self, question_set, responses, result):
        self.calls.append((question_set.id, responses, result))


def _make_question_set(questions):
    return QuestionSet(id="demo", questions=questions)


@pytest.fixture
def branching_set():
    return _make_question_set(
        [
            {"id": "a", "type": "single_choice", "options": ["yes", "no"]},
            {
                "id": "b",
                "type": "number",
                "is_required": False,
                "conditional_logic": {
                    "show_if": [{"question_id": "a", "operator": "equals", "value": "yes"}]
                },
            },
        ]
    )


def _ids(questions):
    return [q.id for q in questions]


# ── Construction ─────────────────────────────────────────────────────


class TestConstruction:
    def test_starts_empty_and_pending(self, branching_set):
        session = ScreeningSession(branching_set)
        assert session.responses == {}
        assert _ids(session.visible_questions) == ["a"]
        assert session.status == SessionStatus.PENDING
        assert session.result is None

    def test_rejects_invalid_reference_graph(self):
        question_set = _make_question_set(
            [
                {
                    "id": "a",
                    "type": "boolean",
                    "conditional_logic": {
                        "show_if": [{"question_id": "a", "operator": "equals", "value": True}]
                    },
                }
            ]
        )
        with pytest.raises(QuestionnaireConfigError, match="references itself"):
            ScreeningSession(question_set)

    def test_sessions_are_independent(self, branching_set):
        first = ScreeningSession(branching_set)
        second = ScreeningSession(branching_set)
        first.answer("a", "yes")
        assert second.responses == {}

    def test_responses_property_is_a_copy(self, branching_set):
        session = ScreeningSession(branching_set)
        session.responses["a"] = "yes"
        assert session.responses == {}


# ── Answers ──────────────────────────────────────────────────────────


class TestAnswer:
    def test_answer_recomputes_visibility_and_progress(self, branching_set):
        session = ScreeningSession(branching_set)
        session.answer("a", "yes")
        assert _ids(session.visible_questions) == ["a", "b"]
        assert session.progress.can_submit is True
        assert session.progress.percent_complete == 50
        assert session.status == SessionStatus.SUBMITTABLE

    def test_hidden_answer_stays_but_stops_counting(self, branching_set):
        session = ScreeningSession(branching_set)
        session.answer("a", "yes")
        session.answer("b", 12)
        session.answer("a", "no")
        assert session.responses == {"a": "no", "b": 12}
        assert session.hidden_question_ids == ["b"]
        assert session.progress.total_questions == 1
        assert session.score.max == 1

    def test_rejected_answer_leaves_map_unchanged(self, branching_set):
        session = ScreeningSession(branching_set)
        session.answer("a", "yes")
        with pytest.raises(AnswerValidationError) as exc_info:
            session.answer("b", "lots")
        assert exc_info.value.question_id == "b"
        assert session.responses == {"a": "yes"}

    def test_rejected_answer_is_logged(self, branching_set, caplog):
        session = ScreeningSession(branching_set)
        with pytest.raises(AnswerValidationError):
            session.answer("a", "maybe")
        assert "Rejected answer for 'a'" in caplog.text

    def test_answer_returns_normalised_value(self, branching_set):
        session = ScreeningSession(branching_set)
        session.answer("a", "yes")
        assert session.answer("b", "12.0") == 12
        assert session.responses["b"] == 12

    def test_optional_empty_answer_removes_key(self, branching_set):
        session = ScreeningSession(branching_set)
        session.answer("a", "yes")
        session.answer("b", 3)
        assert session.answer("b", "") is None
        assert "b" not in session.responses

    def test_required_empty_answer_rejected(self, branching_set):
        session = ScreeningSession(branching_set)
        with pytest.raises(AnswerValidationError, match="required"):
            session.answer("a", None)

    def test_unknown_question(self, branching_set):
        session = ScreeningSession(branching_set)
        with pytest.raises(UnknownQuestionError) as exc_info:
            session.answer("ghost", "x")
        assert isinstance(exc_info.value, KeyError)
        assert str(exc_info.value) == "Unknown question id: 'ghost'"

    def test_clear(self, branching_set):
        session = ScreeningSession(branching_set)
        session.answer("a", "yes")
        session.clear("a")
        assert session.responses == {}
        assert session.status == SessionStatus.PENDING


# ── Submission ───────────────────────────────────────────────────────


class TestSubmit:
    def test_submit_refused_before_can_submit(self, branching_set):
        sink = RecordingSink()
        session = ScreeningSession(branching_set, sink=sink)
        with pytest.raises(SubmissionRejectedError) as exc_info:
            session.submit()
        assert exc_info.value.missing_required == ["a"]
        assert session.result is None
        assert sink.calls == []

    def test_submit_classifies_and_persists(self, branching_set):
        sink = RecordingSink()
        session = ScreeningSession(branching_set, sink=sink)
        session.answer("a", "no")
        result = session.submit()
        assert result.percentage == 100
        assert result.feasibility_rating == FeasibilityRating.HIGH
        assert result.metadata.question_set_id == "demo"
        assert session.status == SessionStatus.COMPLETED
        assert sink.calls == [("demo", {"a": "no"}, result)]

    def test_submit_is_one_shot(self, branching_set):
        session = ScreeningSession(branching_set)
        session.answer("a", "no")
        session.submit()
        with pytest.raises(SubmissionRejectedError, match="already submitted"):
            session.submit()
        with pytest.raises(SubmissionRejectedError):
            session.answer("a", "yes")
        with pytest.raises(SubmissionRejectedError):
            session.clear("a")


class TestSolarSession:
    """End-to-end runs over the bundled solar questionnaire and rules."""

    def _answer_all(self, session, answers):
        for question_id, value in answers.items():
            session.answer(question_id, value)

    def test_house_with_good_roof(self, solar_question_set, solar_rules):
        session = ScreeningSession(solar_question_set, solar_rules)
        self._answer_all(
            session,
            {
                "monthly_bill": 600,
                "property_type": "house",
                "roof_condition": "excellent",
                "roof_orientation": "north",
                "shading": False,
                "interest_level": 9,
            },
        )
        assert "building_consent" in session.hidden_question_ids
        assert "shading_hours" in session.hidden_question_ids
        result = session.submit()
        assert result.feasibility_rating == FeasibilityRating.HIGH
        assert result.qualification_level == QualificationLevel.QUALIFIED
        assert result.risk_level == RiskLevel.LOW
        assert "Your roof is in excellent condition for installation" in result.recommendations
        assert "Roof condition and orientation favour high solar generation" in result.recommendations
        assert result.estimated_system_size.recommended == 6.0

    def test_apartment_without_consent_is_disqualified(self, solar_question_set, solar_rules):
        session = ScreeningSession(solar_question_set, solar_rules)
        self._answer_all(
            session,
            {
                "monthly_bill": 400,
                "property_type": "apartment",
                "building_consent": False,
                "shading": False,
                "interest_level": 10,
            },
        )
        assert "roof_condition" in session.hidden_question_ids
        assert session.progress.can_submit is True
        result = session.submit()
        assert result.feasibility_rating == FeasibilityRating.NOT_FEASIBLE
        assert result.disqualified_by == ("no_building_consent",)
        assert result.risk_level == RiskLevel.CRITICAL

    def test_shading_follow_up_required(self, solar_question_set, solar_rules):
        session = ScreeningSession(solar_question_set, solar_rules)
        self._answer_all(
            session,
            {
                "monthly_bill": 300,
                "property_type": "house",
                "roof_condition": "good",
                "roof_orientation": "east",
                "shading": True,
                "interest_level": 5,
            },
        )
        assert session.progress.can_submit is False
        session.answer("shading_hours", 6)
        assert session.progress.can_submit is True

    def test_weak_site_scores_below_threshold(self, solar_question_set, solar_rules):
        session = ScreeningSession(solar_question_set, solar_rules)
        self._answer_all(
            session,
            {
                "monthly_bill": 600,
                "property_type": "house",
                "roof_condition": "good",
                "roof_orientation": "east",
                "shading": False,
                "interest_level": 9,
            },
        )
        result = session.submit()
        fired = {rule.rule_id: rule.fired for rule in result.applied_rules}
        assert fired["strong_solar_site"] is False
