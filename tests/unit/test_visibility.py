"""Unit tests for the visibility calculator."""

import pytest

from screening_engine.engine.visibility import compute_visible, hidden_question_ids, is_visible
from screening_engine.schemas.questionnaire import Question


def _make_question(qid, *, required=True, weight=1.0, show_if=None, hide_if=None, qtype="short_text"):
    logic = None
    if show_if or hide_if:
        logic = {"show_if": show_if or [], "hide_if": hide_if or []}
    return Question(
        id=qid,
        text=f"Question {qid}",
        type=qtype,
        is_required=required,
        weight=weight,
        conditional_logic=logic,
    )


def _ids(questions):
    return [q.id for q in questions]


@pytest.fixture
def branching_questions():
    """Scenario set: b is shown only when a == 'yes'."""
    return [
        _make_question("a"),
        _make_question(
            "b",
            required=False,
            show_if=[{"question_id": "a", "operator": "equals", "value": "yes"}],
        ),
    ]


class TestShowIf:
    def test_hidden_without_answer(self, branching_questions):
        assert _ids(compute_visible(branching_questions, {})) == ["a"]

    def test_shown_when_condition_holds(self, branching_questions):
        assert _ids(compute_visible(branching_questions, {"a": "yes"})) == ["a", "b"]

    def test_hidden_when_condition_fails(self, branching_questions):
        assert _ids(compute_visible(branching_questions, {"a": "no"})) == ["a"]

    def test_show_if_conditions_are_or_ed(self):
        q = _make_question(
            "c",
            show_if=[
                {"question_id": "a", "operator": "equals", "value": "yes"},
                {"question_id": "b", "operator": "equals", "value": "yes"},
            ],
        )
        assert is_visible(q, {"a": "no", "b": "yes"}) is True
        assert is_visible(q, {"a": "no", "b": "no"}) is False


class TestHideIf:
    def test_hide_if_overrides_show_if(self):
        q = _make_question(
            "c",
            show_if=[{"question_id": "a", "operator": "equals", "value": "yes"}],
            hide_if=[{"question_id": "b", "operator": "equals", "value": True}],
        )
        assert is_visible(q, {"a": "yes", "b": True}) is False
        assert is_visible(q, {"a": "yes", "b": False}) is True

    def test_hide_if_alone(self):
        q = _make_question(
            "c", hide_if=[{"question_id": "a", "operator": "equals", "value": False}]
        )
        assert is_visible(q, {}) is True
        assert is_visible(q, {"a": False}) is False

    def test_unknown_operator_never_hides(self):
        q = _make_question(
            "c", hide_if=[{"question_id": "a", "operator": "matches", "value": "x"}]
        )
        assert is_visible(q, {"a": "x"}) is True


class TestComputeVisible:
    def test_unconditional_questions_always_visible(self):
        questions = [_make_question("a"), _make_question("b")]
        for responses in ({}, {"a": "x"}, {"a": None, "b": ""}):
            assert _ids(compute_visible(questions, responses)) == ["a", "b"]

    def test_preserves_authoring_order(self):
        questions = [_make_question(qid) for qid in ("z", "m", "a")]
        assert _ids(compute_visible(questions, {})) == ["z", "m", "a"]

    def test_idempotent(self, branching_questions):
        responses = {"a": "yes"}
        first = compute_visible(branching_questions, responses)
        second = compute_visible(branching_questions, responses)
        assert _ids(first) == _ids(second)

    def test_does_not_mutate_responses(self, branching_questions):
        responses = {"a": "yes"}
        compute_visible(branching_questions, responses)
        assert responses == {"a": "yes"}

    def test_visibility_depends_on_responses_only(self):
        """A question hidden by its parent's parent is still driven by its own conditions."""
        questions = [
            _make_question("a"),
            _make_question("b", show_if=[{"question_id": "a", "operator": "equals", "value": "yes"}]),
            _make_question("c", show_if=[{"question_id": "b", "operator": "equals", "value": "go"}]),
        ]
        # b is hidden, but its stale answer still drives c
        visible = compute_visible(questions, {"a": "no", "b": "go"})
        assert _ids(visible) == ["a", "c"]

    def test_empty_question_list(self):
        assert compute_visible([], {"a": 1}) == []

    def test_hidden_question_ids(self, branching_questions):
        assert hidden_question_ids(branching_questions, {}) == ["b"]
        assert hidden_question_ids(branching_questions, {"a": "yes"}) == []
