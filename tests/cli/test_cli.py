"""CLI tests for the `screening` Typer app."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from screening_engine.cli import app

runner = CliRunner()


def _json_from(result):
    """Decode the JSON document written to stdout."""
    text = result.stdout
    payload, _ = json.JSONDecoder().raw_decode(text[text.index("{"):])
    return payload


def _write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _isolated_startup(clean_startup, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def demo_questionnaire(tmp_path):
    return _write_yaml(
        tmp_path / "questionnaire.yaml",
        {
            "id": "demo",
            "name": "Demo",
            "questions": [
                {"id": "a", "type": "single_choice", "options": ["yes", "no"], "weight": 2},
                {
                    "id": "b",
                    "type": "number",
                    "weight": 3,
                    "conditional_logic": {
                        "show_if": [{"question_id": "a", "operator": "equals", "value": "yes"}]
                    },
                },
            ],
        },
    )


class TestValidateCommand:
    def test_valid_questionnaire(self, demo_questionnaire):
        result = runner.invoke(app, ["validate", str(demo_questionnaire)])
        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_json_table(self, demo_questionnaire):
        result = runner.invoke(app, ["--json", "-q", "validate", str(demo_questionnaire)])
        assert result.exit_code == 0
        rows, _ = json.JSONDecoder().raw_decode(result.stdout[result.stdout.index("["):])
        assert [row["id"] for row in rows] == ["a", "b"]
        assert rows[1]["conditions"] == "show_if a"

    def test_forward_reference_fails(self, tmp_path):
        path = _write_yaml(
            tmp_path / "bad.yaml",
            {
                "id": "bad",
                "questions": [
                    {
                        "id": "a",
                        "type": "boolean",
                        "conditional_logic": {
                            "show_if": [{"question_id": "b", "operator": "equals", "value": True}]
                        },
                    },
                    {"id": "b", "type": "boolean"},
                ],
            },
        )
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
        assert "later question" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_rules_with_unknown_question(self, demo_questionnaire, tmp_path):
        rules = _write_yaml(
            tmp_path / "rules.yaml",
            {"answer_rules": [{"id": "r", "conditions": [{"question_id": "ghost", "operator": "equals"}]}]},
        )
        result = runner.invoke(app, ["validate", str(demo_questionnaire), "--rules", str(rules)])
        assert result.exit_code == 1
        assert "ghost" in result.output


class TestScreenCommand:
    def test_submittable_responses(self, demo_questionnaire, tmp_path):
        responses = _write_yaml(tmp_path / "responses.yaml", {"a": "yes", "b": 12})
        result = runner.invoke(
            app, ["--json", "screen", str(responses), "--questionnaire", str(demo_questionnaire)]
        )
        assert result.exit_code == 0
        payload = _json_from(result)
        assert payload["visible"] == ["a", "b"]
        assert payload["rejected"] == []
        assert payload["progress"]["can_submit"] is True
        assert payload["result"]["percentage"] == 100
        assert payload["result"]["feasibility_rating"] == "high"
        assert payload["result"]["metadata"]["question_set_id"] == "demo"

    def test_missing_required_exits_1(self, demo_questionnaire, tmp_path):
        responses = _write_yaml(tmp_path / "responses.yaml", {"a": "yes"})
        result = runner.invoke(
            app, ["--json", "screen", str(responses), "--questionnaire", str(demo_questionnaire)]
        )
        assert result.exit_code == 1
        payload = _json_from(result)
        assert payload["missing_required"] == ["b"]
        assert "result" not in payload

    def test_rejected_answers_reported(self, demo_questionnaire, tmp_path):
        responses = _write_yaml(
            tmp_path / "responses.yaml", {"a": "no", "b": "lots", "ghost": 1}
        )
        result = runner.invoke(
            app, ["--json", "screen", str(responses), "--questionnaire", str(demo_questionnaire)]
        )
        assert result.exit_code == 0
        payload = _json_from(result)
        assert [item["question_id"] for item in payload["rejected"]] == ["b", "ghost"]
        assert payload["visible"] == ["a"]

    def test_blank_required_answer_is_missing(self, demo_questionnaire, tmp_path):
        responses = _write_yaml(tmp_path / "responses.yaml", {"a": "yes", "b": "   "})
        result = runner.invoke(
            app, ["--json", "screen", str(responses), "--questionnaire", str(demo_questionnaire)]
        )
        assert result.exit_code == 1
        payload = _json_from(result)
        assert payload["rejected"] == [{"question_id": "b", "error": "This question is required"}]
        assert payload["missing_required"] == ["b"]

    def test_bundled_defaults(self, tmp_path):
        responses = _write_yaml(
            tmp_path / "responses.yaml",
            {
                "monthly_bill": 400,
                "property_type": "apartment",
                "building_consent": False,
                "shading": False,
                "interest_level": 8,
            },
        )
        result = runner.invoke(app, ["--json", "screen", str(responses)])
        assert result.exit_code == 0
        payload = _json_from(result)
        assert payload["result"]["feasibility_rating"] == "not_feasible"
        assert payload["result"]["disqualified_by"] == ["no_building_consent"]

    def test_rules_override(self, demo_questionnaire, tmp_path):
        rules = _write_yaml(
            tmp_path / "rules.yaml",
            {
                "answer_rules": [
                    {
                        "id": "big",
                        "conditions": [{"question_id": "b", "operator": "greater_than", "value": 10}],
                        "recommendation": "Large system",
                    }
                ]
            },
        )
        responses = _write_yaml(tmp_path / "responses.yaml", {"a": "yes", "b": 12})
        result = runner.invoke(
            app,
            [
                "--json",
                "screen",
                str(responses),
                "--questionnaire",
                str(demo_questionnaire),
                "--rules",
                str(rules),
            ],
        )
        assert result.exit_code == 0
        assert _json_from(result)["result"]["recommendations"] == ["Large system"]

    def test_config_dir_override(self, demo_questionnaire, tmp_path, monkeypatch):
        monkeypatch.setenv("SCREENING_CONFIG_DIR", str(tmp_path))
        responses = _write_yaml(tmp_path / "responses.yaml", {"a": "no"})
        result = runner.invoke(app, ["--json", "screen", str(responses)])
        assert result.exit_code == 0
        assert _json_from(result)["result"]["metadata"]["question_set_id"] == "demo"

    def test_human_output(self, demo_questionnaire, tmp_path):
        responses = _write_yaml(tmp_path / "responses.yaml", {"a": "no"})
        result = runner.invoke(
            app, ["screen", str(responses), "--questionnaire", str(demo_questionnaire)]
        )
        assert result.exit_code == 0
        assert "Progress: 1/1 answered" in result.output
        assert "high (100%)" in result.output

    def test_invalid_responses_file(self, demo_questionnaire, tmp_path):
        responses = tmp_path / "responses.yaml"
        responses.write_text("- a\n- b\n", encoding="utf-8")
        result = runner.invoke(
            app, ["screen", str(responses), "--questionnaire", str(demo_questionnaire)]
        )
        assert result.exit_code == 1


class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "screening-engine 0.1.0" in result.output

    def test_verbose_and_quiet_conflict(self, demo_questionnaire):
        result = runner.invoke(app, ["-v", "-q", "validate", str(demo_questionnaire)])
        assert result.exit_code != 0

    def test_human_result_with_estimates(self, tmp_path):
        responses = _write_yaml(
            tmp_path / "responses.yaml",
            {
                "monthly_bill": 600,
                "property_type": "house",
                "roof_condition": "excellent",
                "roof_orientation": "north",
                "shading": False,
                "interest_level": 9,
            },
        )
        result = runner.invoke(app, ["screen", str(responses)])
        assert result.exit_code == 0
        assert "ready to submit" in result.output
        assert "Next steps" in result.output
        assert "6.0 kWp" in result.output
        assert "Roof condition and orientation favour high solar generation" in result.output
