"""Validate command: load a questionnaire and check its conditional graph."""

from pathlib import Path
from typing import Optional

import typer

from screening_engine.cli._app import app
from screening_engine.cli._common import ensure_initialized, resolve_rules, setup_logging
from screening_engine.cli._console import output_table, print_err, print_ok, print_warn
from screening_engine.engine.loader import check_rule_references, load_question_set
from screening_engine.errors import ScreeningError


def _describe_logic(question) -> str:
    logic = question.conditional_logic
    if logic is None:
        return ""
    parts = []
    if logic.show_if:
        parts.append("show_if " + ", ".join(c.question_id for c in logic.show_if))
    if logic.hide_if:
        parts.append("hide_if " + ", ".join(c.question_id for c in logic.hide_if))
    return "; ".join(parts)


@app.command("validate", help="Validate a questionnaire file.")
def validate_cmd(
    ctx: typer.Context,
    questionnaire: Path = typer.Argument(..., help="Questionnaire YAML or JSON file"),
    rules: Optional[Path] = typer.Option(
        None, "--rules", "-r", help="Also check a classification rules file against it"
    ),
):
    """Load a questionnaire, reporting schema and reference-graph problems."""
    state = ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    try:
        question_set = load_question_set(questionnaire)
        rule_problems = []
        if rules is not None:
            rule_problems = check_rule_references(resolve_rules(rules, state), question_set)
    except ScreeningError as e:
        print_err(str(e))
        raise SystemExit(1)

    rows = [
        {
            "id": q.id,
            "type": q.type.value,
            "required": "yes" if q.is_required else "no",
            "weight": q.weight,
            "category": q.category,
            "conditions": _describe_logic(q),
        }
        for q in question_set.questions
    ]
    output_table(rows, ctx=ctx, title=f"{question_set.name or question_set.id} v{question_set.version}")

    for problem in rule_problems:
        print_warn(problem)
    if rule_problems:
        raise SystemExit(1)

    print_ok(f"Questionnaire '{question_set.id}' is valid ({len(question_set.questions)} questions)")
