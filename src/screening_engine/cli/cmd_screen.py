"""Screen command: replay a response file through a screening session."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from screening_engine.cli._app import app
from screening_engine.cli._common import (
    ensure_initialized,
    resolve_question_set,
    resolve_rules,
    setup_logging,
)
from screening_engine.cli._console import (
    output_json,
    output_table,
    print_err,
    print_ok,
    print_progress,
    print_warn,
    render_result,
)
from screening_engine.engine.loader import load_responses
from screening_engine.engine.progress import is_answered, missing_required
from screening_engine.engine.session import ScreeningSession
from screening_engine.errors import AnswerValidationError, ScreeningError


def _replay(session: ScreeningSession, responses: Dict[str, Any]) -> List[Dict[str, str]]:
    """Feed answers in questionnaire order and collect rejections."""
    rejected = []
    known = set(session.question_set.question_ids)
    for question_id in session.question_set.question_ids:
        if question_id not in responses:
            continue
        try:
            session.answer(question_id, responses[question_id])
        except AnswerValidationError as e:
            rejected.append({"question_id": question_id, "error": e.message})

    for question_id in responses:
        if question_id not in known:
            rejected.append({"question_id": question_id, "error": "Unknown question id"})
    return rejected


@app.command("screen", help="Screen a response file against a questionnaire.")
def screen_cmd(
    ctx: typer.Context,
    responses: Path = typer.Argument(..., help="Responses YAML or JSON file (question id -> answer)"),
    questionnaire: Optional[Path] = typer.Option(
        None, "--questionnaire", "-Q", help="Questionnaire file (default: bundled solar questionnaire)"
    ),
    rules: Optional[Path] = typer.Option(
        None, "--rules", "-r", help="Classification rules file (default: bundled solar rules)"
    ),
):
    """Replay responses into a session and classify them when submittable."""
    state = ensure_initialized()
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    as_json = ctx.obj["json"]

    try:
        question_set = resolve_question_set(questionnaire, state)
        classification_rules = resolve_rules(rules, state)
        answers = load_responses(responses)
        session = ScreeningSession(question_set, classification_rules)
        rejected = _replay(session, answers)
    except ScreeningError as e:
        print_err(str(e))
        raise SystemExit(1)

    progress = session.progress
    current = session.responses
    visible_rows = [
        {
            "id": q.id,
            "type": q.type.value,
            "required": "yes" if q.is_required else "no",
            "answered": "yes" if is_answered(current.get(q.id)) else "no",
        }
        for q in session.visible_questions
    ]

    if not as_json:
        for item in rejected:
            print_warn(f"{item['question_id']}: {item['error']}")
        output_table(visible_rows, ctx=ctx, title="Visible questions")
        print_progress(progress)

    if not progress.can_submit:
        missing = missing_required(session.visible_questions, current)
        if as_json:
            output_json(
                {
                    "rejected": rejected,
                    "progress": progress.model_dump(mode="json"),
                    "missing_required": missing,
                }
            )
        print_err(f"Cannot submit, missing required answers: {', '.join(missing)}")
        raise SystemExit(1)

    try:
        result = session.submit()
    except ScreeningError as e:
        print_err(str(e))
        raise SystemExit(1)

    if as_json:
        output_json(
            {
                "rejected": rejected,
                "progress": progress.model_dump(mode="json"),
                "visible": [row["id"] for row in visible_rows],
                "result": result.to_payload(),
            }
        )
    else:
        render_result(result)
        print_ok(
            f"{result.feasibility_rating.value} ({result.percentage}%), "
            f"{result.qualification_level.value}, follow-up {result.follow_up_priority.value}"
        )
