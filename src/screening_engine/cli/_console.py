"""Rich consoles and the renderers used by the screening commands."""

from typing import Any, List

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from screening_engine.schemas.questionnaire import QuestionnaireProgress
from screening_engine.schemas.screening import ScreeningResult

# Status/progress to stderr so it doesn't pollute piped JSON output
console = Console(stderr=True)

# Data output to stdout (pipeable to jq)
stdout_console = Console()


def _status(mark: str, msg: str) -> None:
    # Answers and ids are user data, never Rich markup
    console.print(f"{mark} {escape(msg)}", soft_wrap=True)


def print_ok(msg: str) -> None:
    _status("[green]✓[/green]", msg)


def print_err(msg: str) -> None:
    _status("[red]✗[/red]", msg)


def print_warn(msg: str) -> None:
    _status("[yellow]![/yellow]", msg)


def output_json(data: Any) -> None:
    """Machine-readable output on stdout (pipeable to jq)."""
    stdout_console.print_json(data=data)


def output_table(rows: List[dict], *, ctx: typer.Context, title: str = "") -> None:
    """Print rows as a JSON array (--json) or a Rich table."""
    if ctx.obj.get("json"):
        output_json(rows)
        return

    if not rows:
        console.print("[dim]No data[/dim]")
        return

    cols = list(rows[0].keys())
    table = Table(title=title, show_lines=False)
    for col in cols:
        table.add_column(col)
    for row in rows:
        table.add_row(*[escape(str(row.get(c, ""))) for c in cols])
    console.print(table)


# ── Screening renderers ──────────────────────────────────────────────

_RATING_STYLES = {
    "high": "green",
    "medium": "yellow",
    "low": "dark_orange",
    "not_feasible": "red",
}


def print_progress(progress: QuestionnaireProgress) -> None:
    """One-line completion summary to stderr."""
    state = "[green]ready to submit[/green]" if progress.can_submit else "[yellow]incomplete[/yellow]"
    console.print(
        f"Progress: {progress.answered_questions}/{progress.total_questions} answered "
        f"({progress.percent_complete}%), required "
        f"{progress.answered_required_questions}/{progress.required_questions}, {state}",
        soft_wrap=True,
    )


def render_result(result: ScreeningResult) -> None:
    """Human-readable screening decision on stderr."""
    rating = result.feasibility_rating.value
    style = _RATING_STYLES.get(rating, "blue")

    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="bold")
    summary.add_column()
    summary.add_row("Feasibility", f"[{style}]{rating}[/{style}] ({result.percentage}%)")
    summary.add_row("Qualification", result.qualification_level.value)
    summary.add_row("Follow-up", result.follow_up_priority.value)
    summary.add_row("Risk", result.risk_level.value)
    if result.disqualified_by:
        summary.add_row("Disqualified by", escape(", ".join(result.disqualified_by)))
    if result.estimated_system_size is not None:
        size = result.estimated_system_size
        summary.add_row(
            "System size",
            f"{size.recommended} {size.unit} ({size.min}-{size.max})",
        )
    if result.estimated_investment is not None:
        investment = result.estimated_investment
        summary.add_row(
            "Investment",
            f"{investment.min:,.2f}-{investment.max:,.2f} {investment.currency}",
        )
    console.print(Panel(summary, title="Screening result", border_style=style))

    for heading, items in (
        ("Recommendations", result.recommendations),
        ("Risk factors", result.risk_factors),
        ("Next steps", result.next_steps),
    ):
        if items:
            console.print(f"[bold]{heading}[/bold]")
            for item in items:
                console.print(f"  • {escape(item)}", soft_wrap=True)
