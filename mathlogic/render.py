"""Console rendering of a solved problem.

Three views mirror the tabs of the web client: the proof text, the
step-by-step logic trace, and the verification script. Nothing shown here
is executed.
"""

from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console, Group, RenderableType
from rich.json import JSON
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from mathlogic.models import Certainty, MathResponse, View
from mathlogic.utils import is_low_confidence


def render_badges(response: MathResponse) -> Text:
    badges = Text()
    if response.parsed_problem is not None:
        badges.append(f" {response.parsed_problem.difficulty_estimate.value.upper()} ", style="bold white on grey23")
        badges.append(" ")
    style = "bold green" if response.certainty is Certainty.CERTAIN else "bold yellow"
    badges.append(f" {response.certainty.value} ", style=f"{style} reverse")
    return badges


def render_proof(response: MathResponse) -> RenderableType:
    parts: list[RenderableType] = []

    problem = response.parsed_problem
    if problem is not None:
        analysis = Table.grid(padding=(0, 2))
        analysis.add_column(style="dim", no_wrap=True)
        analysis.add_column()
        given = "\n".join(f"• {g}" for g in problem.given) or "(none)"
        analysis.add_row("GIVEN", Text(given))
        analysis.add_row("TO PROVE", Text(problem.to_prove))
        if problem.suggested_lemmas:
            analysis.add_row("LEMMAS", Text(", ".join(problem.suggested_lemmas)))
        parts.append(Panel(analysis, title="Problem Analysis", title_align="left", border_style="magenta"))

    parts.append(Markdown(response.human_readable_proof))

    if response.uncertainty_reason:
        parts.append(Panel(Text(response.uncertainty_reason), title="Note", title_align="left", border_style="yellow"))

    return Group(*parts)


def _confidence_text(raw: str) -> Text:
    style = "yellow" if is_low_confidence(raw) else "green"
    return Text(raw, style=style)


def render_logic(response: MathResponse, *, raw_json: bool = False) -> RenderableType:
    logic = response.machine_readable_json

    table = Table(title=f"Step-by-Step Logic  [dim]ID: {escape(logic.proof_id)}[/dim]", title_justify="left", show_lines=True)
    table.add_column("#", justify="right", style="bold cyan", no_wrap=True)
    table.add_column("Conf.", no_wrap=True)
    table.add_column("Statement")
    table.add_column("Justification", style="italic")
    table.add_column("Assertions", style="green")

    for step in logic.steps:
        table.add_row(
            str(step.step_no),
            _confidence_text(step.confidence),
            Text(step.statement),
            Text(step.justification),
            Text("\n".join(step.checkable_assertions)),
        )

    parts: list[RenderableType] = [
        table,
        Panel(Text(str(logic.final_answer)), title="Final Answer", title_align="left", border_style="green"),
    ]
    if raw_json:
        parts.append(Panel(JSON(logic.model_dump_json()), title="Raw JSON", title_align="left", border_style="dim"))
    return Group(*parts)


def render_verification(response: MathResponse) -> RenderableType:
    checks = response.machine_readable_json.machine_checks
    parts: list[RenderableType] = [
        Panel(
            Syntax(response.python_verification, "python", line_numbers=True),
            title="SymPy / Python",
            subtitle="Generated for verification",
            title_align="left",
            border_style="blue",
        ),
    ]
    if checks:
        parts.append(Text("Machine Checks", style="bold"))
        parts.extend(Text(f"  {check}", style="cyan") for check in checks)
    else:
        parts.append(Text("No specific machine checks provided.", style="dim italic"))
    return Group(*parts)


def render_view(response: MathResponse, view: View, *, raw_json: bool = False) -> RenderableType:
    if view is View.PROOF:
        return render_proof(response)
    if view is View.JSON:
        return render_logic(response, raw_json=raw_json)
    return render_verification(response)


def print_response(
    console: Console,
    response: MathResponse,
    views: Optional[Iterable[View]] = None,
    *,
    raw_json: bool = False,
) -> None:
    """Print the badges, then each requested view (all three by default)."""
    console.print(render_badges(response))
    for view in views or list(View):
        console.rule(view.name)
        console.print(render_view(response, view, raw_json=raw_json))
