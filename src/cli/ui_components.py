"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Tables/panels are reused by `run`, `routes` and `rls`.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import Check, ProbeOutcome, ProbeRun, ProbeStep, RouteResult, SqlStatementResult


def _yes_no(passed: bool | None) -> Text:
    if passed is None:
        return Text("n/a", style="dim")
    return Text("YES", style="green") if passed else Text("NO", style="red")


def format_step_line(step: ProbeStep) -> str:
    status = step.status_code if step.status_code is not None else "-"
    line = f"{step.name}: {step.method} {step.path} -> {status} ({step.elapsed_ms:.0f} ms)"
    if step.error:
        line += f" [{step.error}]"
    return line


def build_steps_table(run: ProbeRun) -> Table:
    table = Table(title=f"Probe run {run.run_id} ({run.scenario})")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Step", style="cyan", no_wrap=True)
    table.add_column("Request", style="white")
    table.add_column("Status", style="white", no_wrap=True)
    table.add_column("ms", style="dim", justify="right")
    table.add_column("Error", style="red")
    for index, step in enumerate(run.steps, start=1):
        table.add_row(
            str(index),
            step.name,
            f"{step.method} {step.path}",
            str(step.status_code) if step.status_code is not None else "-",
            f"{step.elapsed_ms:.0f}",
            step.error or "",
        )
    return table


def build_checks_table(checks: list[Check]) -> Table:
    table = Table(title="Checks")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Result", no_wrap=True)
    table.add_column("Detail", style="dim")
    for check in checks:
        table.add_row(check.label, _yes_no(check.passed), check.detail)
    return table


def build_verdict_panel(outcome: ProbeOutcome) -> Panel:
    verdict = outcome.verdict
    body = Text()
    body.append(f"User ID: {outcome.run.run_id}\n", style="dim")
    if outcome.error:
        body.append(f"Aborted: {outcome.error}\n", style="red")
    for note in outcome.notes:
        body.append(f"{note}\n")
    if not outcome.notes and not outcome.error:
        body.append("No further notes.\n", style="dim")
    return Panel(body, title=Text(verdict.label(), style=f"bold {verdict.style()}"), border_style=verdict.style())


def print_outcome(console: Console, outcome: ProbeOutcome) -> None:
    """Print the full summary; works for aborted and `success: false` runs alike."""

    console.print(build_steps_table(outcome.run))
    if outcome.checks:
        console.print(build_checks_table(outcome.checks))
    console.print(build_verdict_panel(outcome))


_ROUTE_STYLES = {
    "ok": "green",
    "custom-404": "green",
    "missing": "red",
    "no-custom-404": "red",
    "warn": "yellow",
    "error": "red",
}


def build_routes_table(results: list[RouteResult]) -> Table:
    table = Table(title="Route sweep")
    table.add_column("Route", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Result", no_wrap=True)
    table.add_column("Details", style="dim")
    for result in results:
        status = f"{result.status_code} {result.status_text}".strip() if result.status_code else "ERROR"
        details = result.error or (f"title: {result.title}" if result.title else "")
        if result.classification == "missing":
            details = details or "FIX NEEDED"
        table.add_row(
            result.route,
            status,
            Text(result.classification, style=_ROUTE_STYLES.get(result.classification, "white")),
            details,
        )
    return table


def build_sql_table(results: list[SqlStatementResult]) -> Table:
    table = Table(title="SQL statements")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Statement", style="white")
    table.add_column("Result", no_wrap=True)
    table.add_column("Error", style="red")
    for index, result in enumerate(results, start=1):
        stmt = result.statement if len(result.statement) <= 60 else result.statement[:60] + "..."
        table.add_row(str(index), stmt, _yes_no(result.ok), result.error or "")
    return table
