"""memprobe command line.

Commands:
- `run`: one Probe Run of a scenario against the chat/memory API.
- `scenarios`: list the available scenarios.
- `routes`: sweep application routes for 404s.
- `rls`: print or apply the RLS patch.
- `doctor`: environment checks and setup.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adapters.json_exporter import export_outcome_json
from adapters.report_exporter import export_outcome_html
from adapters.route_checker import check_routes
from cli import doctor, rls
from cli.logs import configure_logging
from cli.ui_components import build_routes_table, format_step_line, print_outcome
from core.config import AppSettings
from core.domain.models import ProbeStep
from core.domain.verdict import Verdict
from core.services.probe_pipeline import (
    DEFAULT_QUESTION,
    SCENARIOS,
    PipelineHooks,
    ProbeRequest,
    run_probe,
)

app = typer.Typer(no_args_is_help=True, help="Diagnostic probes for a chat assistant's memory API.")
app.add_typer(doctor.app, name="doctor")
app.add_typer(rls.app, name="rls")

_console = Console()


def _settings(base_url: str | None) -> AppSettings:
    settings = AppSettings()
    if base_url:
        if not base_url.startswith(("http://", "https://")):
            raise typer.BadParameter("--base-url must start with http:// or https://")
        settings = settings.model_copy(update={"base_url": base_url})
    return settings


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging (every request)."),
) -> None:
    configure_logging(level=AppSettings().log_level, verbose=verbose)


@app.command(name="run")
def run_command(
    scenario: str = typer.Argument("quick", help="Scenario name (see `memprobe scenarios`)."),
    user_id: Optional[str] = typer.Option(None, "--user-id", "-u", help="Correlation id (default: <prefix>-<millis>)."),
    token: Optional[str] = typer.Option(None, "--token", "-t", help="Token stored and expected on recall."),
    statement: Optional[str] = typer.Option(None, "--statement", help='Store message (default: "my name is <token>").'),
    question: str = typer.Option(DEFAULT_QUESTION, "--question", "-q", help="Recall message."),
    delay: Optional[float] = typer.Option(None, "--delay", min=0.0, help="Seconds to wait before recall."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override MEMPROBE_BASE_URL."),
    json_out: Optional[Path] = typer.Option(None, "--json-out", help="Write the outcome as JSON."),
    html_out: Optional[Path] = typer.Option(None, "--html-out", help="Write an HTML report."),
    save: bool = typer.Option(False, "--save", help="Write JSON and HTML into the reports directory."),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 unless the verdict is success."),
) -> None:
    """Run one probe scenario and print the summary."""

    if scenario.strip().lower() not in SCENARIOS:
        raise typer.BadParameter(f"unknown scenario {scenario!r}; expected one of: {', '.join(sorted(SCENARIOS))}")

    settings = _settings(base_url)
    request = ProbeRequest(
        scenario=scenario,
        user_id=user_id,
        name_token=token,
        statement=statement,
        question=question,
        recall_delay_seconds=delay,
    )

    def _on_step(step: ProbeStep) -> None:
        _console.print(f"  {format_step_line(step)}", style="red" if step.error else "dim")

    def _on_wait(seconds: float) -> None:
        _console.print(f"  waiting {seconds:g}s for the service to persist...", style="dim")

    def _on_warning(message: str) -> None:
        _console.print(f"[yellow]Warning:[/yellow] {message}")

    _console.print(f"[bold cyan]{scenario}[/bold cyan] probe against {settings.base_url}")
    result = asyncio.run(
        run_probe(
            settings=settings,
            request=request,
            hooks=PipelineHooks(step=_on_step, waiting=_on_wait, warning=_on_warning),
        )
    )
    outcome = result.outcome
    print_outcome(_console, outcome)

    if json_out is not None:
        path = export_outcome_json(outcome=outcome, output_path=json_out)
        _console.print(f"[green]JSON saved:[/green] {path}")
    if html_out is not None:
        path = export_outcome_html(outcome=outcome, output_path=html_out)
        _console.print(f"[green]HTML saved:[/green] {path}")
    if save:
        run_id = outcome.run.run_id
        json_path = export_outcome_json(outcome=outcome, output_path=settings.reports_dir / f"{run_id}.json")
        html_path = export_outcome_html(outcome=outcome, output_path=settings.reports_dir / f"{run_id}.html")
        _console.print(f"[green]Reports saved:[/green] {json_path}, {html_path}")

    if strict and outcome.verdict is not Verdict.SUCCESS:
        raise typer.Exit(code=1)


@app.command()
def scenarios() -> None:
    """List the available scenarios."""

    table = Table(title="Scenarios")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Steps", style="white")
    table.add_column("User ID prefix", style="dim")
    for name in sorted(SCENARIOS):
        item = SCENARIOS[name]
        table.add_row(item.name, item.description, item.id_prefix)
    _console.print(table)


@app.command()
def routes(
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Override MEMPROBE_BASE_URL."),
    route: Optional[list[str]] = typer.Option(None, "--route", "-r", help="Route to check (repeatable)."),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 on any 404 or error."),
) -> None:
    """Sweep application routes and check custom 404 handling."""

    settings = _settings(base_url)
    if route:
        results = asyncio.run(check_routes(settings=settings, routes=route))
    else:
        results = asyncio.run(check_routes(settings=settings))
    _console.print(build_routes_table(results))

    failing = [r for r in results if r.classification in {"missing", "no-custom-404", "error"}]
    if failing:
        _console.print(f"[red]{len(failing)} route(s) need attention.[/red]")
    else:
        _console.print("[green]All routes behave as expected.[/green]")
    if strict and failing:
        raise typer.Exit(code=1)


def run() -> None:
    app()
