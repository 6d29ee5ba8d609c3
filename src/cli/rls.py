"""RLS patch commands: print the SQL or apply it through the RPC channel."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.supabase_rpc import SupabaseSqlExecutor
from cli.ui_components import build_sql_table
from core.config import AppSettings
from core.resources_loader import load_rls_statements
from core.services.rls_patch import build_rls_statements, render_sql

app = typer.Typer(no_args_is_help=True, help="Row-level-security patch for the memory tables.")

_console = Console()

_HEADER = (
    "Fix RLS policies for the conversation memory tables so the chat API\n"
    "can store memories server-side. Apply once via an administrative channel."
)


@app.command()
def show(
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Write the SQL to a file instead of stdout."),
) -> None:
    """Print the built-in RLS patch as SQL."""

    sql = render_sql(build_rls_statements(), header=_HEADER)
    if out is None:
        typer.echo(sql, nl=False)
        return
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(sql, encoding="utf-8")
    _console.print(f"[green]SQL written to:[/green] {out}")


@app.command()
def apply(
    file: Optional[Path] = typer.Option(
        None,
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        readable=True,
        help="SQL file to apply (default: data dir file, else the built-in patch).",
    ),
    strict: bool = typer.Option(False, "--strict", help="Exit with code 1 if any statement fails."),
) -> None:
    """Execute the patch statement by statement over the RPC endpoint."""

    settings = AppSettings()
    if not settings.supabase_configured():
        raise typer.BadParameter(
            "Set MEMPROBE_SUPABASE_URL and MEMPROBE_SUPABASE_SERVICE_KEY (or run `memprobe doctor setup`)."
        )

    statements, source = load_rls_statements(file)
    if not statements:
        raise typer.BadParameter(f"No SQL statements found in {source}")

    _console.print(f"Applying {len(statements)} statements from [cyan]{source}[/cyan]")
    results = asyncio.run(SupabaseSqlExecutor(settings).execute(statements))
    _console.print(build_sql_table(results))

    ok = sum(1 for r in results if r.ok)
    style = "green" if ok == len(results) else "yellow"
    _console.print(f"[{style}]Results: {ok}/{len(results)} successful[/{style}]")
    if strict and ok != len(results):
        raise typer.Exit(code=1)
