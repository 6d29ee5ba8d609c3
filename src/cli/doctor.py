"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import build_async_client
from core.config import AppSettings, get_user_env_file, write_user_env_vars

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    # Any HTTP answer means the dev server is up; only transport errors fail.
    try:
        async with build_async_client(settings) as client:
            response = await client.get("/")
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc) or type(exc).__name__


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="memprobe doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Base URL", "OK", settings.base_url)
    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("Service reachable", "OK" if ok_http else "FAIL", detail_http)

    if settings.supabase_configured():
        table.add_row("SQL channel", "OK", f"{settings.supabase_url} (rpc {settings.rpc_function})")
    else:
        table.add_row("SQL channel", "OPTIONAL", "No Supabase URL/key -> `rls apply` disabled")

    delay_status = "OK" if settings.recall_delay_seconds > 0 else "WARN"
    table.add_row("Recall delay", delay_status, f"{settings.recall_delay_seconds:g}s between store and recall")
    table.add_row("User config", "OK", str(get_user_env_file()))

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] start the dev server or point MEMPROBE_BASE_URL at the right port."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env)."""

    current = AppSettings()

    base_url = typer.prompt("Service base URL", default=current.base_url, show_default=True).strip()
    supabase_url = typer.prompt(
        "Supabase URL (blank to skip)",
        default=current.supabase_url or "",
        show_default=bool(current.supabase_url),
    ).strip()
    service_key = ""
    if supabase_url:
        service_key = typer.prompt("Supabase service key", hide_input=True, confirmation_prompt=False).strip()

    if not base_url.startswith(("http://", "https://")):
        raise typer.BadParameter("base URL must start with http:// or https://")

    env_path = write_user_env_vars(
        {
            "MEMPROBE_BASE_URL": base_url,
            "MEMPROBE_SUPABASE_URL": supabase_url or None,
            "MEMPROBE_SUPABASE_SERVICE_KEY": service_key or None,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
