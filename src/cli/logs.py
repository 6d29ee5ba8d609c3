"""Logging setup for the CLI.

Library modules only call `logging.getLogger(__name__)`; the handler is
installed once here so log records and rich console output share a terminal.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(*, level: str | int = "WARNING", verbose: bool = False, console: Console | None = None) -> None:
    effective = logging.DEBUG if verbose else level
    if isinstance(effective, str):
        effective = logging.getLevelName(effective.upper())
        if not isinstance(effective, int):
            effective = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    logging.basicConfig(
        level=effective,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # httpx logs every request at INFO; only show it when asked for.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
