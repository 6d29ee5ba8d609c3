"""SQL resource loading.

This module lives in `core/` because it decides *which* SQL the RLS patch
applies without tying that choice to the CLI:
- an explicit file wins,
- then a `fix-conversation-memory-rls.sql` dropped in the data directory,
- otherwise the statements built by `core.services.rls_patch`.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from core.config import get_user_config_dir
from core.services.rls_patch import build_rls_statements, split_sql_statements

logger = logging.getLogger(__name__)

RLS_SQL_FILENAME = "fix-conversation-memory-rls.sql"


def _project_root() -> Path:
    # core/resources_loader.py -> core -> src -> <project_root>
    return Path(__file__).resolve().parents[2]


def _data_dir() -> Path:
    """Runtime data directory.

    Rules:
    - MEMPROBE_DATA_DIR is used as-is when set.
    - Frozen builds (PyInstaller) use a writable per-user path.
    - In development, <project_root>/data.
    """

    override = (os.environ.get("MEMPROBE_DATA_DIR") or "").strip()
    if override:
        return Path(override)

    if getattr(sys, "frozen", False):
        return get_user_config_dir() / "data"

    return _project_root() / "data"


def get_default_sql_path(filename: str = RLS_SQL_FILENAME) -> Path | None:
    """Look for a SQL file in the usual places.

    Order:
    1) <data dir>/<filename>
    2) <user config dir>/data/<filename>
    3) ./<filename> (cwd)
    """

    candidates = [
        _data_dir() / filename,
        get_user_config_dir() / "data" / filename,
        Path.cwd() / filename,
    ]
    for p in candidates:
        if p.exists() and p.is_file():
            return p
    return None


def load_rls_statements(path: Path | None = None) -> tuple[list[str], str]:
    """Return the statements to apply and where they came from."""

    source = path or get_default_sql_path()
    if source is None:
        return build_rls_statements(), "built-in"

    statements = split_sql_statements(source.read_text(encoding="utf-8"))
    logger.info("Loaded %d statements from %s", len(statements), source)
    return statements, str(source)
