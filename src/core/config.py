"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) away from the CLI.
- Lets adapters (HTTP driver, Supabase RPC, exporters) read config the same way.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "memprobe"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "memprobe"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "memprobe"
    return Path.home() / ".config" / "memprobe"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Write/update variables in the user's global .env.

    Keys with a `None` value are left untouched.
    """

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# memprobe user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application settings.

    Why pydantic-settings:
    - Typed + validated at the edge (env vars) without leaking logic into core.
    - A single configuration contract for the CLI and the adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="MEMPROBE_",
        extra="ignore",
        case_sensitive=False,
        # Later files win: the user's global config, then the project .env (dev) on top.
        env_file=(str(get_user_env_file()), ".env"),
        env_file_encoding="utf-8",
    )

    base_url: str = Field(
        default="http://localhost:3000",
        min_length=8,
        description="Base URL of the chat service under test.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout (seconds).",
    )
    user_agent: str = Field(
        default="memprobe/0.1",
        min_length=1,
        description="User-Agent sent with every probe request.",
    )

    recall_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        le=60,
        description="Fixed wait between the store and recall steps.",
    )
    name_token: str = Field(
        default="kunal",
        min_length=1,
        description="Token stored in the first message and looked for on recall.",
    )
    chat_type: str = Field(
        default="study_assistant",
        min_length=1,
        description="chatType sent to the study-buddy endpoint.",
    )
    memory_layer: int = Field(
        default=3,
        ge=0,
        description="Layer id reported in layersUsed when memory context was used.",
    )

    # Administrative SQL channel (Supabase RPC)
    supabase_url: str | None = Field(
        default=None,
        description="Hosted database URL, e.g. https://<ref>.supabase.co.",
    )
    supabase_service_key: str | None = Field(
        default=None,
        description="Service-role key used for the SQL RPC.",
    )
    rpc_function: str = Field(
        default="exec_sql",
        min_length=1,
        description="Name of the RPC function that executes raw SQL.",
    )

    reports_dir: Path = Field(
        default=Path("reports"),
        description="Default directory for exported JSON/HTML reports.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Root log level when --verbose is not given.",
    )

    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)
