from pathlib import Path

import pytest
from pydantic import ValidationError

from core.config import AppSettings, get_user_env_file, write_user_env_vars


def test_defaults():
    settings = AppSettings(_env_file=None)
    assert settings.base_url == "http://localhost:3000"
    assert settings.recall_delay_seconds == 2.0
    assert settings.name_token == "kunal"
    assert settings.chat_type == "study_assistant"
    assert settings.supabase_configured() is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MEMPROBE_BASE_URL", "http://127.0.0.1:3001")
    monkeypatch.setenv("MEMPROBE_RECALL_DELAY_SECONDS", "0.25")
    monkeypatch.setenv("MEMPROBE_SUPABASE_URL", "https://ref.supabase.co")
    monkeypatch.setenv("MEMPROBE_SUPABASE_SERVICE_KEY", "key")

    settings = AppSettings(_env_file=None)
    assert settings.base_url == "http://127.0.0.1:3001"
    assert settings.recall_delay_seconds == 0.25
    assert settings.supabase_configured() is True


def test_delay_is_bounded(monkeypatch):
    monkeypatch.setenv("MEMPROBE_RECALL_DELAY_SECONDS", "-1")
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None)


def test_write_user_env_vars_merges(monkeypatch, tmp_path):
    monkeypatch.setattr("core.config.sys.platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    path = write_user_env_vars({"MEMPROBE_BASE_URL": "http://a:1", "MEMPROBE_SUPABASE_URL": "https://x"})
    assert path == tmp_path / "memprobe" / ".env"
    assert get_user_env_file() == path

    write_user_env_vars({"MEMPROBE_BASE_URL": "http://b:2", "MEMPROBE_SUPABASE_URL": None})
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("#")
    assert "MEMPROBE_BASE_URL=http://b:2" in lines
    assert "MEMPROBE_SUPABASE_URL=https://x" in lines


def test_project_env_file_overrides_user_env_file(tmp_path):
    user_env = tmp_path / "user.env"
    project_env = tmp_path / "project.env"
    user_env.write_text("MEMPROBE_BASE_URL=http://user:1\nMEMPROBE_NAME_TOKEN=ada\n", encoding="utf-8")
    project_env.write_text("MEMPROBE_BASE_URL=http://project:2\n", encoding="utf-8")

    assert AppSettings.model_config["env_file"][-1] == ".env"

    settings = AppSettings(_env_file=(user_env, project_env))
    assert settings.base_url == "http://project:2"
    assert settings.name_token == "ada"


def test_process_env_beats_env_files(monkeypatch, tmp_path):
    project_env = tmp_path / "project.env"
    project_env.write_text("MEMPROBE_BASE_URL=http://project:2\n", encoding="utf-8")
    monkeypatch.setenv("MEMPROBE_BASE_URL", "http://env:3")
    assert AppSettings(_env_file=(project_env,)).base_url == "http://env:3"
