import pytest
from typer.testing import CliRunner

import cli.main as main_module
from core.domain.models import ProbeOutcome, ProbeRun
from core.domain.verdict import Verdict
from core.services.probe_pipeline import PipelineResult

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def _fake_run_probe(verdict: Verdict, seen: list):
    async def _run_probe(*, settings, request, hooks=None, transport=None, sleep=None):
        seen.append((settings, request))
        run = ProbeRun(run_id=request.user_id or "quick-test-1", scenario=request.scenario, base_url=settings.base_url)
        return PipelineResult(outcome=ProbeOutcome(run=run, verdict=verdict))

    return _run_probe


def test_scenarios_lists_every_scenario():
    result = runner.invoke(main_module.app, ["scenarios"])
    assert result.exit_code == 0
    for name in ("quick", "debug", "comprehensive", "storage", "diagnose"):
        assert name in result.output


def test_unknown_scenario_is_a_usage_error():
    result = runner.invoke(main_module.app, ["run", "nope"])
    assert result.exit_code == 2


def test_run_passes_options_and_exits_zero_on_partial(monkeypatch):
    seen = []
    monkeypatch.setattr(main_module, "run_probe", _fake_run_probe(Verdict.PARTIAL, seen))

    result = runner.invoke(
        main_module.app,
        ["run", "debug", "--user-id", "U1", "--token", "Ada", "--delay", "0.5", "--base-url", "http://svc:4000"],
    )

    assert result.exit_code == 0, result.output
    settings, request = seen[0]
    assert settings.base_url == "http://svc:4000"
    assert request.scenario == "debug"
    assert request.user_id == "U1"
    assert request.name_token == "Ada"
    assert request.recall_delay_seconds == 0.5
    assert "PARTIAL SUCCESS" in result.output


def test_strict_run_exits_one_unless_success(monkeypatch):
    monkeypatch.setattr(main_module, "run_probe", _fake_run_probe(Verdict.ABORTED, []))
    assert runner.invoke(main_module.app, ["run", "quick", "--strict"]).exit_code == 1

    monkeypatch.setattr(main_module, "run_probe", _fake_run_probe(Verdict.SUCCESS, []))
    assert runner.invoke(main_module.app, ["run", "quick", "--strict"]).exit_code == 0


def test_run_writes_json_export(monkeypatch, tmp_path):
    monkeypatch.setattr(main_module, "run_probe", _fake_run_probe(Verdict.SUCCESS, []))
    out = tmp_path / "out" / "run.json"
    result = runner.invoke(main_module.app, ["run", "quick", "--json-out", str(out)])
    assert result.exit_code == 0, result.output
    assert out.exists()


def test_bad_base_url_is_rejected():
    result = runner.invoke(main_module.app, ["run", "quick", "--base-url", "localhost:3000"])
    assert result.exit_code == 2


def test_rls_show_prints_sql(tmp_path):
    result = runner.invoke(main_module.app, ["rls", "show"])
    assert result.exit_code == 0
    assert "CREATE POLICY" in result.output
    assert "ENABLE ROW LEVEL SECURITY" in result.output

    out = tmp_path / "patch.sql"
    result = runner.invoke(main_module.app, ["rls", "show", "--out", str(out)])
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").startswith("--")


def test_rls_apply_requires_sql_channel():
    result = runner.invoke(main_module.app, ["rls", "apply"])
    assert result.exit_code == 2


def test_save_writes_both_reports_into_reports_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("MEMPROBE_REPORTS_DIR", str(tmp_path / "reports"))
    monkeypatch.setattr(main_module, "run_probe", _fake_run_probe(Verdict.SUCCESS, []))
    result = runner.invoke(main_module.app, ["run", "quick", "--user-id", "quick-test-7", "--save"])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "reports" / "quick-test-7.json").exists()
    assert (tmp_path / "reports" / "quick-test-7.html").exists()
