import json

from adapters.json_exporter import export_outcome_json
from adapters.report_exporter import export_outcome_html, render_outcome_html
from core.domain.models import Check, ProbeOutcome, ProbeRun, ProbeStep
from core.domain.verdict import Verdict


def _outcome() -> ProbeOutcome:
    run = ProbeRun(
        run_id="quick-test-1",
        scenario="quick",
        base_url="http://testserver",
        steps=[
            ProbeStep(
                name="chat-store",
                method="POST",
                path="/api/study-buddy",
                payload={"message": "my name is <kunal>"},
                status_code=200,
                body={"success": True},
                elapsed_ms=8.0,
            )
        ],
    )
    return ProbeOutcome(
        run=run,
        checks=[Check(label='Recall mentions "kunal"', passed=True), Check(label="Memory layer active", passed=False)],
        verdict=Verdict.PARTIAL,
        notes=["Memory layer not active."],
    )


def test_json_export_keeps_raw_bodies(tmp_path):
    path = export_outcome_json(outcome=_outcome(), output_path=tmp_path / "nested" / "run.json")
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["verdict"] == "partial"
    assert data["run"]["run_id"] == "quick-test-1"
    assert data["run"]["steps"][0]["body"] == {"success": True}
    assert data["checks"][1]["passed"] is False


def test_html_report_escapes_and_summarizes(tmp_path):
    html = render_outcome_html(outcome=_outcome())
    assert "<title>memprobe report: quick-test-1</title>" in html
    assert "PARTIAL SUCCESS" in html
    assert "Checks (1 passed, 1 failed)" in html
    assert "&lt;kunal&gt;" in html
    assert "<kunal>" not in html

    path = export_outcome_html(outcome=_outcome(), output_path=tmp_path / "run.html")
    assert path.read_text(encoding="utf-8").startswith("<!")
