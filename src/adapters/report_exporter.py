"""HTML report export.

Why it lives in adapters:
- HTML rendering (Jinja2) is an infrastructure detail.
- The core only knows the `ProbeOutcome` aggregate.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from core.domain.models import ProbeOutcome


_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _get_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml"]),
    )
    env.filters["pretty_json"] = lambda value: json.dumps(value, ensure_ascii=False, indent=2, sort_keys=True)
    return env


def render_outcome_html(*, outcome: ProbeOutcome) -> str:
    """Render a self-contained HTML page for one run."""

    generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
    checks_passed = sum(1 for c in outcome.checks if c.passed)
    checks_failed = sum(1 for c in outcome.checks if c.passed is False)

    template = _get_env().get_template("report.html")
    return template.render(
        outcome=outcome,
        run=outcome.run,
        generated_at=generated_at,
        report_id=f"{outcome.run.run_id}:{generated_at}",
        checks_passed=checks_passed,
        checks_failed=checks_failed,
    )


def export_outcome_html(*, outcome: ProbeOutcome, output_path: Path) -> Path:
    """Export the outcome as HTML.

    Handy for attaching a run to a bug report: steps, raw bodies, checks and
    the verdict in one file.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)
    html = render_outcome_html(outcome=outcome)
    output_path.write_text(html, encoding="utf-8")
    return output_path
