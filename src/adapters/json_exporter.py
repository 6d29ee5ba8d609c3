"""JSON export of a probe outcome.

Why JSON:
- The console summary is for humans; the export is what a CI job or a later
  comparison reads.
- Keeps every raw response body, so a run can be inspected after the fact.
"""

from __future__ import annotations

import json
from pathlib import Path

from core.domain.models import ProbeOutcome


def export_outcome_json(*, outcome: ProbeOutcome, output_path: Path) -> Path:
    """Export `ProbeOutcome` as UTF-8 JSON with a stable layout."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = outcome.model_dump(mode="json")
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
