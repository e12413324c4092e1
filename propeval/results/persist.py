from __future__ import annotations

"""Durable JSON persistence of completed evaluations.

Schema (v1):
{
  "schema": 1,
  "evaluations": [
    {"ts": "2026-01-31 09:15", "property_type_id": ..., "property_info": {...} | null,
     "answers": [...], "result": {...}}
  ],
  "totals": {"<property_type_id>": {"count": int, "best_percentage": float}}
}

Notes:
- New entries are prepended (newest first).
- A file with another schema version is backed up once, then replaced.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .schema import EvaluationSubmission

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def _empty() -> Dict[str, Any]:
    return {"schema": SCHEMA_VERSION, "evaluations": [], "totals": {}}


def _load(p: Path) -> Dict[str, Any]:
    if not p.exists():
        return _empty()
    raw_text = p.read_text(encoding="utf-8")
    try:
        data = json.loads(raw_text)
    except ValueError:
        data = None
    if not isinstance(data, dict) or int(data.get("schema", 0)) != SCHEMA_VERSION:
        backup = p.with_name(f"{p.stem}.backup-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}{p.suffix}")
        backup.write_text(raw_text, encoding="utf-8")
        logger.warning("Unrecognized results file %s backed up to %s", p, backup)
        return _empty()
    data.setdefault("evaluations", [])
    data.setdefault("totals", {})
    return data


def persist_evaluation(path: str | Path, submission: EvaluationSubmission) -> None:
    p = Path(path)
    data = _load(p)
    if submission.completed_at:
        ts = datetime.fromtimestamp(submission.completed_at / 1000, tz=timezone.utc)
    else:
        ts = datetime.now(timezone.utc)
    entry = submission.to_json()
    entry.pop("completed_at", None)
    entry = {"ts": ts.strftime("%Y-%m-%d %H:%M"), **entry}
    data["evaluations"].insert(0, entry)

    key = str(submission.property_type_id)
    totals = data["totals"].setdefault(key, {"count": 0, "best_percentage": 0.0})
    totals["count"] = int(totals.get("count", 0)) + 1
    totals["best_percentage"] = max(float(totals.get("best_percentage", 0.0)), submission.result.percentage)

    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        json.dump(data, f, separators=(",", ":"))


class JsonResultSink:
    """Durable-save collaborator appending to a JSON document."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __call__(self, submission: EvaluationSubmission) -> None:
        persist_evaluation(self.path, submission)
