"""
On-demand export of session summaries.

Pure functions over ``SessionSummary``. JSON exports wrap the summary in an
envelope carrying the export time; ``summary_from_json`` accepts both the
envelope and a bare summary.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime

from prepdeck.engine.models import SessionSummary, utcnow

CSV_COLUMNS = [
    "item_id",
    "prompt",
    "category",
    "difficulty",
    "outcome",
    "submitted",
    "expected",
    "rating",
    "notes",
]


def summary_to_json(summary: SessionSummary, exported_at: datetime | None = None, indent: int = 2) -> str:
    envelope = {
        "exported_at": (exported_at or utcnow()).isoformat(),
        "summary": summary.model_dump(mode="json"),
    }
    return json.dumps(envelope, indent=indent)


def summary_from_json(text: str) -> SessionSummary:
    data = json.loads(text)
    if isinstance(data, dict) and "summary" in data:
        data = data["summary"]
    return SessionSummary.model_validate(data)


def summary_to_csv(summary: SessionSummary) -> str:
    """One header row, then one row per item."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for detail in summary.per_item_detail:
        writer.writerow(
            {
                "item_id": detail.item_id,
                "prompt": detail.prompt,
                "category": detail.category,
                "difficulty": detail.difficulty.value,
                "outcome": detail.outcome.value,
                "submitted": detail.submitted or "",
                "expected": detail.expected or "",
                "rating": "" if detail.rating is None else detail.rating,
                "notes": detail.notes or "",
            }
        )
    return buffer.getvalue()


def export_filename(summary: SessionSummary, fmt: str) -> str:
    return f"{summary.kind.value}-results-{summary.date.date().isoformat()}-{summary.id}.{fmt}"
