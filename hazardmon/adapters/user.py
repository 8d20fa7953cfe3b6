# hazardmon/adapters/user.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from hazardmon.adapters.base import RawBatch, SourceAdapter, _coords, _norm, parse_ts_ms
from hazardmon.schema import CATEGORIES, SEVERITIES, Event


class SubmissionRejected(ValueError):
    pass


def validate_submission(record: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shape check for a user-authored report. A non-empty title is the only
    hard requirement; unknown category/severity fall back to
    "user_report"/"medium". Returns the cleaned record.
    """
    if not isinstance(record, dict):
        raise SubmissionRejected("submission must be a mapping")
    title = _norm(record.get("title"))
    if not title:
        raise SubmissionRejected("title is required")

    category = _norm(record.get("category")).lower()
    severity = _norm(record.get("severity")).lower()
    return {
        "title": title,
        "body": _norm(record.get("body")),
        "location": _norm(record.get("location")) or None,
        "category": category if category in CATEGORIES else "user_report",
        "severity": severity if severity in SEVERITIES else "medium",
        "lat": record.get("lat"),
        "lon": record.get("lon"),
    }


class UserSubmissionAdapter(SourceAdapter):
    """Approved crowd-sourced reports from the submission store."""

    source_id = "submissions"
    name = "User Report"

    def __init__(self, db_path: Optional[Path] = None, **kw):
        super().__init__(**kw)
        self.db_path = db_path

    def fetch(self) -> RawBatch:
        from hazardmon import db

        return RawBatch(db.approved_submissions(limit=self.cap, db_path=self.db_path))

    def adapt_one(self, record: Dict[str, Any], index: int, ingested_at: int) -> Optional[Event]:
        try:
            clean = validate_submission(record)
        except SubmissionRejected:
            return None
        lat = clean["lat"] if clean["lat"] is not None else record.get("latitude")
        lon = clean["lon"] if clean["lon"] is not None else record.get("longitude")

        return Event(
            id=f"user_{record.get('submission_id') or record.get('id') or index}",
            title=clean["title"],
            category=clean["category"],
            severity=clean["severity"],
            location=clean["location"],
            coordinates=_coords(lat, lon),
            detail=clean["body"],
            source_name=self.name,
            occurred_at=parse_ts_ms(record.get("created_at"), ingested_at),
            is_user_submitted=True,
        )
