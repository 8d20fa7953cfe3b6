# hazardmon/db.py
from __future__ import annotations

import hashlib
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import duckdb

from config import SUBMISSIONS_DB_PATH
from hazardmon.adapters.user import validate_submission

logger = logging.getLogger(__name__)

ApprovalListener = Callable[[Dict[str, Any]], None]
_approval_listeners: List[ApprovalListener] = []

# Canonical schema order (insert by name, keep this list as truth)
SUBMISSION_COLUMNS: List[str] = [
    "submission_id",
    "author_id",
    "created_at",
    "title",
    "body",
    "location",
    "category",
    "severity",
    "lat",
    "lon",
    "approved",
]


def connect(db_path: Optional[Path] = None) -> duckdb.DuckDBPyConnection:
    con = duckdb.connect(str(db_path or SUBMISSIONS_DB_PATH))
    con.execute(
        """
        CREATE TABLE IF NOT EXISTS submissions (
          submission_id VARCHAR PRIMARY KEY,
          author_id VARCHAR,
          created_at TIMESTAMP,
          title VARCHAR,
          body VARCHAR,
          location VARCHAR,
          category VARCHAR,
          severity VARCHAR,
          lat DOUBLE,
          lon DOUBLE,
          approved BOOLEAN DEFAULT FALSE
        );
        """
    )
    return con


def _hash_id(*parts) -> str:
    h = hashlib.sha256()
    for p in parts:
        h.update(("" if p is None else str(p)).encode("utf-8", errors="ignore"))
        h.update(b"|")
    return h.hexdigest()[:24]


def _rows(con: duckdb.DuckDBPyConnection, q: str, params: list) -> List[Dict[str, Any]]:
    cur = con.execute(q, params)
    cols = [c[0] for c in cur.description]
    return [dict(zip(cols, row)) for row in cur.fetchall()]


def submit(record: Dict[str, Any], author_id: str, db_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Validate and store a user report, unapproved.
    Raises SubmissionRejected (nothing is written) on an empty title.
    """
    clean = validate_submission(record)
    # duckdb timestamp naive ok (UTC)
    created_at = datetime.now(timezone.utc).replace(tzinfo=None)
    row = {
        **clean,
        "submission_id": _hash_id(author_id, clean["title"], created_at.isoformat()),
        "author_id": str(author_id),
        "created_at": created_at,
        "approved": False,
    }

    con = connect(db_path)
    try:
        cols_sql = ", ".join(SUBMISSION_COLUMNS)
        marks = ", ".join("?" for _ in SUBMISSION_COLUMNS)
        con.execute(
            f"INSERT INTO submissions ({cols_sql}) VALUES ({marks})",
            [row[c] for c in SUBMISSION_COLUMNS],
        )
    finally:
        con.close()
    return row


def approve(submission_id: str, db_path: Optional[Path] = None) -> Optional[Dict[str, Any]]:
    """Open the gate for one submission; returns the stored row or None if unknown."""
    con = connect(db_path)
    try:
        con.execute("UPDATE submissions SET approved = TRUE WHERE submission_id = ?", [submission_id])
        rows = _rows(con, "SELECT * FROM submissions WHERE submission_id = ?", [submission_id])
    finally:
        con.close()
    if not rows:
        return None
    _notify_approved(rows[0])
    return rows[0]


def on_approved(listener: ApprovalListener) -> Callable[[], None]:
    """
    Push notification for new approved inserts. Listeners get the stored
    row right after approve() commits; returns an unsubscribe function.
    """
    _approval_listeners.append(listener)

    def unsubscribe() -> None:
        if listener in _approval_listeners:
            _approval_listeners.remove(listener)

    return unsubscribe


def _notify_approved(row: Dict[str, Any]) -> None:
    for listener in list(_approval_listeners):
        try:
            listener(dict(row))
        except Exception:
            logger.exception("[DB] approval listener failed")


def approved_submissions(limit: int = 50, db_path: Optional[Path] = None) -> List[Dict[str, Any]]:
    con = connect(db_path)
    try:
        return _rows(
            con,
            f"SELECT * FROM submissions WHERE approved ORDER BY created_at DESC LIMIT {int(limit)}",
            [],
        )
    finally:
        con.close()


def pending_submissions(db_path: Optional[Path] = None) -> List[Dict[str, Any]]:
    con = connect(db_path)
    try:
        return _rows(
            con,
            "SELECT * FROM submissions WHERE NOT approved ORDER BY created_at DESC",
            [],
        )
    finally:
        con.close()
