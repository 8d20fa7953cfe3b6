# hazardmon/adapters/news.py
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config import GDELT_DOC_URL, GDELT_QUERY
from hazardmon.adapters.base import RawBatch, SourceAdapter, _norm, _to_float
from hazardmon.classify import classify
from hazardmon.fetch import get_json
from hazardmon.schema import Event
from hazardmon.scoring import severity_from_category


def parse_seendatetime(value, default: int) -> int:
    """
    GDELT compact stamps: "20240115120000" or "20240115T120000Z", UTC.
    Anything else falls back to `default`.
    """
    digits = re.sub(r"\D", "", "" if value is None else str(value))
    if len(digits) != 14:
        return default
    try:
        dt = datetime.strptime(digits, "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        return default
    return int(dt.timestamp() * 1000)


class NewsAdapter(SourceAdapter):
    """GDELT DOC 2.0 article list. No per-article geocoding."""

    source_id = "gdelt"
    name = "GDELT"

    def __init__(self, query: str = GDELT_QUERY, timespan: str = "24h", **kw):
        super().__init__(**kw)
        self.query = query
        self.timespan = timespan

    def fetch(self) -> RawBatch:
        params = {
            "query": self.query,
            "mode": "artlist",
            "maxrecords": self.cap,
            "format": "json",
            "timespan": self.timespan,
        }
        d = get_json(GDELT_DOC_URL, params=params)
        return RawBatch(list(d.get("articles") or []))

    def adapt_one(self, record: Dict[str, Any], index: int, ingested_at: int) -> Optional[Event]:
        title = _norm(record.get("title")) or "Global Event"
        category = classify(title)
        domain = _norm(record.get("domain"))
        tone = _to_float(record.get("tone"))
        seen = _norm(record.get("seendatetime") or record.get("seendate"))

        return Event(
            id=f"gdelt_{index}_{seen}",
            title=title,
            category=category,
            severity=severity_from_category(category),
            location=_norm(record.get("sourcecountry")) or "Global",
            coordinates=None,
            detail=(
                f"Source: {domain or 'Unknown'} · Tone score: "
                f"{f'{tone:.1f}' if tone is not None else 'N/A'} (lower = more negative/severe)"
            ),
            source_name=domain or self.name,
            external_url=record.get("url") or None,
            occurred_at=parse_seendatetime(seen, ingested_at),
        )
