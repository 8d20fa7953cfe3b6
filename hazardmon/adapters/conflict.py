# hazardmon/adapters/conflict.py
from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from config import ACLED_API_URL, ACLED_EMAIL, ACLED_KEY, ACLED_LOOKBACK_DAYS, CONFLICT_FALLBACK_PATH
from hazardmon.adapters.base import RawBatch, SourceAdapter, _coords, _norm, _to_int, parse_ts_ms
from hazardmon.fetch import get_json, load_json
from hazardmon.schema import Event
from hazardmon.scoring import severity_from_fatalities

logger = logging.getLogger(__name__)

ACLED_FIELDS = [
    "event_id_cnty", "event_date", "event_type", "sub_event_type", "country",
    "location", "latitude", "longitude", "fatalities", "notes", "actor1", "actor2",
]

# ACLED event_type (lower-cased) -> category
EVENT_TYPE_CATEGORY = {
    "battles": "conflict",
    "battle": "conflict",
    "explosions/remote violence": "conflict",
    "strategic developments": "conflict",
    "violence against civilians": "violence",
    "protests": "political",
    "protest": "political",
    "riots": "political",
    "riot": "political",
}

DASHBOARD_URL = "https://acleddata.com/dashboard/#/dashboard"


def category_for_event_type(event_type) -> str:
    return EVENT_TYPE_CATEGORY.get(_norm(event_type).lower(), "conflict")


def compose_title(record: Dict[str, Any]) -> str:
    event_type = _norm(record.get("event_type")) or "Conflict event"
    actors = _norm(record.get("actor1")) or "Unknown actor"
    actor2 = _norm(record.get("actor2"))
    if actor2:
        actors = f"{actors} vs {actor2}"
    place = ", ".join(p for p in (_norm(record.get("location")), _norm(record.get("country"))) if p)
    return f"{event_type}: {actors} - {place}" if place else f"{event_type}: {actors}"


class ConflictAdapter(SourceAdapter):
    """
    ACLED conflict log. Keyed API when ACLED_KEY/ACLED_EMAIL are set,
    otherwise (or when the API fails) the bundled fallback dataset,
    reported as "degraded".
    """

    source_id = "acled"
    name = "ACLED"

    def __init__(
        self,
        key: str = ACLED_KEY,
        email: str = ACLED_EMAIL,
        fallback_path: Path = CONFLICT_FALLBACK_PATH,
        **kw,
    ):
        super().__init__(**kw)
        self.key = key
        self.email = email
        self.fallback_path = Path(fallback_path)

    def _query_params(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        start = today - timedelta(days=ACLED_LOOKBACK_DAYS)
        return {
            "key": self.key,
            "email": self.email,
            "limit": self.cap,
            "fields": "|".join(ACLED_FIELDS),
            "event_date": f"{start.isoformat()}|{today.isoformat()}",
            "event_date_where": "BETWEEN",
        }

    def load_fallback(self) -> RawBatch:
        data = load_json(self.fallback_path, [])
        if isinstance(data, dict):
            data = data.get("data") or []
        return RawBatch(list(data), health="degraded")

    def fetch(self) -> RawBatch:
        if self.key and self.email:
            try:
                d = get_json(ACLED_API_URL, params=self._query_params())
                return RawBatch(list(d.get("data") or []))
            except (requests.RequestException, ValueError) as e:
                logger.warning("[ACLED] API error, using fallback: %s", e)
        return self.load_fallback()

    def adapt_one(self, record: Dict[str, Any], index: int, ingested_at: int) -> Optional[Event]:
        title = _norm(record.get("title") or record.get("headline")) or compose_title(record)
        fatalities = max(0, _to_int(record.get("fatalities"), 0))
        location = ", ".join(p for p in (_norm(record.get("location")), _norm(record.get("country"))) if p)
        notes = _norm(record.get("notes")) or "No details."
        sub_type = _norm(record.get("sub_event_type")) or "n/a"

        ev_id = _norm(record.get("event_id_cnty")) or f"{index}_{_norm(record.get('event_date'))}"
        return Event(
            id=f"acled_{ev_id}",
            title=title,
            category=category_for_event_type(record.get("event_type")),
            severity=severity_from_fatalities(fatalities),
            location=location or None,
            coordinates=_coords(record.get("latitude"), record.get("longitude")),
            detail=f"{notes} Fatalities: {fatalities}. Sub-type: {sub_type}.",
            source_name=self.name,
            external_url=DASHBOARD_URL,
            occurred_at=parse_ts_ms(record.get("event_date"), ingested_at),
            fatalities=fatalities,
        )
