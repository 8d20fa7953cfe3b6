# hazardmon/adapters/humanitarian.py
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from config import RELIEFWEB_API_URL, RELIEFWEB_APPNAME
from hazardmon.adapters.base import RawBatch, SourceAdapter, _norm, parse_ts_ms
from hazardmon.classify import classify
from hazardmon.fetch import get_json
from hazardmon.schema import Event

RELIEFWEB_SITE = "https://reliefweb.int"
EXCERPT_CHARS = 300


def _excerpt(body) -> str:
    text = re.sub(r"<[^>]+>", " ", "" if body is None else str(body))
    text = _norm(text)
    if len(text) > EXCERPT_CHARS:
        text = text[:EXCERPT_CHARS].rsplit(" ", 1)[0] + "..."
    return text


def _country_names(countries) -> List[str]:
    if isinstance(countries, (str, dict)):
        countries = [countries]
    out = []
    for c in countries or []:
        name = _norm(c.get("name") if isinstance(c, dict) else c)
        if name:
            out.append(name)
    return out


class HumanitarianAdapter(SourceAdapter):
    """ReliefWeb reports list, paged with offset/limit."""

    source_id = "reliefweb"
    name = "ReliefWeb"
    page_size = 10

    def __init__(self, appname: str = RELIEFWEB_APPNAME, **kw):
        super().__init__(**kw)
        self.appname = appname

    def fetch(self) -> RawBatch:
        items: List[Dict[str, Any]] = []
        offset = 0
        while len(items) < self.cap:
            limit = min(self.page_size, self.cap - len(items))
            params = {
                "appname": self.appname,
                "preset": "latest",
                "profile": "list",
                "offset": offset,
                "limit": limit,
                "fields[include][]": ["title", "country.name", "body", "url_alias", "date.created"],
            }
            page = list(get_json(RELIEFWEB_API_URL, params=params).get("data") or [])
            items.extend(page)
            if len(page) < limit:
                break
            offset += len(page)
        return RawBatch(items)

    def adapt_one(self, record: Dict[str, Any], index: int, ingested_at: int) -> Optional[Event]:
        fields = record.get("fields") or {}
        title = _norm(fields.get("title"))
        if not title:
            return None
        countries = _country_names(fields.get("country"))

        url = _norm(fields.get("url_alias") or fields.get("url"))
        if url.startswith("/"):
            url = RELIEFWEB_SITE + url

        date = fields.get("date")
        created = date.get("created") if isinstance(date, dict) else date
        ev_id = record.get("id") or fields.get("id") or index
        return Event(
            id=f"reliefweb_{ev_id}",
            title=title,
            category=classify(title),
            severity="medium",
            location=", ".join(countries) or None,
            coordinates=None,
            detail=_excerpt(fields.get("body")),
            source_name=self.name,
            external_url=url or None,
            occurred_at=parse_ts_ms(created, ingested_at),
        )
