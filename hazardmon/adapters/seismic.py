# hazardmon/adapters/seismic.py
from __future__ import annotations

from typing import Any, Dict, Optional

from config import USGS_FEED_URL
from hazardmon.adapters.base import RawBatch, SourceAdapter, _coords, _norm, _to_float, parse_ts_ms
from hazardmon.fetch import get_json
from hazardmon.schema import Event
from hazardmon.scoring import severity_from_magnitude


class SeismicAdapter(SourceAdapter):
    """USGS GeoJSON summary feed, one feature per quake."""

    source_id = "usgs"
    name = "USGS"

    def __init__(self, url: str = USGS_FEED_URL, **kw):
        super().__init__(**kw)
        self.url = url

    def fetch(self) -> RawBatch:
        d = get_json(self.url)
        return RawBatch(list(d.get("features") or []))

    def adapt_one(self, record: Dict[str, Any], index: int, ingested_at: int) -> Optional[Event]:
        props = record.get("properties") or {}
        geom = record.get("geometry") or {}
        xyz = list(geom.get("coordinates") or [])
        xyz += [None] * (3 - len(xyz))
        lng, lat, depth = xyz[0], xyz[1], _to_float(xyz[2])

        mag = _to_float(props.get("mag"))
        place = _norm(props.get("place")) or None
        title = _norm(props.get("title"))
        if not title:
            title = f"M {mag if mag is not None else '?'} - {place or 'Unknown location'}"

        tsunami = "TSUNAMI WARNING ISSUED." if props.get("tsunami") else "No tsunami warning."
        detail = (
            f"Magnitude {mag if mag is not None else 'N/A'} - "
            f"Depth {depth if depth is not None else 'N/A'}km. "
            f"{tsunami} Status: {props.get('status') or 'unknown'}."
        )

        ev_id = record.get("id") or props.get("code") or f"{index}_{props.get('time')}"
        return Event(
            id=f"usgs_{ev_id}",
            title=title,
            category="earthquake",
            severity=severity_from_magnitude(mag),
            location=place,
            coordinates=_coords(lat, lng),
            detail=detail,
            source_name=self.name,
            external_url=props.get("url") or None,
            # no native time sorts last rather than posing as "now"
            occurred_at=parse_ts_ms(props.get("time"), 0),
            magnitude=mag,
            depth_km=depth,
        )
