# hazardmon/search.py
from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from hazardmon.schema import Event

FRAME_COLUMNS = [
    "id", "occurred_at", "ts", "category", "severity", "title", "location",
    "lat", "lon", "source_name", "external_url", "detail",
    "magnitude", "depth_km", "fatalities", "is_user_submitted",
]


def filter_events(events: Iterable[Event], category: str = "all", search_text: str = "") -> List[Event]:
    """
    Order-preserving selection: category must match exactly ("all" passes
    everything) AND the search text must appear, case-insensitively, in
    the title or the location. Empty search matches everything.
    """
    needle = (search_text or "").strip().lower()
    out: List[Event] = []
    for e in events:
        if category != "all" and e.category != category:
            continue
        if needle and needle not in e.title.lower() and needle not in (e.location or "").lower():
            continue
        out.append(e)
    return out


def with_coordinates(events: Iterable[Event]) -> List[Event]:
    # news / humanitarian items have no coordinates: list-only, never mapped
    return [e for e in events if e.coordinates is not None]


def to_frame(events: Iterable[Event]) -> pd.DataFrame:
    rows = []
    for e in events:
        d = e.model_dump()
        coords = d.pop("coordinates")
        d["lat"], d["lon"] = coords if coords else (None, None)
        rows.append(d)
    if not rows:
        return pd.DataFrame(columns=FRAME_COLUMNS)

    df = pd.DataFrame(rows)
    df["ts"] = pd.to_datetime(df["occurred_at"], unit="ms", utc=True, errors="coerce")
    return df[FRAME_COLUMNS]
