# hazardmon/adapters/base.py
from __future__ import annotations

import logging
import math
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, NamedTuple, Optional

from dateutil import parser

from config import BATCH_CAPS, POLL_INTERVALS
from hazardmon.schema import Event

logger = logging.getLogger(__name__)


class RawBatch(NamedTuple):
    records: List[Dict[str, Any]]
    health: str = "live"  # "live" | "degraded"


def now_ms() -> int:
    return int(time.time() * 1000)


def _safe_str(x) -> str:
    return "" if x is None else str(x)


def _norm(s) -> str:
    s = _safe_str(s).strip()
    s = re.sub(r"\s+", " ", s)
    return s


def _to_float(x) -> Optional[float]:
    try:
        v = float(x)
    except (TypeError, ValueError):
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


def _to_int(x, default: int = 0) -> int:
    v = _to_float(x)
    if v is None:
        return default
    return int(v)


def _coords(lat, lon) -> Optional[tuple]:
    la, lo = _to_float(lat), _to_float(lon)
    if la is None or lo is None:
        return None
    if not (-90.0 <= la <= 90.0 and -180.0 <= lo <= 180.0):
        return None
    return (la, lo)


def parse_ts_ms(value, default: int) -> int:
    """Epoch millis from an epoch number or any date string dateutil reads."""
    if value is None or value == "":
        return default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value) if math.isfinite(value) else default
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = parser.parse(str(value))
        except (ValueError, OverflowError):
            return default
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp() * 1000)


def ms_to_datetime(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


class SourceAdapter:
    """
    One per external feed. `fetch()` does I/O and returns the source-native
    records; `adapt()` is a pure transform of those records into Events,
    capped to the first `cap` results in source order.
    """

    source_id: str = ""
    name: str = ""

    def __init__(self, cap: Optional[int] = None, interval: Optional[float] = None):
        self.cap = cap if cap is not None else BATCH_CAPS.get(self.source_id, 50)
        self.interval = interval if interval is not None else POLL_INTERVALS.get(self.source_id, 300)

    def fetch(self) -> RawBatch:
        raise NotImplementedError

    def adapt_one(self, record: Dict[str, Any], index: int, ingested_at: int) -> Optional[Event]:
        raise NotImplementedError

    def adapt(self, raw_batch: List[Dict[str, Any]], ingested_at: Optional[int] = None) -> List[Event]:
        ingested_at = now_ms() if ingested_at is None else ingested_at
        out: List[Event] = []
        for i, record in enumerate(raw_batch or []):
            if len(out) >= self.cap:
                break
            if not isinstance(record, dict):
                continue
            try:
                ev = self.adapt_one(record, i, ingested_at)
            except (AttributeError, TypeError, ValueError) as e:
                # one malformed record never sinks the batch
                logger.debug("[%s] skipped record %d: %s", self.name, i, e)
                continue
            if ev is not None:
                out.append(ev)
        return out

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source_id={self.source_id!r}, cap={self.cap})"
