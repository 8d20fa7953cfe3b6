# hazardmon/ingest.py
from __future__ import annotations

import logging
import queue
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from hazardmon import db
from hazardmon.adapters.base import RawBatch, SourceAdapter
from hazardmon.adapters.conflict import ConflictAdapter
from hazardmon.adapters.humanitarian import HumanitarianAdapter
from hazardmon.adapters.news import NewsAdapter
from hazardmon.adapters.seismic import SeismicAdapter
from hazardmon.adapters.user import UserSubmissionAdapter
from hazardmon.merge import MergedFeed, MergeEngine

logger = logging.getLogger(__name__)


def default_adapters() -> List[SourceAdapter]:
    # merge concatenation order; ties in time keep this order
    return [
        SeismicAdapter(),
        ConflictAdapter(),
        NewsAdapter(),
        HumanitarianAdapter(),
        UserSubmissionAdapter(),
    ]


def build_engine(adapters: List[SourceAdapter]) -> MergeEngine:
    return MergeEngine(a.source_id for a in adapters)


def apply_batch(engine: MergeEngine, adapter: SourceAdapter, batch: RawBatch) -> MergedFeed:
    events = adapter.adapt(batch.records)
    engine.replace(adapter.source_id, events)
    engine.set_health(adapter.source_id, batch.health)
    logger.info("[%s] %d records -> %d events (%s)", adapter.name, len(batch.records), len(events), batch.health)
    return engine.snapshot()


def mark_failed(engine: MergeEngine, adapter: SourceAdapter, exc: BaseException) -> MergedFeed:
    logger.warning("[%s] fetch failed: %s", adapter.name, exc)
    engine.clear(adapter.source_id)
    engine.set_health(adapter.source_id, "error")
    return engine.snapshot()


def refresh_source(engine: MergeEngine, adapter: SourceAdapter) -> bool:
    try:
        batch = adapter.fetch()
        apply_batch(engine, adapter, batch)
    except Exception as e:  # one bad source only empties itself
        mark_failed(engine, adapter, e)
        return False
    return True


def refresh_due(
    engine: MergeEngine,
    adapters: List[SourceAdapter],
    last_polled: Dict[str, float],
    now: Optional[float] = None,
) -> List[str]:
    """
    Refresh only the sources whose interval has elapsed since `last_polled`
    (seconds, updated in place). Returns the refreshed source ids.
    """
    now = time.time() if now is None else now
    done = []
    for adapter in adapters:
        last = last_polled.get(adapter.source_id)
        if last is not None and now - last < adapter.interval:
            continue
        refresh_source(engine, adapter)
        last_polled[adapter.source_id] = now
        done.append(adapter.source_id)
    return done


def ingest_all(
    adapters: Optional[List[SourceAdapter]] = None,
    engine: Optional[MergeEngine] = None,
) -> MergedFeed:
    """One synchronous fetch/adapt/merge cycle over every source."""
    adapters = default_adapters() if adapters is None else adapters
    engine = engine or build_engine(adapters)
    for adapter in adapters:
        refresh_source(engine, adapter)
    return engine.snapshot()


def drain_inbox(engine: MergeEngine, live_adapter: SourceAdapter, inbox: "queue.Queue[Dict[str, Any]]") -> int:
    """Append every queued live record to the head of its source set."""
    n = 0
    while True:
        try:
            record = inbox.get_nowait()
        except queue.Empty:
            return n
        for ev in live_adapter.adapt([record]):
            engine.append(live_adapter.source_id, ev)
            n += 1


class ShellFeed:
    """
    Feed state shared by every session of the synchronous shell.
    Polling and live appends happen under one lock so two sessions never
    refresh the same source at once.
    """

    def __init__(
        self,
        adapters: Optional[List[SourceAdapter]] = None,
        live_adapter: Optional[SourceAdapter] = None,
    ):
        self.adapters = default_adapters() if adapters is None else list(adapters)
        self.engine = build_engine(self.adapters)
        self.live_adapter = live_adapter or UserSubmissionAdapter()
        self.engine.register(self.live_adapter.source_id)
        self.last_polled: Dict[str, float] = {}
        self.inbox: "queue.Queue[Dict[str, Any]]" = queue.Queue()
        self.lock = threading.Lock()

    def listen_for_approvals(self) -> Callable[[], None]:
        return db.on_approved(self.inbox.put)

    def refresh(self, now: Optional[float] = None, force: bool = False) -> MergedFeed:
        with self.lock:
            if force:
                self.last_polled.clear()
            refresh_due(self.engine, self.adapters, self.last_polled, now=now)
            drain_inbox(self.engine, self.live_adapter, self.inbox)
            return self.engine.snapshot()


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    feed = ingest_all()
    c = feed.counts
    print(f"[INGEST] events={c.total} critical={c.critical} conflicts={c.conflict}")
    print(f"[INGEST] health={feed.health}")
    if feed.critical_alert:
        print(f"[INGEST] BREAKING: {feed.critical_alert.title}")
    for e in feed.ordered[:15]:
        print(f"  {e.severity:<8} {e.category:<11} {e.source_name:<12} {e.title}")


if __name__ == "__main__":
    main()
