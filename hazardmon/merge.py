# hazardmon/merge.py
from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from config import LIVE_EVENT_CAP
from hazardmon.schema import Counts, Event

logger = logging.getLogger(__name__)


class MergedFeed(BaseModel):
    ordered: List[Event] = Field(default_factory=list)
    critical_alert: Optional[Event] = None
    counts: Counts = Field(default_factory=Counts)
    health: Dict[str, str] = Field(default_factory=dict)


def sort_events(events: Iterable[Event]) -> List[Event]:
    # sorted() is stable: ties keep arrival order
    return sorted(events, key=lambda e: e.occurred_at or 0, reverse=True)


def first_critical(ordered: Iterable[Event]) -> Optional[Event]:
    for e in ordered:
        if e.severity == "critical":
            return e
    return None


def count_events(ordered: List[Event]) -> Counts:
    return Counts(
        total=len(ordered),
        critical=sum(1 for e in ordered if e.severity == "critical"),
        conflict=sum(1 for e in ordered if e.category in ("conflict", "violence")),
        by_category=dict(Counter(e.category for e in ordered)),
        by_source=dict(Counter(e.source_name for e in ordered)),
    )


def merge(per_source: Mapping[str, List[Event]]) -> MergedFeed:
    """
    Concatenate every source's current set (mapping order), stable-sort
    newest first and derive the critical alert + counts.
    """
    combined: List[Event] = []
    for events in per_source.values():
        combined.extend(events)
    ordered = sort_events(combined)
    return MergedFeed(ordered=ordered, critical_alert=first_critical(ordered), counts=count_events(ordered))


class MergeEngine:
    """
    Owns the current event set of every source plus its health.
    Updates are whole-set replaces (polled sources) or single prepends
    (live pushes); the merged feed is re-derived after each one.
    Events themselves are never modified.
    """

    def __init__(self, source_ids: Iterable[str] = (), live_cap: int = LIVE_EVENT_CAP):
        self.live_cap = live_cap
        self._sets: Dict[str, List[Event]] = {}
        self._health: Dict[str, str] = {}
        for sid in source_ids:
            self.register(sid)
        self._feed = MergedFeed()
        self._recompute()

    def register(self, source_id: str) -> None:
        if source_id not in self._sets:
            self._sets[source_id] = []
            self._health[source_id] = "connecting"

    @property
    def sources(self) -> List[str]:
        return list(self._sets)

    def events_for(self, source_id: str) -> List[Event]:
        return list(self._sets.get(source_id, []))

    def replace(self, source_id: str, events: List[Event]) -> MergedFeed:
        self.register(source_id)
        self._sets[source_id] = list(events)
        return self._recompute()

    def append(self, source_id: str, event: Event) -> MergedFeed:
        """Live push: new event goes to the head of that source's set."""
        self.register(source_id)
        held = [event] + [e for e in self._sets[source_id] if e.id != event.id]
        if len(held) > self.live_cap:
            logger.debug("[MERGE] %s over cap, dropping %d oldest", source_id, len(held) - self.live_cap)
            held = held[: self.live_cap]
        self._sets[source_id] = held
        return self._recompute()

    def clear(self, source_id: str) -> MergedFeed:
        return self.replace(source_id, [])

    def set_health(self, source_id: str, status: str) -> None:
        self.register(source_id)
        if self._health.get(source_id) != status:
            logger.info("[MERGE] %s -> %s", source_id, status)
        self._health[source_id] = status
        self._feed = self._feed.model_copy(update={"health": dict(self._health)})

    def health(self) -> Dict[str, str]:
        return dict(self._health)

    def snapshot(self) -> MergedFeed:
        return self._feed

    def _recompute(self) -> MergedFeed:
        feed = merge(self._sets)
        feed.health = dict(self._health)
        self._feed = feed
        return feed
