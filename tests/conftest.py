"""
Shared builders for the hazardmon tests. Nothing here touches the network.
"""
import pytest

from hazardmon.adapters.base import RawBatch, SourceAdapter
from hazardmon.schema import Event


def build_event(id, t=0, severity="medium", category="info", source="test", **kw):
    return Event(
        id=id,
        title=kw.pop("title", f"event {id}"),
        category=category,
        severity=severity,
        source_name=source,
        occurred_at=t,
        **kw,
    )


class StubAdapter(SourceAdapter):
    """Serves canned records (or raises) instead of hitting a feed."""

    def __init__(self, source_id, records=None, error=None, health="live", **kw):
        self.source_id = source_id
        self.name = source_id.upper()
        super().__init__(**kw)
        self.records = records or []
        self.error = error
        self.health = health
        self.fetch_calls = 0

    def fetch(self):
        self.fetch_calls += 1
        if self.error:
            raise self.error
        return RawBatch(list(self.records), health=self.health)

    def adapt_one(self, record, index, ingested_at):
        return Event(
            id=f"{self.source_id}_{record['id']}",
            title=record.get("title", "stub"),
            severity=record.get("severity", "medium"),
            source_name=self.name,
            occurred_at=record.get("t", ingested_at),
        )


@pytest.fixture
def make_event():
    return build_event


@pytest.fixture
def stub_adapter():
    return StubAdapter
