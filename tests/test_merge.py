import pytest
from pydantic import ValidationError

from hazardmon.merge import MergeEngine, merge, sort_events


def test_merge_sorts_newest_first(make_event):
    feed = merge({
        "a": [make_event("a1", t=10), make_event("a2", t=30)],
        "b": [make_event("b1", t=20)],
    })
    assert [e.id for e in feed.ordered] == ["a2", "b1", "a1"]


def test_ties_keep_arrival_order(make_event):
    feed = merge({
        "a": [make_event("a1", t=5), make_event("a2", t=5)],
        "b": [make_event("b1", t=5)],
    })
    assert [e.id for e in feed.ordered] == ["a1", "a2", "b1"]


def test_missing_timestamp_sorts_last(make_event):
    feed = merge({"a": [make_event("none", t=0), make_event("old", t=1)]})
    assert [e.id for e in feed.ordered] == ["old", "none"]


def test_resort_is_idempotent(make_event):
    feed = merge({
        "a": [make_event("a1", t=5), make_event("a2", t=9), make_event("a3", t=5)],
        "b": [make_event("b1", t=9), make_event("b2", t=0)],
    })
    assert sort_events(feed.ordered) == feed.ordered


def test_critical_alert_is_first_critical_in_order(make_event):
    feed = merge({
        "a": [make_event("old_crit", t=1, severity="critical"), make_event("new_high", t=50, severity="high")],
        "b": [make_event("new_crit", t=40, severity="critical")],
    })
    assert feed.critical_alert.id == "new_crit"


def test_no_critical_no_alert(make_event):
    feed = merge({"a": [make_event("x", t=1, severity="high")]})
    assert feed.critical_alert is None
    assert merge({}).critical_alert is None


def test_counts(make_event):
    feed = merge({
        "a": [
            make_event("1", severity="critical", category="conflict", source="ACLED"),
            make_event("2", category="violence", source="ACLED"),
            make_event("3", category="earthquake", source="USGS"),
        ],
    })
    c = feed.counts
    assert c.total == 3
    assert c.critical == 1
    assert c.conflict == 2
    assert c.by_category == {"conflict": 1, "violence": 1, "earthquake": 1}
    assert c.by_source == {"ACLED": 2, "USGS": 1}


def test_events_are_immutable(make_event):
    ev = make_event("x")
    with pytest.raises(ValidationError):
        ev.title = "changed"


def test_engine_replace_discards_previous_batch(make_event):
    engine = MergeEngine(["usgs", "gdelt"])
    engine.replace("usgs", [make_event("q1", t=1), make_event("q2", t=2)])
    engine.replace("gdelt", [make_event("n1", t=3)])
    feed = engine.replace("usgs", [make_event("q3", t=4)])
    assert [e.id for e in feed.ordered] == ["q3", "n1"]
    assert engine.snapshot() is feed


def test_engine_append_prepends_and_rederives(make_event):
    engine = MergeEngine(["usgs", "submissions"])
    engine.replace("usgs", [make_event("q1", t=100)])
    engine.replace("submissions", [make_event("u_old", t=50)])
    feed = engine.append("submissions", make_event("u_new", t=200, severity="critical"))
    assert [e.id for e in engine.events_for("submissions")] == ["u_new", "u_old"]
    assert [e.id for e in feed.ordered] == ["u_new", "q1", "u_old"]
    assert feed.critical_alert.id == "u_new"
    assert [e.id for e in engine.events_for("usgs")] == ["q1"]


def test_engine_append_caps_held_list(make_event):
    engine = MergeEngine(["live"], live_cap=3)
    for i in range(5):
        engine.append("live", make_event(f"e{i}", t=i))
    assert [e.id for e in engine.events_for("live")] == ["e4", "e3", "e2"]


def test_engine_health(make_event):
    engine = MergeEngine(["usgs", "acled"])
    assert engine.health() == {"usgs": "connecting", "acled": "connecting"}
    engine.set_health("acled", "degraded")
    assert engine.snapshot().health["acled"] == "degraded"
    engine.replace("usgs", [make_event("q", t=1)])
    assert engine.snapshot().health == {"usgs": "connecting", "acled": "degraded"}


def test_engine_clear(make_event):
    engine = MergeEngine(["usgs"])
    engine.replace("usgs", [make_event("q", t=1)])
    assert engine.clear("usgs").ordered == []
