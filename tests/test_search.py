from hazardmon.search import FRAME_COLUMNS, filter_events, to_frame, with_coordinates


def sample(make_event):
    return [
        make_event("1", t=5, category="conflict", title="Clashes in Khartoum", location="Khartoum, Sudan"),
        make_event("2", t=4, category="earthquake", title="M 6.1 - Offshore", location="Near Tokyo, Japan",
                   coordinates=(35.0, 139.0), magnitude=6.1),
        make_event("3", t=3, category="conflict", title="Airstrike reported", location=None),
        make_event("4", t=2, category="info", title="Markets open"),
    ]


def test_category_filter_is_ordered_subset(make_event):
    events = sample(make_event)
    out = filter_events(events, "conflict", "")
    assert [e.id for e in out] == ["1", "3"]


def test_all_passes_everything(make_event):
    events = sample(make_event)
    assert filter_events(events, "all", "") == events


def test_search_title_or_location_case_insensitive(make_event):
    events = sample(make_event)
    assert [e.id for e in filter_events(events, "all", "TOKYO")] == ["2"]
    assert [e.id for e in filter_events(events, "all", "khartoum")] == ["1"]
    assert [e.id for e in filter_events(events, "all", "airstrike")] == ["3"]


def test_predicates_are_anded(make_event):
    events = sample(make_event)
    assert filter_events(events, "earthquake", "khartoum") == []
    assert [e.id for e in filter_events(events, "conflict", "sudan")] == ["1"]


def test_with_coordinates(make_event):
    assert [e.id for e in with_coordinates(sample(make_event))] == ["2"]


def test_to_frame(make_event):
    df = to_frame(sample(make_event))
    assert list(df.columns) == FRAME_COLUMNS
    assert len(df) == 4
    row = df[df["id"] == "2"].iloc[0]
    assert row["lat"] == 35.0 and row["lon"] == 139.0
    assert str(df["ts"].dt.tz) == "UTC"


def test_to_frame_empty():
    df = to_frame([])
    assert df.empty
    assert list(df.columns) == FRAME_COLUMNS
