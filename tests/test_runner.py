import asyncio
import threading

import requests

from hazardmon import db
from hazardmon.adapters.base import RawBatch
from hazardmon.adapters.user import UserSubmissionAdapter
from hazardmon.runner import FeedRunner, LiveChannel


async def wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def make_runner(adapters):
    return FeedRunner(adapters=adapters, live_adapter=UserSubmissionAdapter())


async def test_poll_success_replaces_set(stub_adapter):
    a = stub_adapter("usgs", records=[{"id": 1, "t": 10}, {"id": 2, "t": 20}])
    runner = make_runner([a])
    runner.alive = True
    assert await runner.poll_source(a) is True
    assert [e.id for e in runner.engine.snapshot().ordered] == ["usgs_2", "usgs_1"]
    assert runner.engine.health()["usgs"] == "live"


async def test_poll_failure_only_empties_that_source(stub_adapter):
    good = stub_adapter("usgs", records=[{"id": 1, "t": 10}])
    bad = stub_adapter("gdelt", error=requests.ConnectionError("down"))
    runner = make_runner([good, bad])
    runner.alive = True
    runner.engine.replace("gdelt", [])
    await runner.poll_source(good)
    assert await runner.poll_source(bad) is False

    health = runner.engine.health()
    assert health["usgs"] == "live"
    assert health["gdelt"] == "error"
    assert [e.id for e in runner.engine.snapshot().ordered] == ["usgs_1"]


async def test_degraded_health_passes_through(stub_adapter):
    a = stub_adapter("acled", records=[{"id": 1}], health="degraded")
    runner = make_runner([a])
    runner.alive = True
    await runner.poll_source(a)
    assert runner.engine.health()["acled"] == "degraded"


async def test_result_after_shutdown_is_discarded(stub_adapter):
    a = stub_adapter("usgs", records=[{"id": 1, "t": 10}])
    runner = make_runner([a])
    runner.alive = False
    assert await runner.poll_source(a) is False
    assert runner.engine.events_for("usgs") == []
    assert runner.engine.health()["usgs"] == "connecting"


async def test_stop_while_fetch_in_flight(stub_adapter):
    release = threading.Event()
    started = threading.Event()

    class Slow(stub_adapter):
        def fetch(self):
            started.set()
            release.wait(timeout=5)
            return RawBatch([{"id": 1, "t": 1}])

    a = Slow("usgs")
    runner = make_runner([a])
    await runner.start()
    try:
        await wait_for(started.is_set)
        await runner.stop()
    finally:
        release.set()
    await asyncio.sleep(0.05)
    assert runner.engine.events_for("usgs") == []
    assert runner.alive is False


async def test_live_push_prepends(stub_adapter):
    a = stub_adapter("usgs", records=[{"id": 1, "t": 10}], interval=3600)
    runner = make_runner([a])
    seen = []
    runner.subscribe(seen.append)
    await runner.start()
    try:
        await wait_for(lambda: runner.engine.events_for("usgs"))
        assert runner.push({"submission_id": "s1", "title": "Road washed out", "severity": "critical"})
        await wait_for(lambda: runner.engine.events_for("submissions"))
    finally:
        await runner.stop()

    feed = runner.engine.snapshot()
    assert feed.ordered[0].id == "user_s1"
    assert feed.ordered[0].is_user_submitted
    assert feed.critical_alert.id == "user_s1"
    assert a.fetch_calls == 1
    assert seen and seen[-1].ordered[0].id == "user_s1"
    assert runner.push({"title": "late"}) is False


async def test_invalid_push_is_dropped(stub_adapter):
    runner = make_runner([])
    assert runner.accept_live({"title": ""}) is False
    assert runner.engine.events_for("submissions") == []


async def test_unsubscribe(stub_adapter):
    a = stub_adapter("usgs", records=[{"id": 1}])
    runner = make_runner([a])
    runner.alive = True
    seen = []
    unsubscribe = runner.subscribe(seen.append)
    await runner.poll_source(a)
    unsubscribe()
    await runner.poll_source(a)
    assert len(seen) == 1


async def test_live_channel_bounded():
    ch = LiveChannel(maxsize=2)
    assert ch.publish({"n": 1})
    assert ch.publish({"n": 2})
    assert ch.publish({"n": 3}) is False
    assert ch.dropped == 1
    assert len(ch) == 2
    assert (await ch.get()) == {"n": 1}
    ch.close()
    assert ch.publish({"n": 4}) is False


async def test_approved_submission_reaches_running_feed(stub_adapter, tmp_path):
    path = tmp_path / "submissions.duckdb"
    a = stub_adapter("usgs", records=[{"id": 1, "t": 10}], interval=3600)
    runner = make_runner([a])
    await runner.start()
    try:
        await wait_for(lambda: runner.engine.events_for("usgs"))
        row = await asyncio.to_thread(db.submit, {"title": "Shelter full", "severity": "high"}, "u1", path)
        await asyncio.to_thread(db.approve, row["submission_id"], path)
        await wait_for(lambda: runner.engine.events_for("submissions"))
    finally:
        await runner.stop()

    assert runner.engine.snapshot().ordered[0].id == f"user_{row['submission_id']}"

    late = db.submit({"title": "After shutdown"}, author_id="u1", db_path=path)
    db.approve(late["submission_id"], db_path=path)
    assert [e.id for e in runner.engine.events_for("submissions")] == [f"user_{row['submission_id']}"]
