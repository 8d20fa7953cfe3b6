# hazardmon/runner.py
"""
Long-running feed service.

Each source polls on its own interval; a live channel carries pushed
records (approved user reports) that are prepended without re-fetching
anything else. All state changes happen on the event loop thread, one
whole replace/append at a time. Fetches run in worker threads and are
the only suspension points; results arriving after stop() are dropped.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from config import LIVE_QUEUE_SIZE
from hazardmon import db
from hazardmon.adapters.base import SourceAdapter
from hazardmon.adapters.user import UserSubmissionAdapter
from hazardmon.ingest import apply_batch, build_engine, default_adapters, mark_failed
from hazardmon.merge import MergedFeed, MergeEngine

logger = logging.getLogger(__name__)

Listener = Callable[[MergedFeed], None]


class LiveChannel:
    """Bounded inbound queue. Best effort: full or closed -> dropped."""

    def __init__(self, maxsize: int = LIVE_QUEUE_SIZE):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False
        self.dropped = 0

    def publish(self, record: Dict[str, Any]) -> bool:
        if self.closed:
            self.dropped += 1
            return False
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning("[LIVE] queue full, dropping push")
            return False
        return True

    async def get(self) -> Dict[str, Any]:
        return await self._queue.get()

    def close(self) -> None:
        self.closed = True

    def __len__(self) -> int:
        return self._queue.qsize()


class FeedRunner:
    def __init__(
        self,
        engine: Optional[MergeEngine] = None,
        adapters: Optional[List[SourceAdapter]] = None,
        live_adapter: Optional[SourceAdapter] = None,
        channel: Optional[LiveChannel] = None,
    ):
        self.adapters = default_adapters() if adapters is None else list(adapters)
        self.engine = engine or build_engine(self.adapters)
        self.live_adapter = live_adapter or UserSubmissionAdapter()
        self.engine.register(self.live_adapter.source_id)
        self.channel = channel or LiveChannel()
        self.alive = False
        self._tasks: List[asyncio.Task] = []
        self._listeners: List[Listener] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._loop_thread: Optional[int] = None
        self._stop_approvals: Optional[Callable[[], None]] = None

    # listeners

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        feed = self.engine.snapshot()
        for listener in list(self._listeners):
            try:
                listener(feed)
            except Exception:
                logger.exception("[RUNNER] listener failed")

    # lifecycle

    async def start(self) -> None:
        if self.alive:
            return
        self.alive = True
        self._loop = asyncio.get_running_loop()
        self._loop_thread = threading.get_ident()
        self._tasks = [
            asyncio.create_task(self._poll_loop(a), name=f"poll:{a.source_id}") for a in self.adapters
        ]
        self._tasks.append(asyncio.create_task(self._drain_live(), name="live"))
        # approved user reports arrive through the live channel
        self._stop_approvals = db.on_approved(self.push)
        logger.info("[RUNNER] started %d sources", len(self.adapters))

    async def stop(self) -> None:
        self.alive = False
        if self._stop_approvals is not None:
            self._stop_approvals()
            self._stop_approvals = None
        self.channel.close()
        for t in self._tasks:
            t.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._listeners.clear()
        logger.info("[RUNNER] stopped")

    def push(self, record: Dict[str, Any]) -> bool:
        """Publish a live record; safe to call from another thread."""
        loop = self._loop
        if loop is not None and loop.is_running() and threading.get_ident() != self._loop_thread:
            loop.call_soon_threadsafe(self.channel.publish, record)
            return not self.channel.closed
        return self.channel.publish(record)

    # work

    async def poll_source(self, adapter: SourceAdapter) -> bool:
        try:
            batch = await asyncio.to_thread(adapter.fetch)
        except Exception as e:  # source down: empty set, "error" badge
            if self.alive:
                mark_failed(self.engine, adapter, e)
                self._notify()
            return False

        if not self.alive:
            logger.debug("[RUNNER] %s result after shutdown, discarded", adapter.source_id)
            return False

        try:
            apply_batch(self.engine, adapter, batch)
        except Exception as e:  # whole-batch parse failure counts as a fetch failure
            mark_failed(self.engine, adapter, e)
            self._notify()
            return False
        self._notify()
        return True

    async def _poll_loop(self, adapter: SourceAdapter) -> None:
        while self.alive:
            await self.poll_source(adapter)
            await asyncio.sleep(adapter.interval)

    def accept_live(self, record: Dict[str, Any]) -> bool:
        try:
            events = self.live_adapter.adapt([record])
        except ValueError as e:
            logger.warning("[LIVE] bad push dropped: %s", e)
            return False
        if not events:
            return False
        self.engine.append(self.live_adapter.source_id, events[0])
        self._notify()
        return True

    async def _drain_live(self) -> None:
        while self.alive:
            record = await self.channel.get()
            if not self.alive:
                break
            self.accept_live(record)


async def serve(runner: FeedRunner, stop_event: Optional[asyncio.Event] = None) -> None:
    stop_event = stop_event or asyncio.Event()
    await runner.start()
    try:
        await stop_event.wait()
    finally:
        await runner.stop()


def _print_summary(feed: MergedFeed) -> None:
    c = feed.counts
    line = f"[FEED] events={c.total} critical={c.critical} conflicts={c.conflict} health={feed.health}"
    if feed.critical_alert:
        line += f" | BREAKING: {feed.critical_alert.title}"
    print(line)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    runner = FeedRunner()
    runner.subscribe(_print_summary)
    try:
        asyncio.run(serve(runner))
    except KeyboardInterrupt:
        print("[FEED] shutting down")


if __name__ == "__main__":
    main()
