"""Tests for the fire-and-forget trust event queue."""

import asyncio

import pytest

from souq_trust.services.event_queue import ListingUpdated, ReviewSubmitted, TrustEventQueue


class Collector:
    def __init__(self, fail_on: type | None = None) -> None:
        self.events = []
        self._fail_on = fail_on

    async def __call__(self, event) -> None:
        if self._fail_on is not None and isinstance(event, self._fail_on):
            raise RuntimeError("handler blew up")
        self.events.append(event)


@pytest.mark.asyncio
async def test_emit_then_drain_inline():
    collector = Collector()
    queue = TrustEventQueue(handler=collector)

    queue.emit(ReviewSubmitted(review_id="r1", owner_id="o1"))
    queue.emit(ListingUpdated(listing_id="l1", owner_id="o1"))
    assert queue.pending() == 2
    assert collector.events == []

    await queue.drain()

    assert queue.pending() == 0
    assert [type(e) for e in collector.events] == [ReviewSubmitted, ListingUpdated]


@pytest.mark.asyncio
async def test_full_queue_drops_events():
    collector = Collector()
    queue = TrustEventQueue(handler=collector, max_size=2)

    for i in range(5):
        queue.emit(ReviewSubmitted(review_id=f"r{i}", owner_id="o1"))

    assert queue.pending() == 2
    await queue.drain()
    assert [e.review_id for e in collector.events] == ["r0", "r1"]


@pytest.mark.asyncio
async def test_handler_exception_does_not_stop_processing():
    collector = Collector(fail_on=ReviewSubmitted)
    queue = TrustEventQueue(handler=collector)

    queue.emit(ReviewSubmitted(review_id="r1", owner_id="o1"))
    queue.emit(ListingUpdated(listing_id="l1", owner_id="o1"))
    await queue.drain()

    assert collector.events == [ListingUpdated(listing_id="l1", owner_id="o1")]


@pytest.mark.asyncio
async def test_no_handler_drops_events():
    queue = TrustEventQueue()
    queue.emit(ReviewSubmitted(review_id="r1", owner_id="o1"))
    await queue.drain()
    assert queue.pending() == 0


@pytest.mark.asyncio
async def test_background_worker_lifecycle():
    collector = Collector()
    queue = TrustEventQueue(handler=collector)

    await queue.start()
    await queue.start()
    assert queue.is_running

    queue.emit(ReviewSubmitted(review_id="r1", owner_id="o1"))
    await asyncio.wait_for(queue.drain(), timeout=5)
    assert len(collector.events) == 1

    queue.emit(ReviewSubmitted(review_id="r2", owner_id="o1"))
    await queue.stop()

    assert not queue.is_running
    assert [e.review_id for e in collector.events] == ["r1", "r2"]


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    queue = TrustEventQueue(handler=Collector())
    await queue.stop()
    assert not queue.is_running
