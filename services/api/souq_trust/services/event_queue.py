"""Trust events and the in-process queue that delivers them.

Request paths (lead submission, listing edit, review post) call
`TrustEventQueue.emit()`, which returns immediately and never raises. A
background worker drains the queue and hands each event to the trust
event handlers, whose failures are logged and dropped. A lost event is
acceptable: the next event for the same owner recomputes everything.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
import logging

logger = logging.getLogger("uvicorn.error")


# ============================================================
# Event payloads (ids and timestamps only)
# ============================================================


@dataclass(frozen=True)
class LeadCreated:
    lead_id: str
    listing_id: str
    owner_id: str


@dataclass(frozen=True)
class LeadResponded:
    lead_id: str
    owner_id: str
    responded_at: datetime


@dataclass(frozen=True)
class ReviewSubmitted:
    review_id: str
    owner_id: str


@dataclass(frozen=True)
class ListingCreated:
    listing_id: str
    owner_id: str


@dataclass(frozen=True)
class ListingUpdated:
    listing_id: str
    owner_id: str


@dataclass(frozen=True)
class VerificationApproved:
    owner_id: str
    verification_type: str  # "business" or "identity"


TrustEvent = LeadCreated | LeadResponded | ReviewSubmitted | ListingCreated | ListingUpdated | VerificationApproved

EventHandler = Callable[[TrustEvent], Awaitable[None]]


# ============================================================
# Queue
# ============================================================


class TrustEventQueue:
    """Bounded fire-and-forget queue with a single background worker."""

    def __init__(self, handler: EventHandler | None = None, max_size: int = 1000) -> None:
        self._handler = handler
        self._queue: asyncio.Queue[TrustEvent] = asyncio.Queue(maxsize=max_size)
        self._worker: asyncio.Task | None = None

    def set_handler(self, handler: EventHandler) -> None:
        self._handler = handler

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def pending(self) -> int:
        return self._queue.qsize()

    def emit(self, event: TrustEvent) -> None:
        """Queue an event for background processing.

        Never blocks and never raises. When the queue is full the event is
        dropped with a warning.
        """
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Trust event queue full, dropping {type(event).__name__}: {event}")

    async def start(self) -> None:
        """Start the background worker (idempotent)."""
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._run(), name="trust-event-queue")
        logger.info("Trust event queue started")

    async def stop(self) -> None:
        """Process what is already queued, then stop the worker."""
        if self._worker is None:
            return
        await self.drain()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Trust event queue stopped")

    async def drain(self) -> None:
        """Wait until every queued event has been handled.

        Without a running worker the events are handled inline.
        """
        if self.is_running:
            await self._queue.join()
            return

        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                await self._dispatch(event)
            finally:
                self._queue.task_done()

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._dispatch(event)
            finally:
                self._queue.task_done()

    async def _dispatch(self, event: TrustEvent) -> None:
        if self._handler is None:
            logger.warning(f"No trust event handler bound, dropping {type(event).__name__}")
            return
        try:
            await self._handler(event)
        except Exception:
            logger.exception(f"Trust event handler failed for {type(event).__name__}: {event}")
