"""Trust event handlers.

Events that trigger recalculation:
- Lead created → recalculate owner trust, schedule the review request
- Lead responded → record first response timestamp, recalculate owner trust
- Review submitted → recalculate owner trust
- Listing created/updated → recalculate quality score, then owner trust
- Verification approved → recalculate owner trust (badges)

Handlers are advisory side effects of someone else's request: every failure
is logged and swallowed, never raised back to the event source.
"""

import logging

from sqlalchemy import update

from souq_trust.models import Lead
from souq_trust.services.event_queue import (
    LeadCreated,
    LeadResponded,
    ListingCreated,
    ListingUpdated,
    ReviewSubmitted,
    TrustEvent,
    VerificationApproved,
)
from souq_trust.services.quality_scoring import QualityScoringService
from souq_trust.services.reviews import ReviewService
from souq_trust.services.trust_scoring import TrustScoringService
from souq_trust.stores.postgres import SessionFactory, get_session

logger = logging.getLogger("uvicorn.error")


class TrustEventsService:
    """Routes domain events to the scoring services."""

    def __init__(
        self,
        trust_scoring: TrustScoringService,
        quality_scoring: QualityScoringService,
        reviews: ReviewService,
        session_factory: SessionFactory = get_session,
    ) -> None:
        self._trust_scoring = trust_scoring
        self._quality_scoring = quality_scoring
        self._reviews = reviews
        self._session_factory = session_factory

    async def dispatch(self, event: TrustEvent) -> None:
        """Call the handler matching the event type."""
        if isinstance(event, LeadCreated):
            await self.on_lead_created(event)
        elif isinstance(event, LeadResponded):
            await self.on_lead_responded(event)
        elif isinstance(event, ReviewSubmitted):
            await self.on_review_submitted(event)
        elif isinstance(event, ListingCreated):
            await self.on_listing_created(event)
        elif isinstance(event, ListingUpdated):
            await self.on_listing_updated(event)
        elif isinstance(event, VerificationApproved):
            await self.on_verification_approved(event)
        else:
            logger.warning(f"Unknown trust event type: {type(event).__name__}")

    async def on_lead_created(self, event: LeadCreated) -> None:
        try:
            await self._trust_scoring.recalculate(event.owner_id)
        except Exception:
            logger.exception(f"on_lead_created recalculation failed: lead={event.lead_id} owner={event.owner_id}")
        try:
            await self._reviews.schedule_review_request(event.lead_id)
        except Exception:
            logger.exception(f"on_lead_created scheduling failed: lead={event.lead_id} owner={event.owner_id}")

    async def on_lead_responded(self, event: LeadResponded) -> None:
        try:
            # First response wins; later events never move the timestamp.
            async with self._session_factory() as session:
                await session.execute(
                    update(Lead)
                    .where(Lead.id == event.lead_id, Lead.owner_responded_at.is_(None))
                    .values(owner_responded_at=event.responded_at)
                )
            await self._trust_scoring.recalculate(event.owner_id)
        except Exception:
            logger.exception(f"on_lead_responded failed: lead={event.lead_id} owner={event.owner_id}")

    async def on_review_submitted(self, event: ReviewSubmitted) -> None:
        try:
            await self._trust_scoring.recalculate(event.owner_id)
        except Exception:
            logger.exception(f"on_review_submitted failed: review={event.review_id} owner={event.owner_id}")

    async def on_listing_created(self, event: ListingCreated) -> None:
        try:
            await self._quality_scoring.calculate_and_save(event.listing_id)
            await self._trust_scoring.recalculate(event.owner_id)
        except Exception:
            logger.exception(f"on_listing_created failed: listing={event.listing_id} owner={event.owner_id}")

    async def on_listing_updated(self, event: ListingUpdated) -> None:
        try:
            await self._quality_scoring.calculate_and_save(event.listing_id)
            await self._trust_scoring.recalculate(event.owner_id)
        except Exception:
            logger.exception(f"on_listing_updated failed: listing={event.listing_id} owner={event.owner_id}")

    async def on_verification_approved(self, event: VerificationApproved) -> None:
        try:
            await self._trust_scoring.recalculate(event.owner_id)
        except Exception:
            logger.exception(
                f"on_verification_approved failed: owner={event.owner_id} type={event.verification_type}"
            )
