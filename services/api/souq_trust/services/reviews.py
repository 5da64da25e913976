"""Review lifecycle service.

Reviews are tied to a lead, so only someone who actually contacted an owner
can review them. The eligibility window is a ReviewRequest:

    no request → pending → completed
                         → expired (derived: now > expired_at, never written)

A request is scheduled REVIEW_DELAY_DAYS after the lead and stays open for
REVIEW_EXPIRY_DAYS. Leads from before scheduling existed have no request;
they become reviewable once they are REVIEW_DELAY_DAYS old.

Uniqueness on lead_id (for both requests and reviews) is what makes
concurrent creators safe: a duplicate-key failure means someone else won.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import math

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from souq_trust.models import Lead, Listing, Owner, OwnerReview, ReviewRequest
from souq_trust.schemas import PaginatedReviews, Pagination, Review, ReviewRequestInfo
from souq_trust.services.errors import (
    AlreadyExistsError,
    CannotReviewOwnListingError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    NotReadyError,
    StoreFailureError,
)
from souq_trust.services.event_queue import ReviewSubmitted, TrustEventQueue
from souq_trust.services.notifier import DueReviewRequest, ReviewRequestNotifier
from souq_trust.services.trust import (
    REVIEW_DELAY_DAYS,
    REVIEW_EXPIRY_DAYS,
    ReviewRating,
    ReviewStatus,
    ensure_utc,
    utcnow,
)
from souq_trust.stores.postgres import SessionFactory, get_session

logger = logging.getLogger("uvicorn.error")

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50
DEFAULT_BATCH_SIZE = 100


@dataclass
class ProcessStats:
    """Result of one pass over due review requests."""

    processed: int = 0
    errors: int = 0


def contact_matches(
    user_phone: str | None,
    user_email: str | None,
    contact_phone: str | None,
    contact_email: str | None,
) -> bool:
    """True if the user's phone or email is the recorded contact."""
    if user_phone and contact_phone == user_phone:
        return True
    if user_email and contact_email == user_email:
        return True
    return False


def response_time_hours(lead_created_at: datetime, owner_responded_at: datetime | None) -> int | None:
    """Whole hours between lead creation and the owner's first response (floored)."""
    if owner_responded_at is None:
        return None
    delta = ensure_utc(owner_responded_at) - ensure_utc(lead_created_at)
    return math.floor(delta / timedelta(hours=1))


def _to_review(review: OwnerReview, listing_id: str | None) -> Review:
    return Review(
        id=review.id,
        lead_id=review.lead_id,
        owner_id=review.owner_id,
        reviewer_id=review.reviewer_id,
        listing_id=listing_id,
        rating=review.rating,
        title=review.title,
        comment=review.comment,
        status=review.status,
        is_verified=review.is_verified,
        submitted_at=ensure_utc(review.submitted_at),
        owner_response=review.owner_response,
        responded_at=ensure_utc(review.responded_at),
        response_time_hours=review.response_time_hours,
        did_owner_respond=review.did_owner_respond,
    )


def _to_request_info(
    request: ReviewRequest,
    listing: Listing,
    owner: Owner,
    now: datetime,
) -> ReviewRequestInfo:
    return ReviewRequestInfo(
        id=request.id,
        lead_id=request.lead_id,
        can_submit=request.can_submit(now),
        sent_at=ensure_utc(request.sent_at),
        expired_at=ensure_utc(request.expired_at),
        listing_id=listing.id,
        listing_title_en=listing.title_en,
        listing_title_ar=listing.title_ar,
        owner_id=owner.id,
        owner_name=owner.full_name,
    )


class ReviewService:
    """Review requests, submissions, owner responses and moderation."""

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        events: TrustEventQueue | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._events = events

    # ============================================================
    # Review requests
    # ============================================================

    async def create_review_request(self, lead_id: str) -> str:
        """Open a review window for a lead now (idempotent).

        Returns the id of the new or already existing request.
        """
        now = utcnow()
        request_id = await self._insert_request(
            lead_id,
            sent_at=now,
            expired_at=now + timedelta(days=REVIEW_EXPIRY_DAYS),
        )
        if request_id is None:
            raise NotFoundError("Lead not found", detail={"lead_id": lead_id})
        return request_id

    async def schedule_review_request(self, lead_id: str) -> str | None:
        """Create the review request due REVIEW_DELAY_DAYS after the lead.

        Idempotent like `create_review_request`. Returns None if the lead is gone.
        """
        try:
            async with self._session_factory() as session:
                lead = await session.get(Lead, lead_id)
                if lead is None:
                    return None
                lead_created_at = ensure_utc(lead.created_at)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to load lead={lead_id} for review scheduling")
            raise StoreFailureError("Failed to schedule review request") from e

        sent_at = lead_created_at + timedelta(days=REVIEW_DELAY_DAYS)
        return await self._insert_request(
            lead_id,
            sent_at=sent_at,
            expired_at=sent_at + timedelta(days=REVIEW_EXPIRY_DAYS),
        )

    async def _insert_request(self, lead_id: str, *, sent_at: datetime, expired_at: datetime) -> str | None:
        try:
            async with self._session_factory() as session:
                lead = await session.get(Lead, lead_id)
                if lead is None:
                    return None

                existing_id = await session.scalar(
                    select(ReviewRequest.id).where(ReviewRequest.lead_id == lead_id)
                )
                if existing_id is not None:
                    return existing_id

                request = ReviewRequest(
                    lead_id=lead_id,
                    reviewer_phone=lead.phone,
                    reviewer_email=lead.email,
                    sent_at=sent_at,
                    expired_at=expired_at,
                )
                session.add(request)
                await session.flush()
                request_id = request.id
        except IntegrityError:
            # Lost the race to a concurrent creator: theirs is the request.
            logger.info(f"Review request for lead={lead_id} created concurrently, reusing it")
            return await self._existing_request_id(lead_id)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to create review request for lead={lead_id}")
            raise StoreFailureError("Failed to create review request") from e

        logger.info(f"Review request created: lead={lead_id} sent_at={sent_at.isoformat()}")
        return request_id

    async def _existing_request_id(self, lead_id: str) -> str:
        try:
            async with self._session_factory() as session:
                existing_id = await session.scalar(
                    select(ReviewRequest.id).where(ReviewRequest.lead_id == lead_id)
                )
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read review request for lead={lead_id}")
            raise StoreFailureError("Failed to create review request") from e

        if existing_id is None:
            raise StoreFailureError(
                "Failed to create review request",
                detail={"lead_id": lead_id},
            )
        return existing_id

    async def get_review_request(self, request_id: str, user_id: str) -> ReviewRequestInfo | None:
        """Get a review request as seen by the contact it was sent to.

        Raises:
            NotFoundError: If the user does not exist.
            ForbiddenError: If the request was not sent to this user.
        """
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(
                        select(ReviewRequest, Listing, Owner)
                        .join(Lead, ReviewRequest.lead_id == Lead.id)
                        .join(Listing, Lead.listing_id == Listing.id)
                        .join(Owner, Listing.owner_id == Owner.id)
                        .where(ReviewRequest.id == request_id)
                    )
                ).first()
                if row is None:
                    return None

                user = await session.get(Owner, user_id)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to get review request={request_id}")
            raise StoreFailureError("Failed to get review request") from e

        if user is None:
            raise NotFoundError("User not found", detail={"user_id": user_id})

        request, listing, owner = row
        if not contact_matches(user.phone, user.email, request.reviewer_phone, request.reviewer_email):
            raise ForbiddenError("Not authorized to view this request")

        return _to_request_info(request, listing, owner, utcnow())

    async def get_pending_requests(self, user_id: str) -> list[ReviewRequestInfo]:
        """Open review requests addressed to the user's phone or email, newest first."""
        now = utcnow()
        try:
            async with self._session_factory() as session:
                user = await session.get(Owner, user_id)
                if user is None:
                    raise NotFoundError("User not found", detail={"user_id": user_id})

                contact_filters = []
                if user.phone:
                    contact_filters.append(ReviewRequest.reviewer_phone == user.phone)
                if user.email:
                    contact_filters.append(ReviewRequest.reviewer_email == user.email)
                if not contact_filters:
                    return []

                result = await session.execute(
                    select(ReviewRequest, Listing, Owner)
                    .join(Lead, ReviewRequest.lead_id == Lead.id)
                    .join(Listing, Lead.listing_id == Listing.id)
                    .join(Owner, Listing.owner_id == Owner.id)
                    .where(
                        ReviewRequest.completed_at.is_(None),
                        ReviewRequest.sent_at <= now,
                        or_(ReviewRequest.expired_at.is_(None), ReviewRequest.expired_at > now),
                        or_(*contact_filters),
                    )
                    .order_by(ReviewRequest.sent_at.desc())
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to get pending review requests for user={user_id}")
            raise StoreFailureError("Failed to get pending requests") from e

        return [_to_request_info(request, listing, owner, now) for request, listing, owner in rows]

    # ============================================================
    # Reviews
    # ============================================================

    async def submit_review(
        self,
        lead_id: str,
        reviewer_id: str,
        rating: ReviewRating,
        title: str | None = None,
        comment: str | None = None,
    ) -> str:
        """Submit a review of the owner behind a lead.

        Response-time fields are copied from the lead as it is now and never
        updated afterwards.

        Raises:
            NotFoundError: Lead, listing or reviewer does not exist.
            AlreadyExistsError: The lead already has a review.
            ForbiddenError: Reviewer's phone/email is not the lead's contact.
            CannotReviewOwnListingError: Reviewer owns the listing.
            ExpiredError: The review request window has closed.
            NotReadyError: The request is not due yet, or there is no request
                and the lead is too recent.
            StoreFailureError: The store failed.
        """
        now = utcnow()
        try:
            async with self._session_factory() as session:
                lead = await session.get(Lead, lead_id)
                if lead is None:
                    raise NotFoundError("Lead not found", detail={"lead_id": lead_id})

                existing_review = await session.scalar(
                    select(OwnerReview.id).where(OwnerReview.lead_id == lead_id)
                )
                if existing_review is not None:
                    raise AlreadyExistsError("Review already submitted for this lead")

                reviewer = await session.get(Owner, reviewer_id)
                if reviewer is None:
                    raise NotFoundError("Reviewer not found", detail={"reviewer_id": reviewer_id})

                if not contact_matches(reviewer.phone, reviewer.email, lead.phone, lead.email):
                    raise ForbiddenError("Not authorized to review this interaction")

                listing = await session.get(Listing, lead.listing_id)
                if listing is None:
                    raise NotFoundError("Listing not found", detail={"listing_id": lead.listing_id})

                if listing.owner_id == reviewer_id:
                    raise CannotReviewOwnListingError("Cannot review your own listing")

                request = await session.scalar(
                    select(ReviewRequest).where(ReviewRequest.lead_id == lead_id)
                )
                if request is not None:
                    if request.is_expired(now):
                        raise ExpiredError("Review request has expired")
                    if not request.is_due(now):
                        raise NotReadyError(
                            f"Please wait {REVIEW_DELAY_DAYS} days after contacting the owner to leave a review",
                            detail={"available_at": ensure_utc(request.sent_at).isoformat()},
                        )
                elif now - ensure_utc(lead.created_at) < timedelta(days=REVIEW_DELAY_DAYS):
                    raise NotReadyError(
                        f"Please wait {REVIEW_DELAY_DAYS} days after contacting the owner to leave a review"
                    )

                review = OwnerReview(
                    lead_id=lead_id,
                    owner_id=listing.owner_id,
                    reviewer_id=reviewer_id,
                    rating=rating,
                    title=title,
                    comment=comment,
                    status=ReviewStatus.SUBMITTED,
                    submitted_at=now,
                    requested_at=request.sent_at if request is not None else now,
                    is_verified=True,
                    response_time_hours=response_time_hours(lead.created_at, lead.owner_responded_at),
                    did_owner_respond=lead.owner_responded_at is not None,
                )
                session.add(review)
                if request is not None:
                    request.completed_at = now
                await session.flush()

                review_id = review.id
                owner_id = listing.owner_id
        except IntegrityError as e:
            raise AlreadyExistsError("Review already submitted for this lead") from e
        except SQLAlchemyError as e:
            logger.exception(f"Failed to submit review for lead={lead_id}")
            raise StoreFailureError("Failed to submit review") from e

        logger.info(f"Review submitted: review={review_id} owner={owner_id} rating={rating.value}")

        if self._events is not None:
            self._events.emit(ReviewSubmitted(review_id=review_id, owner_id=owner_id))

        return review_id

    async def respond_to_review(self, review_id: str, owner_id: str, response: str) -> None:
        """Record the owner's single reply to a review."""
        try:
            async with self._session_factory() as session:
                review = await session.get(OwnerReview, review_id)
                if review is None:
                    raise NotFoundError("Review not found", detail={"review_id": review_id})

                if review.owner_id != owner_id:
                    raise ForbiddenError("Not authorized to respond to this review")

                if review.responded_at is not None:
                    raise AlreadyExistsError("Already responded to this review")

                review.owner_response = response
                review.responded_at = utcnow()
                review.status = ReviewStatus.RESPONDED
        except SQLAlchemyError as e:
            logger.exception(f"Failed to respond to review={review_id}")
            raise StoreFailureError("Failed to respond to review") from e

    async def flag_review(self, review_id: str, reason: str) -> None:
        """Flag a review for moderation. Content is kept."""
        try:
            async with self._session_factory() as session:
                review = await session.get(OwnerReview, review_id)
                if review is None:
                    raise NotFoundError("Review not found", detail={"review_id": review_id})

                review.status = ReviewStatus.FLAGGED
                review.flagged_reason = reason
        except SQLAlchemyError as e:
            logger.exception(f"Failed to flag review={review_id}")
            raise StoreFailureError("Failed to flag review") from e

        logger.info(f"Review flagged: review={review_id} reason={reason!r}")

    async def get_review(self, review_id: str) -> Review | None:
        try:
            async with self._session_factory() as session:
                row = (
                    await session.execute(
                        select(OwnerReview, Lead.listing_id)
                        .join(Lead, OwnerReview.lead_id == Lead.id)
                        .where(OwnerReview.id == review_id)
                    )
                ).first()
        except SQLAlchemyError as e:
            logger.exception(f"Failed to get review={review_id}")
            raise StoreFailureError("Failed to get review") from e

        if row is None:
            return None
        review, listing_id = row
        return _to_review(review, listing_id)

    async def list_reviews(
        self,
        *,
        owner_id: str | None = None,
        reviewer_id: str | None = None,
        status: ReviewStatus | None = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> PaginatedReviews:
        """List reviews newest first; `limit` is capped at MAX_PAGE_SIZE."""
        page = max(1, page)
        safe_limit = max(1, min(limit, MAX_PAGE_SIZE))

        filters = []
        if owner_id:
            filters.append(OwnerReview.owner_id == owner_id)
        if reviewer_id:
            filters.append(OwnerReview.reviewer_id == reviewer_id)
        if status:
            filters.append(OwnerReview.status == status)

        try:
            async with self._session_factory() as session:
                total = await session.scalar(
                    select(func.count()).select_from(OwnerReview).where(*filters)
                )
                result = await session.execute(
                    select(OwnerReview, Lead.listing_id)
                    .join(Lead, OwnerReview.lead_id == Lead.id)
                    .where(*filters)
                    .order_by(OwnerReview.submitted_at.desc(), OwnerReview.id)
                    .offset((page - 1) * safe_limit)
                    .limit(safe_limit)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.exception("Failed to list reviews")
            raise StoreFailureError("Failed to list reviews") from e

        total = total or 0
        return PaginatedReviews(
            reviews=[_to_review(review, listing_id) for review, listing_id in rows],
            pagination=Pagination(
                page=page,
                limit=safe_limit,
                total=total,
                total_pages=math.ceil(total / safe_limit),
            ),
        )

    # ============================================================
    # Scheduling (cron)
    # ============================================================

    async def process_pending_review_requests(
        self,
        notifier: ReviewRequestNotifier,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> ProcessStats:
        """Hand due, open review requests to the notifier.

        One failed notification is counted and does not stop the batch.
        """
        now = utcnow()
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(ReviewRequest, Listing, Owner)
                    .join(Lead, ReviewRequest.lead_id == Lead.id)
                    .join(Listing, Lead.listing_id == Listing.id)
                    .join(Owner, Listing.owner_id == Owner.id)
                    .where(
                        ReviewRequest.sent_at <= now,
                        ReviewRequest.completed_at.is_(None),
                        or_(ReviewRequest.expired_at.is_(None), ReviewRequest.expired_at > now),
                    )
                    .order_by(ReviewRequest.sent_at)
                    .limit(batch_size)
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.exception("Failed to load pending review requests")
            raise StoreFailureError("Failed to process review requests") from e

        stats = ProcessStats()
        for request, listing, owner in rows:
            due = DueReviewRequest(
                request_id=request.id,
                lead_id=request.lead_id,
                reviewer_phone=request.reviewer_phone,
                reviewer_email=request.reviewer_email,
                sent_at=ensure_utc(request.sent_at),
                expired_at=ensure_utc(request.expired_at),
                listing_id=listing.id,
                listing_title_en=listing.title_en,
                owner_id=owner.id,
                owner_name=owner.full_name,
            )
            try:
                await notifier.notify(due)
                stats.processed += 1
            except Exception:
                logger.exception(f"Failed to process review request {request.id}")
                stats.errors += 1

        logger.info(f"Review requests processed: processed={stats.processed}, errors={stats.errors}")
        return stats

    async def expire_old_requests(self) -> int:
        """Count requests past expiry without a review. Nothing is written."""
        now = utcnow()
        try:
            async with self._session_factory() as session:
                expired = await session.scalar(
                    select(func.count())
                    .select_from(ReviewRequest)
                    .where(
                        ReviewRequest.completed_at.is_(None),
                        ReviewRequest.expired_at < now,
                    )
                )
        except SQLAlchemyError as e:
            logger.exception("Failed to count expired review requests")
            raise StoreFailureError("Failed to count expired review requests") from e

        return expired or 0
