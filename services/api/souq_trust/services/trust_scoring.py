"""Trust scoring service: owner signals → trust score + badges.

Recalculation gathers three independent aggregates concurrently (response,
reviews, listings), combines them into badges and a 0-100 score, and
overwrites the owner's metrics row. Reads are cache-first.

Every recalculation is a full rescan, so two racing recalculations for the
same owner converge on one of two complete rows, never a mix.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
import json
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from souq_trust.models import Lead, Listing, ListingQualityScore, Owner, OwnerReview, OwnerTrustMetrics
from souq_trust.schemas import ListingMetrics, ResponseMetrics, ReviewMetrics, TrustMetrics
from souq_trust.services.errors import NotFoundError, StoreFailureError
from souq_trust.services.trust import (
    FAST_RESPONDER_MAX_HOURS,
    NO_LEADS_RESPONSE_SCORE,
    NO_LISTINGS_SCORE,
    NO_REVIEWS_SCORE,
    RATING_VALUES,
    RELIABLE_MIN_RATE,
    RESPONSE_TIME_FAST_BONUS,
    RESPONSE_TIME_SLOW_HOURS,
    RESPONSE_TIME_SLOW_PENALTY,
    RESPONSE_TIME_VERY_FAST_BONUS,
    RESPONSE_TIME_VERY_FAST_HOURS,
    REVIEW_DAMPENING_MIN_REVIEWS,
    TOP_RATED_MIN_RATING,
    TOP_RATED_MIN_REVIEWS,
    VERIFICATION_BONUS,
    WEIGHT_LISTING_QUALITY,
    WEIGHT_RESPONSE,
    WEIGHT_REVIEWS,
    LeadStatus,
    ListingStatus,
    ReviewRating,
    ReviewStatus,
    TrustBadge,
    ensure_utc,
    round_half_up,
    utcnow,
)
from souq_trust.stores.postgres import SessionFactory, get_session, upsert_row
from souq_trust.stores.redis import TTL_TRUST_METRICS, NullResultCache, ResultCache, trust_metrics_key

logger = logging.getLogger("uvicorn.error")

_SECONDS_PER_HOUR = 3600


@dataclass
class ResponseAggregate:
    total_leads: int
    responded_leads: int
    avg_response_time_hours: float | None


@dataclass
class ReviewAggregate:
    total_reviews: int
    average_rating: float | None
    ratings: list[ReviewRating] = field(default_factory=list)


@dataclass
class ListingAggregate:
    total_listings: int
    active_listings: int
    avg_listing_quality: float | None


@dataclass
class OwnerSnapshot:
    member_since: datetime
    is_business_verified: bool
    is_identity_verified: bool


# ============================================================
# Pure scoring
# ============================================================


def rating_distribution(ratings: list[ReviewRating]) -> dict[ReviewRating, int]:
    """Count ratings per bucket; every bucket is present, zero when unused."""
    distribution = {rating: 0 for rating in ReviewRating}
    for rating in ratings:
        distribution[rating] += 1
    return distribution


def calculate_badges(
    *,
    response_rate: float,
    avg_response_time_hours: float | None,
    average_rating: float | None,
    total_reviews: int,
    is_business_verified: bool,
    is_identity_verified: bool,
) -> list[TrustBadge]:
    """Determine which badges an owner has earned (each rule independent)."""
    badges: list[TrustBadge] = []

    if is_business_verified:
        badges.append(TrustBadge.VERIFIED_BUSINESS)

    if is_identity_verified:
        badges.append(TrustBadge.VERIFIED_IDENTITY)

    if avg_response_time_hours is not None and avg_response_time_hours <= FAST_RESPONDER_MAX_HOURS:
        badges.append(TrustBadge.FAST_RESPONDER)

    if response_rate >= RELIABLE_MIN_RATE:
        badges.append(TrustBadge.RELIABLE)

    if (
        average_rating is not None
        and average_rating >= TOP_RATED_MIN_RATING
        and total_reviews >= TOP_RATED_MIN_REVIEWS
    ):
        badges.append(TrustBadge.TOP_RATED)

    return badges


def calculate_response_score(response_rate: float, avg_response_time_hours: float | None) -> float:
    """Response rate adjusted by average response time, clamped to [0, 100]."""
    score = response_rate
    if avg_response_time_hours is not None:
        if avg_response_time_hours <= RESPONSE_TIME_VERY_FAST_HOURS:
            score += RESPONSE_TIME_VERY_FAST_BONUS
        elif avg_response_time_hours <= FAST_RESPONDER_MAX_HOURS:
            score += RESPONSE_TIME_FAST_BONUS
        elif avg_response_time_hours > RESPONSE_TIME_SLOW_HOURS:
            score += RESPONSE_TIME_SLOW_PENALTY
    return max(0.0, min(100.0, score))


def calculate_review_score(average_rating: float | None, total_reviews: int) -> float:
    """Map the 1-5 average onto 0-100, dampened toward 0 below 5 reviews."""
    if average_rating is None or total_reviews <= 0:
        return NO_REVIEWS_SCORE

    score = (average_rating - 1) / 4 * 100
    if total_reviews < REVIEW_DAMPENING_MIN_REVIEWS:
        score = score * (total_reviews / REVIEW_DAMPENING_MIN_REVIEWS)
    return score


def calculate_trust_score(
    *,
    response_rate: float,
    avg_response_time_hours: float | None,
    average_rating: float | None,
    total_reviews: int,
    avg_listing_quality: float | None,
    is_verified: bool,
) -> int:
    """Weighted trust score (0-100).

    `response_rate` here is the scoring input: callers pass 100 for owners
    with no leads so that having no data is not penalized.
    """
    response_score = calculate_response_score(response_rate, avg_response_time_hours)
    review_score = calculate_review_score(average_rating, total_reviews)
    listing_score = avg_listing_quality if avg_listing_quality is not None else NO_LISTINGS_SCORE
    verification_bonus = VERIFICATION_BONUS if is_verified else 0

    score = round_half_up(
        response_score * WEIGHT_RESPONSE
        + review_score * WEIGHT_REVIEWS
        + listing_score * WEIGHT_LISTING_QUALITY
        + verification_bonus
    )
    return max(0, min(100, score))


# ============================================================
# Service
# ============================================================


class TrustScoringService:
    """Recalculates and serves owner trust metrics."""

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        cache: ResultCache | None = None,
        cache_ttl: int = TTL_TRUST_METRICS,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache or NullResultCache()
        self._cache_ttl = cache_ttl

    async def get_metrics(self, owner_id: str) -> TrustMetrics | None:
        """Get trust metrics for an owner (cached).

        Returns None when metrics were never calculated for this owner,
        which is distinct from a zero score.
        """
        key = trust_metrics_key(owner_id)
        cached = await self._cache.get_json(key)
        if cached is not None:
            try:
                return TrustMetrics.model_validate(cached)
            except ValueError:
                logger.warning(f"Discarding malformed cached trust metrics for owner={owner_id}")

        try:
            async with self._session_factory() as session:
                stored = await session.get(OwnerTrustMetrics, owner_id)
                if stored is None:
                    return None
                owner = await session.get(Owner, owner_id)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read trust metrics for owner={owner_id}")
            raise StoreFailureError("Failed to get trust metrics") from e

        metrics = self._metrics_from_row(stored, owner)
        await self._cache.set_json(key, metrics.model_dump(mode="json"), self._cache_ttl)
        return metrics

    async def recalculate(self, owner_id: str) -> TrustMetrics:
        """Recalculate and persist trust metrics for an owner.

        Raises:
            NotFoundError: If the owner does not exist.
            StoreFailureError: If any store read or the upsert fails.
        """
        try:
            response, reviews, listings, owner = await asyncio.gather(
                self._response_aggregate(owner_id),
                self._review_aggregate(owner_id),
                self._listing_aggregate(owner_id),
                self._owner_snapshot(owner_id),
            )
        except SQLAlchemyError as e:
            logger.exception(f"Trust aggregation failed for owner={owner_id}")
            raise StoreFailureError("Failed to recalculate trust metrics") from e

        if owner is None:
            raise NotFoundError("Owner not found", detail={"owner_id": owner_id})

        # Stored rate is 0 without leads; the scoring prior is applied below.
        response_rate = (
            response.responded_leads / response.total_leads * 100 if response.total_leads > 0 else 0.0
        )
        is_verified = owner.is_business_verified or owner.is_identity_verified

        badges = calculate_badges(
            response_rate=response_rate,
            avg_response_time_hours=response.avg_response_time_hours,
            average_rating=reviews.average_rating,
            total_reviews=reviews.total_reviews,
            is_business_verified=owner.is_business_verified,
            is_identity_verified=owner.is_identity_verified,
        )
        trust_score = calculate_trust_score(
            response_rate=response_rate if response.total_leads > 0 else NO_LEADS_RESPONSE_SCORE,
            avg_response_time_hours=response.avg_response_time_hours,
            average_rating=reviews.average_rating,
            total_reviews=reviews.total_reviews,
            avg_listing_quality=listings.avg_listing_quality,
            is_verified=is_verified,
        )
        distribution = rating_distribution(reviews.ratings)
        calculated_at = utcnow()

        try:
            await upsert_row(
                self._session_factory,
                OwnerTrustMetrics,
                owner_id,
                {
                    "owner_id": owner_id,
                    "trust_score": trust_score,
                    "badges_json": json.dumps([badge.value for badge in badges]),
                    "total_leads": response.total_leads,
                    "responded_leads": response.responded_leads,
                    "response_rate": response_rate,
                    "avg_response_time_hours": response.avg_response_time_hours,
                    "total_reviews": reviews.total_reviews,
                    "average_rating": reviews.average_rating,
                    "excellent_count": distribution[ReviewRating.EXCELLENT],
                    "good_count": distribution[ReviewRating.GOOD],
                    "fair_count": distribution[ReviewRating.FAIR],
                    "poor_count": distribution[ReviewRating.POOR],
                    "very_poor_count": distribution[ReviewRating.VERY_POOR],
                    "total_listings": listings.total_listings,
                    "active_listings": listings.active_listings,
                    "avg_listing_quality": listings.avg_listing_quality,
                    "last_calculated_at": calculated_at,
                },
            )
        except SQLAlchemyError as e:
            logger.exception(f"Trust metrics upsert failed for owner={owner_id}")
            raise StoreFailureError("Failed to recalculate trust metrics") from e

        await self.invalidate_cache(owner_id)

        logger.info(
            f"Trust recalculated: owner={owner_id} score={trust_score} "
            f"badges={[badge.value for badge in badges]}"
        )

        return TrustMetrics(
            owner_id=owner_id,
            trust_score=trust_score,
            badges=badges,
            response_metrics=ResponseMetrics(
                total_leads=response.total_leads,
                responded_leads=response.responded_leads,
                response_rate=response_rate,
                avg_response_time_hours=response.avg_response_time_hours,
            ),
            review_metrics=ReviewMetrics(
                total_reviews=reviews.total_reviews,
                average_rating=reviews.average_rating,
                rating_distribution=distribution,
            ),
            listing_metrics=ListingMetrics(
                total_listings=listings.total_listings,
                active_listings=listings.active_listings,
                avg_listing_quality=listings.avg_listing_quality,
            ),
            member_since=owner.member_since,
            is_verified=is_verified,
            last_calculated_at=calculated_at,
        )

    async def invalidate_cache(self, owner_id: str) -> None:
        """Drop the cached metrics for an owner."""
        await self._cache.delete(trust_metrics_key(owner_id))

    # ============================================================
    # Aggregates (one session each so they can run concurrently)
    # ============================================================

    async def _response_aggregate(self, owner_id: str) -> ResponseAggregate:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Lead.status, Lead.created_at, Lead.owner_responded_at)
                .join(Listing, Lead.listing_id == Listing.id)
                .where(Listing.owner_id == owner_id)
            )
            rows = result.all()

        responded_leads = 0
        total_response_seconds = 0.0
        responses_with_time = 0

        for status, created_at, owner_responded_at in rows:
            # Anything past NEW counts, even without a recorded timestamp
            if status != LeadStatus.NEW or owner_responded_at is not None:
                responded_leads += 1

            if owner_responded_at is not None:
                delta = ensure_utc(owner_responded_at) - ensure_utc(created_at)
                total_response_seconds += delta.total_seconds()
                responses_with_time += 1

        avg_response_time_hours = None
        if responses_with_time > 0:
            avg_response_time_hours = total_response_seconds / responses_with_time / _SECONDS_PER_HOUR

        return ResponseAggregate(
            total_leads=len(rows),
            responded_leads=responded_leads,
            avg_response_time_hours=avg_response_time_hours,
        )

    async def _review_aggregate(self, owner_id: str) -> ReviewAggregate:
        async with self._session_factory() as session:
            result = await session.execute(
                select(OwnerReview.rating).where(
                    OwnerReview.owner_id == owner_id,
                    OwnerReview.status == ReviewStatus.SUBMITTED,
                )
            )
            ratings = list(result.scalars().all())

        average_rating = None
        if ratings:
            average_rating = sum(RATING_VALUES[rating] for rating in ratings) / len(ratings)

        return ReviewAggregate(
            total_reviews=len(ratings),
            average_rating=average_rating,
            ratings=ratings,
        )

    async def _listing_aggregate(self, owner_id: str) -> ListingAggregate:
        async with self._session_factory() as session:
            total_listings = await session.scalar(
                select(func.count()).select_from(Listing).where(Listing.owner_id == owner_id)
            )
            active_listings = await session.scalar(
                select(func.count())
                .select_from(Listing)
                .where(Listing.owner_id == owner_id, Listing.status == ListingStatus.ACTIVE)
            )
            result = await session.execute(
                select(ListingQualityScore.overall_score)
                .join(Listing, ListingQualityScore.listing_id == Listing.id)
                .where(Listing.owner_id == owner_id, Listing.status == ListingStatus.ACTIVE)
            )
            quality_scores = list(result.scalars().all())

        avg_listing_quality = None
        if quality_scores:
            avg_listing_quality = sum(quality_scores) / len(quality_scores)

        return ListingAggregate(
            total_listings=total_listings or 0,
            active_listings=active_listings or 0,
            avg_listing_quality=avg_listing_quality,
        )

    async def _owner_snapshot(self, owner_id: str) -> OwnerSnapshot | None:
        async with self._session_factory() as session:
            owner = await session.get(Owner, owner_id)
            if owner is None:
                return None
            return OwnerSnapshot(
                member_since=ensure_utc(owner.created_at),
                is_business_verified=owner.is_business_verified,
                is_identity_verified=owner.is_identity_verified,
            )

    @staticmethod
    def _metrics_from_row(stored: OwnerTrustMetrics, owner: Owner | None) -> TrustMetrics:
        is_verified = False
        member_since = stored.last_calculated_at
        if owner is not None:
            is_verified = owner.is_business_verified or owner.is_identity_verified
            member_since = owner.created_at

        return TrustMetrics(
            owner_id=stored.owner_id,
            trust_score=stored.trust_score,
            badges=stored.badges,
            response_metrics=ResponseMetrics(
                total_leads=stored.total_leads,
                responded_leads=stored.responded_leads,
                response_rate=stored.response_rate or 0.0,
                avg_response_time_hours=stored.avg_response_time_hours,
            ),
            review_metrics=ReviewMetrics(
                total_reviews=stored.total_reviews,
                average_rating=stored.average_rating,
                rating_distribution={
                    ReviewRating.EXCELLENT: stored.excellent_count,
                    ReviewRating.GOOD: stored.good_count,
                    ReviewRating.FAIR: stored.fair_count,
                    ReviewRating.POOR: stored.poor_count,
                    ReviewRating.VERY_POOR: stored.very_poor_count,
                },
            ),
            listing_metrics=ListingMetrics(
                total_listings=stored.total_listings,
                active_listings=stored.active_listings,
                avg_listing_quality=stored.avg_listing_quality,
            ),
            member_since=ensure_utc(member_since),
            is_verified=is_verified,
            last_calculated_at=ensure_utc(stored.last_calculated_at),
        )
