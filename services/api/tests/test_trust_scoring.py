"""Tests for owner trust scoring and badges."""

from datetime import timedelta

import pytest

from souq_trust.models import OwnerReview
from souq_trust.services.errors import NotFoundError
from souq_trust.services.trust import (
    LeadStatus,
    ListingStatus,
    ReviewRating,
    ReviewStatus,
    TrustBadge,
    VerificationStatus,
    utcnow,
)
from souq_trust.services.trust_scoring import (
    calculate_badges,
    calculate_response_score,
    calculate_review_score,
    calculate_trust_score,
    rating_distribution,
)
from souq_trust.stores.postgres import get_session
from souq_trust.stores.redis import trust_metrics_key


class TestTrustScore:
    def test_neutral_owner_with_no_data(self):
        score = calculate_trust_score(
            response_rate=100,
            avg_response_time_hours=None,
            average_rating=None,
            total_reviews=0,
            avg_listing_quality=None,
            is_verified=False,
        )
        assert score == 65

    def test_verification_adds_flat_bonus(self):
        score = calculate_trust_score(
            response_rate=100,
            avg_response_time_hours=None,
            average_rating=None,
            total_reviews=0,
            avg_listing_quality=None,
            is_verified=True,
        )
        assert score == 75

    @pytest.mark.parametrize("response_rate", [0, 37.5, 100])
    @pytest.mark.parametrize("avg_hours", [None, 0.2, 1.5, 12, 72])
    @pytest.mark.parametrize("average_rating,total_reviews", [(None, 0), (1.0, 3), (5.0, 1), (5.0, 40)])
    @pytest.mark.parametrize("avg_quality", [None, 0, 100])
    @pytest.mark.parametrize("is_verified", [False, True])
    def test_score_stays_in_range(
        self, response_rate, avg_hours, average_rating, total_reviews, avg_quality, is_verified
    ):
        score = calculate_trust_score(
            response_rate=response_rate,
            avg_response_time_hours=avg_hours,
            average_rating=average_rating,
            total_reviews=total_reviews,
            avg_listing_quality=avg_quality,
            is_verified=is_verified,
        )
        assert isinstance(score, int)
        assert 0 <= score <= 100


class TestComponentScores:
    def test_response_time_adjustments(self):
        assert calculate_response_score(80, 0.5) == 90
        assert calculate_response_score(80, 1.5) == 85
        assert calculate_response_score(80, 12) == 80
        assert calculate_response_score(80, 30) == 70
        assert calculate_response_score(80, None) == 80

    def test_response_score_clamped(self):
        assert calculate_response_score(100, 0.1) == 100
        assert calculate_response_score(5, 48) == 0

    def test_single_review_is_dampened(self):
        assert calculate_review_score(5.0, 1) == pytest.approx(20)

    def test_five_reviews_are_not_dampened(self):
        assert calculate_review_score(5.0, 5) == pytest.approx(100)
        assert calculate_review_score(3.0, 8) == pytest.approx(50)

    def test_no_reviews_prior(self):
        assert calculate_review_score(None, 0) == 50


class TestBadges:
    def _badges(self, **overrides):
        params = {
            "response_rate": 0,
            "avg_response_time_hours": None,
            "average_rating": None,
            "total_reviews": 0,
            "is_business_verified": False,
            "is_identity_verified": False,
        }
        params.update(overrides)
        return calculate_badges(**params)

    def test_no_signals_no_badges(self):
        assert self._badges() == []

    def test_top_rated_needs_ten_reviews(self):
        assert TrustBadge.TOP_RATED not in self._badges(average_rating=5.0, total_reviews=9)
        assert TrustBadge.TOP_RATED in self._badges(average_rating=4.5, total_reviews=10)

    def test_reliable_threshold(self):
        assert TrustBadge.RELIABLE in self._badges(response_rate=95)
        assert TrustBadge.RELIABLE not in self._badges(response_rate=94.9)

    def test_fast_responder_threshold(self):
        assert TrustBadge.FAST_RESPONDER in self._badges(avg_response_time_hours=2)
        assert TrustBadge.FAST_RESPONDER not in self._badges(avg_response_time_hours=2.01)

    def test_verification_badges_are_independent(self):
        assert self._badges(is_business_verified=True) == [TrustBadge.VERIFIED_BUSINESS]
        assert self._badges(is_identity_verified=True) == [TrustBadge.VERIFIED_IDENTITY]

    def test_featured_seller_never_derived(self):
        badges = self._badges(
            response_rate=100,
            avg_response_time_hours=0.1,
            average_rating=5.0,
            total_reviews=50,
            is_business_verified=True,
            is_identity_verified=True,
        )
        assert TrustBadge.FEATURED_SELLER not in badges
        assert len(badges) == 5


def test_rating_distribution_has_every_bucket():
    distribution = rating_distribution([ReviewRating.GOOD, ReviewRating.GOOD, ReviewRating.POOR])
    assert distribution[ReviewRating.GOOD] == 2
    assert distribution[ReviewRating.POOR] == 1
    assert distribution[ReviewRating.EXCELLENT] == 0
    assert set(distribution) == set(ReviewRating)


# ============================================================
# Service
# ============================================================


@pytest.mark.asyncio
async def test_recalculate_new_owner_gets_neutral_score(seed, services):
    owner_id = await seed.owner()

    metrics = await services.trust_scoring.recalculate(owner_id)

    assert metrics.trust_score == 65
    assert metrics.badges == []
    assert metrics.response_metrics.total_leads == 0
    assert metrics.response_metrics.response_rate == 0
    assert metrics.review_metrics.average_rating is None
    assert metrics.listing_metrics.avg_listing_quality is None
    assert metrics.is_verified is False


@pytest.mark.asyncio
async def test_recalculate_verified_owner(seed, services):
    owner_id = await seed.owner(phone_verified=True, business_status=VerificationStatus.VERIFIED)

    metrics = await services.trust_scoring.recalculate(owner_id)

    assert metrics.trust_score == 75
    assert metrics.is_verified is True
    assert metrics.badges == [TrustBadge.VERIFIED_BUSINESS, TrustBadge.VERIFIED_IDENTITY]


@pytest.mark.asyncio
async def test_fast_but_not_reliable(seed, services):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    base = utcnow() - timedelta(days=2)
    for _ in range(9):
        await seed.lead(listing_id, created_at=base, owner_responded_at=base + timedelta(minutes=30))
    await seed.lead(listing_id, created_at=base)

    metrics = await services.trust_scoring.recalculate(owner_id)

    assert metrics.response_metrics.total_leads == 10
    assert metrics.response_metrics.responded_leads == 9
    assert metrics.response_metrics.response_rate == pytest.approx(90)
    assert metrics.response_metrics.avg_response_time_hours == pytest.approx(0.5)
    assert TrustBadge.FAST_RESPONDER in metrics.badges
    assert TrustBadge.RELIABLE not in metrics.badges


@pytest.mark.asyncio
async def test_status_past_new_counts_as_responded(seed, services):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    for _ in range(19):
        await seed.lead(listing_id, status=LeadStatus.CONTACTED)
    await seed.lead(listing_id)

    metrics = await services.trust_scoring.recalculate(owner_id)

    assert metrics.response_metrics.response_rate == pytest.approx(95)
    assert metrics.response_metrics.avg_response_time_hours is None
    assert TrustBadge.RELIABLE in metrics.badges
    assert TrustBadge.FAST_RESPONDER not in metrics.badges


@pytest.mark.asyncio
async def test_only_submitted_reviews_count(seed, services):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    await seed.reviewed_lead(owner_id, listing_id, ReviewRating.EXCELLENT)
    flagged_id = await seed.reviewed_lead(owner_id, listing_id, ReviewRating.VERY_POOR)

    async with get_session() as session:
        review = await session.get(OwnerReview, flagged_id)
        review.status = ReviewStatus.FLAGGED

    metrics = await services.trust_scoring.recalculate(owner_id)

    assert metrics.review_metrics.total_reviews == 1
    assert metrics.review_metrics.average_rating == 5.0
    assert metrics.review_metrics.rating_distribution[ReviewRating.VERY_POOR] == 0


@pytest.mark.asyncio
async def test_listing_quality_uses_active_listings(seed, services):
    owner_id = await seed.owner()
    active_a = await seed.listing(owner_id)
    active_b = await seed.listing(owner_id)
    paused = await seed.listing(owner_id, status=ListingStatus.PAUSED)
    await seed.listing(owner_id)  # active but never scored
    await seed.quality_score(active_a, 80)
    await seed.quality_score(active_b, 40)
    await seed.quality_score(paused, 0)

    metrics = await services.trust_scoring.recalculate(owner_id)

    assert metrics.listing_metrics.total_listings == 4
    assert metrics.listing_metrics.active_listings == 3
    assert metrics.listing_metrics.avg_listing_quality == pytest.approx(60)


@pytest.mark.asyncio
async def test_recalculate_is_idempotent(seed, services):
    owner_id = await seed.owner(phone_verified=True)
    listing_id = await seed.listing(owner_id)
    await seed.quality_score(listing_id, 70)
    await seed.reviewed_lead(owner_id, listing_id, ReviewRating.GOOD)

    first = await services.trust_scoring.recalculate(owner_id)
    second = await services.trust_scoring.recalculate(owner_id)

    exclude = {"last_calculated_at"}
    assert first.model_dump(exclude=exclude) == second.model_dump(exclude=exclude)


@pytest.mark.asyncio
async def test_recalculate_unknown_owner(db, services):
    with pytest.raises(NotFoundError):
        await services.trust_scoring.recalculate("missing-owner")


@pytest.mark.asyncio
async def test_get_metrics_before_first_calculation(seed, services):
    owner_id = await seed.owner()
    assert await services.trust_scoring.get_metrics(owner_id) is None


@pytest.mark.asyncio
async def test_get_metrics_reads_back_stored_row(seed, services, cache):
    owner_id = await seed.owner(phone_verified=True)
    listing_id = await seed.listing(owner_id)
    await seed.reviewed_lead(owner_id, listing_id, ReviewRating.FAIR)

    calculated = await services.trust_scoring.recalculate(owner_id)
    assert trust_metrics_key(owner_id) in cache.deleted

    stored = await services.trust_scoring.get_metrics(owner_id)

    assert stored.trust_score == calculated.trust_score
    assert stored.badges == calculated.badges
    assert stored.review_metrics.rating_distribution == calculated.review_metrics.rating_distribution
    assert stored.is_verified is True
    assert trust_metrics_key(owner_id) in cache.data


@pytest.mark.asyncio
async def test_recalculate_invalidates_cached_metrics(seed, services, cache):
    owner_id = await seed.owner()
    await services.trust_scoring.recalculate(owner_id)
    await services.trust_scoring.get_metrics(owner_id)
    assert trust_metrics_key(owner_id) in cache.data

    await services.trust_scoring.recalculate(owner_id)

    assert trust_metrics_key(owner_id) not in cache.data
