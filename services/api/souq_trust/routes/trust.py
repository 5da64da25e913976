"""Owner trust endpoints.

GET /v1/trust/{ownerId} - Trust score, badges and metrics for an owner.

Public: trust metrics help renters decide whom to contact.
"""

from fastapi import APIRouter, Depends, Path

from souq_trust.routes.deps import get_services
from souq_trust.schemas import (
    BadgeInfo,
    ListingMetrics,
    RatingBucket,
    ResponseMetrics,
    ReviewMetricsResponse,
    TrustMetrics,
    TrustMetricsResponse,
)
from souq_trust.services.container import TrustServices
from souq_trust.services.errors import NotFoundError
from souq_trust.services.trust import BADGE_DEFINITIONS, RATING_LABELS, ReviewRating

router = APIRouter()


def _round_or_none(value: float | None, digits: int = 1) -> float | None:
    return round(value, digits) if value is not None else None


def build_trust_response(metrics: TrustMetrics) -> TrustMetricsResponse:
    """Enrich stored metrics with badge and rating labels for display."""
    badges = []
    for badge in metrics.badges:
        definition = BADGE_DEFINITIONS[badge]
        badges.append(
            BadgeInfo(
                badge_id=badge,
                label_en=definition.label_en,
                label_ar=definition.label_ar,
                description_en=definition.description_en,
                description_ar=definition.description_ar,
                icon=definition.icon,
                color=definition.color,
            )
        )

    distribution = [
        RatingBucket(
            rating=rating,
            count=metrics.review_metrics.rating_distribution.get(rating, 0),
            label_en=RATING_LABELS[rating]["en"],
            label_ar=RATING_LABELS[rating]["ar"],
        )
        for rating in ReviewRating
    ]

    listing_quality = metrics.listing_metrics.avg_listing_quality

    return TrustMetricsResponse(
        owner_id=metrics.owner_id,
        trust_score=metrics.trust_score,
        badges=badges,
        response_metrics=ResponseMetrics(
            total_leads=metrics.response_metrics.total_leads,
            responded_leads=metrics.response_metrics.responded_leads,
            response_rate=round(metrics.response_metrics.response_rate),
            avg_response_time_hours=_round_or_none(metrics.response_metrics.avg_response_time_hours),
        ),
        review_metrics=ReviewMetricsResponse(
            total_reviews=metrics.review_metrics.total_reviews,
            average_rating=_round_or_none(metrics.review_metrics.average_rating),
            rating_distribution=distribution,
        ),
        listing_metrics=ListingMetrics(
            total_listings=metrics.listing_metrics.total_listings,
            active_listings=metrics.listing_metrics.active_listings,
            avg_listing_quality=round(listing_quality) if listing_quality is not None else None,
        ),
        member_since=metrics.member_since,
        is_verified=metrics.is_verified,
        last_calculated_at=metrics.last_calculated_at,
    )


@router.get("/{owner_id}", response_model=TrustMetricsResponse)
async def get_owner_trust(
    owner_id: str = Path(description="Owner ID", min_length=1, max_length=64),
    services: TrustServices = Depends(get_services),
) -> TrustMetricsResponse:
    """Get trust metrics for an owner.

    Raises:
        NotFoundError (404): Metrics were never calculated for this owner.
    """
    metrics = await services.trust_scoring.get_metrics(owner_id)
    if metrics is None:
        raise NotFoundError("Trust metrics not found", detail={"owner_id": owner_id})
    return build_trust_response(metrics)
