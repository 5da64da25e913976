"""Schemas for trust metrics and listing quality.

`TrustMetrics` and `ListingQuality` are what the scoring services return and
what the result cache stores; the `*Response` models are the enriched
payloads served by /v1/trust and /v1/listings.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from souq_trust.services.trust import ReviewRating, TrustBadge


class ListingQuality(BaseModel):
    """Completeness score for one listing."""

    listing_id: str = Field(alias="listingId")
    photo_score: int = Field(alias="photoScore", ge=0, le=100)
    description_score: int = Field(alias="descriptionScore", ge=0, le=100)
    specification_score: int = Field(alias="specificationScore", ge=0, le=100)
    overall_score: int = Field(alias="overallScore", ge=0, le=100)
    calculated_at: datetime | None = Field(alias="calculatedAt", default=None)

    model_config = {"populate_by_name": True}


class ResponseMetrics(BaseModel):
    total_leads: int = Field(alias="totalLeads", ge=0)
    responded_leads: int = Field(alias="respondedLeads", ge=0)
    response_rate: float = Field(alias="responseRate", ge=0, le=100)
    avg_response_time_hours: float | None = Field(alias="avgResponseTimeHours", default=None)

    model_config = {"populate_by_name": True}


class ReviewMetrics(BaseModel):
    total_reviews: int = Field(alias="totalReviews", ge=0)
    average_rating: float | None = Field(alias="averageRating", default=None)
    rating_distribution: dict[ReviewRating, int] = Field(alias="ratingDistribution")

    model_config = {"populate_by_name": True}


class ListingMetrics(BaseModel):
    total_listings: int = Field(alias="totalListings", ge=0)
    active_listings: int = Field(alias="activeListings", ge=0)
    avg_listing_quality: float | None = Field(alias="avgListingQuality", default=None)

    model_config = {"populate_by_name": True}


class TrustMetrics(BaseModel):
    """Full trust picture for one owner."""

    owner_id: str = Field(alias="ownerId")
    trust_score: int = Field(alias="trustScore", ge=0, le=100)
    badges: list[TrustBadge] = Field(default_factory=list)
    response_metrics: ResponseMetrics = Field(alias="responseMetrics")
    review_metrics: ReviewMetrics = Field(alias="reviewMetrics")
    listing_metrics: ListingMetrics = Field(alias="listingMetrics")
    member_since: datetime = Field(alias="memberSince")
    is_verified: bool = Field(alias="isVerified")
    last_calculated_at: datetime = Field(alias="lastCalculatedAt")

    model_config = {"populate_by_name": True}


# ============================================================
# API payloads
# ============================================================


class BadgeInfo(BaseModel):
    badge_id: TrustBadge = Field(alias="badgeId")
    label_en: str = Field(alias="labelEn")
    label_ar: str = Field(alias="labelAr")
    description_en: str = Field(alias="descriptionEn")
    description_ar: str = Field(alias="descriptionAr")
    icon: str
    color: str

    model_config = {"populate_by_name": True}


class RatingBucket(BaseModel):
    rating: ReviewRating
    count: int = Field(ge=0)
    label_en: str = Field(alias="labelEn")
    label_ar: str = Field(alias="labelAr")

    model_config = {"populate_by_name": True}


class ReviewMetricsResponse(BaseModel):
    total_reviews: int = Field(alias="totalReviews")
    average_rating: float | None = Field(alias="averageRating", default=None)
    rating_distribution: list[RatingBucket] = Field(alias="ratingDistribution")

    model_config = {"populate_by_name": True}


class TrustMetricsResponse(BaseModel):
    """Response payload for GET /v1/trust/{owner_id}."""

    owner_id: str = Field(alias="ownerId")
    trust_score: int = Field(alias="trustScore", ge=0, le=100)
    badges: list[BadgeInfo]
    response_metrics: ResponseMetrics = Field(alias="responseMetrics")
    review_metrics: ReviewMetricsResponse = Field(alias="reviewMetrics")
    listing_metrics: ListingMetrics = Field(alias="listingMetrics")
    member_since: datetime = Field(alias="memberSince")
    is_verified: bool = Field(alias="isVerified")
    last_calculated_at: datetime = Field(alias="lastCalculatedAt")

    model_config = {"populate_by_name": True}


class ListingQualityResponse(ListingQuality):
    """Response payload for GET /v1/listings/{listing_id}/quality."""

    message: str | None = None
