"""Pydantic schemas for service results and API request/response validation."""

from souq_trust.schemas.common import ActionResponse, ErrorDetail, ErrorResponse
from souq_trust.schemas.reviews import (
    CreateReviewRequest,
    CreateReviewResponse,
    FlagReviewRequest,
    PaginatedReviews,
    Pagination,
    RespondToReviewRequest,
    Review,
    ReviewRequestInfo,
    ReviewRequestProcessingResponse,
)
from souq_trust.schemas.trust import (
    BadgeInfo,
    ListingMetrics,
    ListingQuality,
    ListingQualityResponse,
    RatingBucket,
    ResponseMetrics,
    ReviewMetrics,
    ReviewMetricsResponse,
    TrustMetrics,
    TrustMetricsResponse,
)

__all__ = [
    "ActionResponse",
    "ErrorDetail",
    "ErrorResponse",
    "CreateReviewRequest",
    "CreateReviewResponse",
    "FlagReviewRequest",
    "PaginatedReviews",
    "Pagination",
    "RespondToReviewRequest",
    "Review",
    "ReviewRequestInfo",
    "ReviewRequestProcessingResponse",
    "BadgeInfo",
    "ListingMetrics",
    "ListingQuality",
    "ListingQualityResponse",
    "RatingBucket",
    "ResponseMetrics",
    "ReviewMetrics",
    "ReviewMetricsResponse",
    "TrustMetrics",
    "TrustMetricsResponse",
]
