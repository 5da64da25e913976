"""Schemas for the review endpoints (/v1/reviews)."""

from datetime import datetime

from pydantic import BaseModel, Field

from souq_trust.services.trust import ReviewRating, ReviewStatus


class CreateReviewRequest(BaseModel):
    """Request body for POST /v1/reviews."""

    lead_id: str = Field(alias="leadId", min_length=1)
    rating: ReviewRating
    title: str | None = Field(default=None, max_length=100)
    comment: str | None = Field(default=None, max_length=2000)

    model_config = {"populate_by_name": True}


class CreateReviewResponse(BaseModel):
    success: bool = True
    message: str = "Review submitted successfully"
    review_id: str = Field(alias="reviewId")

    model_config = {"populate_by_name": True}


class RespondToReviewRequest(BaseModel):
    response: str = Field(min_length=1, max_length=2000)


class FlagReviewRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class Review(BaseModel):
    """A single review as rendered on owner profiles."""

    id: str
    lead_id: str = Field(alias="leadId")
    owner_id: str = Field(alias="ownerId")
    reviewer_id: str = Field(alias="reviewerId")
    listing_id: str | None = Field(alias="listingId", default=None)
    rating: ReviewRating
    title: str | None = None
    comment: str | None = None
    status: ReviewStatus
    is_verified: bool = Field(alias="isVerified")
    submitted_at: datetime | None = Field(alias="submittedAt", default=None)
    owner_response: str | None = Field(alias="ownerResponse", default=None)
    responded_at: datetime | None = Field(alias="respondedAt", default=None)
    response_time_hours: int | None = Field(alias="responseTimeHours", default=None)
    did_owner_respond: bool = Field(alias="didOwnerRespond")

    model_config = {"populate_by_name": True}


class Pagination(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1, le=50)
    total: int = Field(ge=0)
    total_pages: int = Field(alias="totalPages", ge=0)

    model_config = {"populate_by_name": True}


class PaginatedReviews(BaseModel):
    reviews: list[Review]
    pagination: Pagination


class ReviewRequestInfo(BaseModel):
    """Review window as shown to the contact who may submit it."""

    id: str
    lead_id: str = Field(alias="leadId")
    can_submit: bool = Field(alias="canSubmit")
    sent_at: datetime = Field(alias="sentAt")
    expired_at: datetime | None = Field(alias="expiredAt", default=None)
    listing_id: str = Field(alias="listingId")
    listing_title_en: str = Field(alias="listingTitleEn")
    listing_title_ar: str | None = Field(alias="listingTitleAr", default=None)
    owner_id: str = Field(alias="ownerId")
    owner_name: str | None = Field(alias="ownerName", default=None)

    model_config = {"populate_by_name": True}


class ReviewRequestProcessingResponse(BaseModel):
    """Response from the review-request cron endpoint."""

    success: bool = True
    processed: int
    errors: int
    expired: int
    duration_ms: int = Field(alias="durationMs")

    model_config = {"populate_by_name": True}
