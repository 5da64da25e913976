"""Review endpoints.

GET  /v1/reviews                      - List reviews (filter by owner, reviewer, status)
POST /v1/reviews                      - Submit a review for the owner behind a lead
GET  /v1/reviews/requests             - Open review requests for the caller
GET  /v1/reviews/requests/{requestId} - One review request (caller must be its contact)
GET  /v1/reviews/{reviewId}           - One review
POST /v1/reviews/{reviewId}/respond   - Owner replies to a review (once)
POST /v1/reviews/{reviewId}/flag      - Flag a review for moderation

The caller is identified by the X-User-Id header set by the auth gateway.
"""

from fastapi import APIRouter, Depends, Path, Query

from souq_trust.routes.deps import get_caller_id, get_services
from souq_trust.schemas import (
    ActionResponse,
    CreateReviewRequest,
    CreateReviewResponse,
    FlagReviewRequest,
    PaginatedReviews,
    RespondToReviewRequest,
    Review,
    ReviewRequestInfo,
)
from souq_trust.services.container import TrustServices
from souq_trust.services.errors import NotFoundError
from souq_trust.services.trust import ReviewStatus

router = APIRouter()


@router.get("", response_model=PaginatedReviews)
async def list_reviews(
    owner_id: str | None = Query(default=None, alias="ownerId"),
    reviewer_id: str | None = Query(default=None, alias="reviewerId"),
    status: ReviewStatus | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, description="Page size (capped at 50)"),
    services: TrustServices = Depends(get_services),
) -> PaginatedReviews:
    return await services.reviews.list_reviews(
        owner_id=owner_id,
        reviewer_id=reviewer_id,
        status=status,
        page=page,
        limit=limit,
    )


@router.post("", response_model=CreateReviewResponse, status_code=201)
async def submit_review(
    body: CreateReviewRequest,
    caller_id: str = Depends(get_caller_id),
    services: TrustServices = Depends(get_services),
) -> CreateReviewResponse:
    """Submit a review. The owner's trust score is recalculated in the background."""
    review_id = await services.reviews.submit_review(
        lead_id=body.lead_id,
        reviewer_id=caller_id,
        rating=body.rating,
        title=body.title,
        comment=body.comment,
    )
    return CreateReviewResponse(review_id=review_id)


@router.get("/requests", response_model=list[ReviewRequestInfo])
async def get_pending_requests(
    caller_id: str = Depends(get_caller_id),
    services: TrustServices = Depends(get_services),
) -> list[ReviewRequestInfo]:
    return await services.reviews.get_pending_requests(caller_id)


@router.get("/requests/{request_id}", response_model=ReviewRequestInfo)
async def get_review_request(
    request_id: str = Path(min_length=1, max_length=64),
    caller_id: str = Depends(get_caller_id),
    services: TrustServices = Depends(get_services),
) -> ReviewRequestInfo:
    info = await services.reviews.get_review_request(request_id, caller_id)
    if info is None:
        raise NotFoundError("Review request not found", detail={"request_id": request_id})
    return info


@router.get("/{review_id}", response_model=Review)
async def get_review(
    review_id: str = Path(min_length=1, max_length=64),
    services: TrustServices = Depends(get_services),
) -> Review:
    review = await services.reviews.get_review(review_id)
    if review is None:
        raise NotFoundError("Review not found", detail={"review_id": review_id})
    return review


@router.post("/{review_id}/respond", response_model=ActionResponse)
async def respond_to_review(
    body: RespondToReviewRequest,
    review_id: str = Path(min_length=1, max_length=64),
    caller_id: str = Depends(get_caller_id),
    services: TrustServices = Depends(get_services),
) -> ActionResponse:
    await services.reviews.respond_to_review(review_id, caller_id, body.response)
    return ActionResponse(message="Response added successfully")


@router.post("/{review_id}/flag", response_model=ActionResponse, dependencies=[Depends(get_caller_id)])
async def flag_review(
    body: FlagReviewRequest,
    review_id: str = Path(min_length=1, max_length=64),
    services: TrustServices = Depends(get_services),
) -> ActionResponse:
    """Flag a review for moderation. Any signed-in user may flag."""
    await services.reviews.flag_review(review_id, body.reason)
    return ActionResponse(message="Review flagged for moderation")
