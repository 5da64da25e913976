"""Listing quality endpoints.

GET /v1/listings/{listingId}/quality - Completeness score for a listing.
"""

from fastapi import APIRouter, Depends, Path

from souq_trust.routes.deps import get_services
from souq_trust.schemas import ListingQualityResponse
from souq_trust.services.container import TrustServices

router = APIRouter()


@router.get("/{listing_id}/quality", response_model=ListingQualityResponse)
async def get_listing_quality(
    listing_id: str = Path(description="Listing ID", min_length=1, max_length=64),
    services: TrustServices = Depends(get_services),
) -> ListingQualityResponse:
    """Get the stored quality score, or zeros if it was never calculated."""
    quality = await services.quality_scoring.get_score(listing_id)
    if quality is None:
        return ListingQualityResponse(
            listing_id=listing_id,
            photo_score=0,
            description_score=0,
            specification_score=0,
            overall_score=0,
            message="Quality score not yet calculated",
        )
    return ListingQualityResponse(**quality.model_dump())
