"""Admin and cron endpoints.

POST /v1/admin/review-requests/process  - Notify due review requests, count expired ones
POST /v1/admin/listings/quality/recalculate - Recalculate quality for all active listings
POST /v1/admin/trust/{ownerId}/recalculate  - Recalculate one owner's trust metrics

Protected by `Authorization: Bearer <CRON_SECRET>` when CRON_SECRET is set.
"""

import logging
import time

from fastapi import APIRouter, Depends, Header, HTTPException, Path
from pydantic import BaseModel

from souq_trust.routes.deps import get_services
from souq_trust.routes.trust import build_trust_response
from souq_trust.schemas import ReviewRequestProcessingResponse, TrustMetricsResponse
from souq_trust.services.container import TrustServices
from souq_trust.services.notifier import LoggingNotifier, ReviewRequestNotifier
from souq_trust.settings import get_settings

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


def require_cron_secret(authorization: str | None = Header(default=None)) -> None:
    """Reject the call unless it carries the configured cron secret."""
    cron_secret = get_settings().cron_secret
    if cron_secret and authorization != f"Bearer {cron_secret}":
        raise HTTPException(status_code=403, detail="Invalid cron secret")


def get_notifier() -> ReviewRequestNotifier:
    """Notifier used for due review requests (override to plug in SMS/email)."""
    return LoggingNotifier()


class QualityRecalculationResponse(BaseModel):
    success: bool = True
    processed: int
    errors: int


@router.post(
    "/review-requests/process",
    response_model=ReviewRequestProcessingResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def process_review_requests(
    services: TrustServices = Depends(get_services),
    notifier: ReviewRequestNotifier = Depends(get_notifier),
) -> ReviewRequestProcessingResponse:
    """Process due review requests (cron)."""
    start = time.monotonic()

    stats = await services.reviews.process_pending_review_requests(
        notifier,
        batch_size=get_settings().review_request_batch_size,
    )
    expired = await services.reviews.expire_old_requests()

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        f"Review request cron: processed={stats.processed} errors={stats.errors} "
        f"expired={expired} duration_ms={duration_ms}"
    )
    return ReviewRequestProcessingResponse(
        processed=stats.processed,
        errors=stats.errors,
        expired=expired,
        duration_ms=duration_ms,
    )


@router.post(
    "/listings/quality/recalculate",
    response_model=QualityRecalculationResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def recalculate_listing_quality(
    services: TrustServices = Depends(get_services),
) -> QualityRecalculationResponse:
    stats = await services.quality_scoring.recalculate_all()
    return QualityRecalculationResponse(processed=stats.processed, errors=stats.errors)


@router.post(
    "/trust/{owner_id}/recalculate",
    response_model=TrustMetricsResponse,
    dependencies=[Depends(require_cron_secret)],
)
async def recalculate_owner_trust(
    owner_id: str = Path(min_length=1, max_length=64),
    services: TrustServices = Depends(get_services),
) -> TrustMetricsResponse:
    metrics = await services.trust_scoring.recalculate(owner_id)
    return build_trust_response(metrics)
