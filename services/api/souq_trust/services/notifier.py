"""Review request notifications.

The trust engine only decides which review requests are due; delivery
(SMS, email, push) belongs to whoever implements `ReviewRequestNotifier`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
import logging

logger = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class DueReviewRequest:
    """A review request whose send time has passed, with display context."""

    request_id: str
    lead_id: str
    reviewer_phone: str | None
    reviewer_email: str | None
    sent_at: datetime
    expired_at: datetime | None
    listing_id: str
    listing_title_en: str
    owner_id: str
    owner_name: str | None


class ReviewRequestNotifier(ABC):
    """Delivers a review invitation to the contact behind a lead."""

    @abstractmethod
    async def notify(self, request: DueReviewRequest) -> None:
        """Send the invitation; raising marks the request as failed for this run."""


class LoggingNotifier(ReviewRequestNotifier):
    """Logs the invitation instead of sending it (default until a channel is wired)."""

    async def notify(self, request: DueReviewRequest) -> None:
        recipient = request.reviewer_phone or request.reviewer_email
        logger.info(
            f"[ReviewRequest] Would send review request to {recipient} "
            f"for listing \"{request.listing_title_en}\" owned by {request.owner_name}"
        )
