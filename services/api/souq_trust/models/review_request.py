"""ReviewRequest model.

A time-boxed window in which the contact behind a lead may review the
owner. At most one request per lead; expiry is derived at read time from
`expired_at` and never written.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from souq_trust.services.trust import ensure_utc
from souq_trust.stores.postgres import Base


def generate_review_request_id() -> str:
    """Generate unique review request ID."""
    return str(uuid4())


class ReviewRequest(Base):
    """Review eligibility window for one lead."""

    __tablename__ = "review_requests"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_review_request_id,
    )

    # Unique: concurrent creators rely on this constraint for idempotency
    lead_id: Mapped[str] = mapped_column(ForeignKey("leads.id"), unique=True, index=True)

    # Copied from the lead so requests can be matched to a user without joins
    reviewer_phone: Mapped[str | None] = mapped_column(String(32), index=True)
    reviewer_email: Mapped[str | None] = mapped_column(String(255), index=True)

    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def is_expired(self, now: datetime) -> bool:
        expired_at = ensure_utc(self.expired_at)
        return self.completed_at is None and expired_at is not None and now > expired_at

    def is_due(self, now: datetime) -> bool:
        return ensure_utc(self.sent_at) <= now

    def can_submit(self, now: datetime) -> bool:
        expired_at = ensure_utc(self.expired_at)
        return self.completed_at is None and self.is_due(now) and (expired_at is None or expired_at > now)

    def __repr__(self) -> str:
        return f"<ReviewRequest {self.id} lead={self.lead_id}>"
