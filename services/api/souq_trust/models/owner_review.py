"""OwnerReview model.

One review per lead. Response-time fields are computed from the lead at
submission time and frozen.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from souq_trust.services.trust import ReviewRating, ReviewStatus
from souq_trust.stores.postgres import Base


def generate_review_id() -> str:
    """Generate unique review ID."""
    return str(uuid4())


class OwnerReview(Base):
    """Review of an owner left by the contact behind a lead."""

    __tablename__ = "owner_reviews"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_review_id)

    # Relations (lead_id unique: a lead produces at most one review)
    lead_id: Mapped[str] = mapped_column(ForeignKey("leads.id"), unique=True, index=True)
    owner_id: Mapped[str] = mapped_column(ForeignKey("owners.id"), index=True)
    reviewer_id: Mapped[str] = mapped_column(ForeignKey("owners.id"), index=True)

    # Content
    rating: Mapped[ReviewRating] = mapped_column(Enum(ReviewRating))
    title: Mapped[str | None] = mapped_column(String(100))
    comment: Mapped[str | None] = mapped_column(Text)

    # Moderation
    status: Mapped[ReviewStatus] = mapped_column(
        Enum(ReviewStatus),
        default=ReviewStatus.SUBMITTED,
        index=True,
    )
    flagged_reason: Mapped[str | None] = mapped_column(Text)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=True)

    # Lifecycle timestamps
    requested_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)

    # Frozen at submission from the lead's response timestamp
    response_time_hours: Mapped[int | None] = mapped_column(Integer)
    did_owner_respond: Mapped[bool] = mapped_column(Boolean, default=False)

    # Owner reply (exactly one, no edits)
    owner_response: Mapped[str | None] = mapped_column(Text)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<OwnerReview {self.id} {self.rating.value}>"
