"""ListingQualityScore model.

Keyed 1:1 with a listing; overwritten in full on every recalculation.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from souq_trust.services.trust import utcnow
from souq_trust.stores.postgres import Base


class ListingQualityScore(Base):
    """Completeness score for one listing."""

    __tablename__ = "listing_quality_scores"

    listing_id: Mapped[str] = mapped_column(ForeignKey("listings.id"), primary_key=True)

    photo_score: Mapped[int] = mapped_column(Integer, default=0)
    description_score: Mapped[int] = mapped_column(Integer, default=0)
    specification_score: Mapped[int] = mapped_column(Integer, default=0)
    overall_score: Mapped[int] = mapped_column(Integer, default=0, index=True)

    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<ListingQualityScore {self.listing_id} {self.overall_score}>"
