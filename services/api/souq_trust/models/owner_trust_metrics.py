"""OwnerTrustMetrics model.

Pre-computed trust aggregates for one owner. Every recalculation replaces
the whole row; nothing here is incremented in place.
"""

from datetime import datetime
import json

from sqlalchemy import DateTime, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from souq_trust.services.trust import TrustBadge, utcnow
from souq_trust.stores.postgres import Base


class OwnerTrustMetrics(Base):
    """Trust score, badges and the aggregates they were derived from."""

    __tablename__ = "owner_trust_metrics"

    owner_id: Mapped[str] = mapped_column(ForeignKey("owners.id"), primary_key=True)

    trust_score: Mapped[int] = mapped_column(Integer, default=0, index=True)  # 0-100

    # Badge set (JSON array of TrustBadge values)
    badges_json: Mapped[str] = mapped_column(Text, default="[]")

    # Response metrics
    total_leads: Mapped[int] = mapped_column(Integer, default=0)
    responded_leads: Mapped[int] = mapped_column(Integer, default=0)
    response_rate: Mapped[float] = mapped_column(Float, default=0.0)
    avg_response_time_hours: Mapped[float | None] = mapped_column(Float)

    # Review metrics
    total_reviews: Mapped[int] = mapped_column(Integer, default=0)
    average_rating: Mapped[float | None] = mapped_column(Float)
    excellent_count: Mapped[int] = mapped_column(Integer, default=0)
    good_count: Mapped[int] = mapped_column(Integer, default=0)
    fair_count: Mapped[int] = mapped_column(Integer, default=0)
    poor_count: Mapped[int] = mapped_column(Integer, default=0)
    very_poor_count: Mapped[int] = mapped_column(Integer, default=0)

    # Listing metrics
    total_listings: Mapped[int] = mapped_column(Integer, default=0)
    active_listings: Mapped[int] = mapped_column(Integer, default=0)
    avg_listing_quality: Mapped[float | None] = mapped_column(Float)

    last_calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def badges(self) -> list[TrustBadge]:
        try:
            raw = json.loads(self.badges_json or "[]")
        except json.JSONDecodeError:
            return []
        return [TrustBadge(b) for b in raw if b in TrustBadge._value2member_map_]

    def __repr__(self) -> str:
        return f"<OwnerTrustMetrics {self.owner_id} score={self.trust_score}>"
