"""Lead model.

A contact from a prospective renter/buyer about a listing. The owner's
first response timestamp is written once and never overwritten.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from souq_trust.services.trust import LeadStatus, utcnow
from souq_trust.stores.postgres import Base


def generate_lead_id() -> str:
    """Generate unique lead ID."""
    return str(uuid4())


class Lead(Base):
    """Inquiry from a renter to an owner about one listing."""

    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_lead_id)

    listing_id: Mapped[str] = mapped_column(ForeignKey("listings.id"), index=True)

    # Contact info recorded with the lead
    name: Mapped[str | None] = mapped_column(String(200))
    phone: Mapped[str | None] = mapped_column(String(32))
    email: Mapped[str | None] = mapped_column(String(255))
    message: Mapped[str | None] = mapped_column(Text)

    status: Mapped[LeadStatus] = mapped_column(Enum(LeadStatus), default=LeadStatus.NEW)

    # First response wins
    owner_responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<Lead {self.id} ({self.status.value})>"
