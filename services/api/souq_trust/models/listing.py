"""Listing model.

An equipment listing owned by an Owner. The quality scorer reads image
count, bilingual descriptions and the free-form specification map.
"""

from datetime import datetime
import json
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from souq_trust.services.trust import ListingStatus, utcnow
from souq_trust.stores.postgres import Base


def generate_listing_id() -> str:
    """Generate unique listing ID."""
    return str(uuid4())


class Listing(Base):
    """Equipment listing."""

    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_listing_id)

    owner_id: Mapped[str] = mapped_column(ForeignKey("owners.id"), index=True)

    # Bilingual content
    title_en: Mapped[str] = mapped_column(String(200))
    title_ar: Mapped[str | None] = mapped_column(String(200))
    description_en: Mapped[str] = mapped_column(Text, default="")
    description_ar: Mapped[str | None] = mapped_column(Text)

    # Specifications (JSON object serialized as text to keep migrations simple)
    specifications_json: Mapped[str | None] = mapped_column(Text)

    image_count: Mapped[int] = mapped_column(Integer, default=0)

    status: Mapped[ListingStatus] = mapped_column(
        Enum(ListingStatus),
        default=ListingStatus.DRAFT,
        index=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def specifications(self) -> Any:
        """Decoded specification map (None when absent or unparseable)."""
        if not self.specifications_json:
            return None
        try:
            return json.loads(self.specifications_json)
        except (json.JSONDecodeError, TypeError):
            return None

    def __repr__(self) -> str:
        return f"<Listing {self.id} ({self.status.value})>"
