"""Owner model.

An owner lists equipment and is the subject of trust metrics. The trust
engine only reads owners; verification flags are written by the
verification workflow.
"""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime, Enum, String, func
from sqlalchemy.orm import Mapped, mapped_column

from souq_trust.services.trust import VerificationStatus, utcnow
from souq_trust.stores.postgres import Base


def generate_owner_id() -> str:
    """Generate unique owner ID."""
    return str(uuid4())


class Owner(Base):
    """Marketplace user who owns listings."""

    __tablename__ = "owners"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_owner_id)

    full_name: Mapped[str | None] = mapped_column(String(200))

    # Contact identity (used to match reviewers against leads)
    phone: Mapped[str | None] = mapped_column(String(32), index=True)
    email: Mapped[str | None] = mapped_column(String(255), index=True)

    # Verification signals
    phone_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    business_verification_status: Mapped[VerificationStatus | None] = mapped_column(
        Enum(VerificationStatus),
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    @property
    def is_business_verified(self) -> bool:
        return self.business_verification_status == VerificationStatus.VERIFIED

    @property
    def is_identity_verified(self) -> bool:
        return self.phone_verified_at is not None

    def __repr__(self) -> str:
        return f"<Owner {self.id}>"
