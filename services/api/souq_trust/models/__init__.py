"""SQLAlchemy ORM models.

Models represent database tables:
- owners: Users who list equipment (verification flags)
- listings: Equipment listings
- leads: Renter inquiries about a listing
- review_requests: Review eligibility windows (one per lead)
- owner_reviews: Reviews of owners (one per lead)
- listing_quality_scores: Per-listing completeness scores
- owner_trust_metrics: Pre-computed trust aggregates per owner
"""

from souq_trust.models.owner import Owner
from souq_trust.models.listing import Listing
from souq_trust.models.lead import Lead
from souq_trust.models.review_request import ReviewRequest
from souq_trust.models.owner_review import OwnerReview
from souq_trust.models.listing_quality_score import ListingQualityScore
from souq_trust.models.owner_trust_metrics import OwnerTrustMetrics

__all__ = [
    "Owner",
    "Listing",
    "Lead",
    "ReviewRequest",
    "OwnerReview",
    "ListingQualityScore",
    "OwnerTrustMetrics",
]
