"""Shared trust types and thresholds.

Trust Score (0-100) is a composite metric based on:
- Lead responsiveness (response rate and average response time)
- Review ratings (from renters who actually contacted the owner)
- Listing quality (mean completeness of the owner's active listings)
- Verification status (business documents or verified phone)

Thresholds here are fixed product rules, not call-site options.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import math


class VerificationStatus(Enum):
    """Business (CR/VAT) verification status."""

    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


class ListingStatus(Enum):
    """Listing lifecycle status."""

    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"


class LeadStatus(Enum):
    """Lead status. Anything past NEW means the owner engaged."""

    NEW = "NEW"
    VIEWED = "VIEWED"
    CONTACTED = "CONTACTED"
    CONVERTED = "CONVERTED"
    CLOSED = "CLOSED"


class ReviewRating(Enum):
    """Five-point ordinal review scale."""

    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    FAIR = "FAIR"
    POOR = "POOR"
    VERY_POOR = "VERY_POOR"


class ReviewStatus(Enum):
    """Review moderation status."""

    PENDING = "PENDING"
    SUBMITTED = "SUBMITTED"
    RESPONDED = "RESPONDED"
    FLAGGED = "FLAGGED"


class TrustBadge(Enum):
    """Named badges. FEATURED_SELLER is granted manually, never derived."""

    VERIFIED_BUSINESS = "VERIFIED_BUSINESS"
    VERIFIED_IDENTITY = "VERIFIED_IDENTITY"
    FAST_RESPONDER = "FAST_RESPONDER"
    RELIABLE = "RELIABLE"
    TOP_RATED = "TOP_RATED"
    FEATURED_SELLER = "FEATURED_SELLER"


# ============================================================
# Ratings
# ============================================================

RATING_VALUES: dict[ReviewRating, int] = {
    ReviewRating.EXCELLENT: 5,
    ReviewRating.GOOD: 4,
    ReviewRating.FAIR: 3,
    ReviewRating.POOR: 2,
    ReviewRating.VERY_POOR: 1,
}

RATING_LABELS: dict[ReviewRating, dict[str, str]] = {
    ReviewRating.EXCELLENT: {"en": "Excellent", "ar": "ممتاز"},
    ReviewRating.GOOD: {"en": "Good", "ar": "جيد"},
    ReviewRating.FAIR: {"en": "Fair", "ar": "متوسط"},
    ReviewRating.POOR: {"en": "Poor", "ar": "ضعيف"},
    ReviewRating.VERY_POOR: {"en": "Very Poor", "ar": "سيء جداً"},
}


# ============================================================
# Badges
# ============================================================


@dataclass(frozen=True)
class BadgeDefinition:
    """Display metadata for a badge."""

    badge: TrustBadge
    label_en: str
    label_ar: str
    description_en: str
    description_ar: str
    icon: str  # Lucide icon name
    color: str


BADGE_DEFINITIONS: dict[TrustBadge, BadgeDefinition] = {
    TrustBadge.VERIFIED_BUSINESS: BadgeDefinition(
        badge=TrustBadge.VERIFIED_BUSINESS,
        label_en="Verified Business",
        label_ar="نشاط تجاري موثق",
        description_en="CR or VAT documents verified",
        description_ar="تم التحقق من مستندات السجل التجاري أو ضريبة القيمة المضافة",
        icon="ShieldCheck",
        color="blue",
    ),
    TrustBadge.VERIFIED_IDENTITY: BadgeDefinition(
        badge=TrustBadge.VERIFIED_IDENTITY,
        label_en="Verified Identity",
        label_ar="هوية موثقة",
        description_en="Phone number verified",
        description_ar="تم التحقق من رقم الهاتف",
        icon="Verified",
        color="green",
    ),
    TrustBadge.FAST_RESPONDER: BadgeDefinition(
        badge=TrustBadge.FAST_RESPONDER,
        label_en="Fast Responder",
        label_ar="استجابة سريعة",
        description_en="Responds to inquiries within 2 hours on average",
        description_ar="يستجيب للاستفسارات خلال ساعتين في المتوسط",
        icon="Clock",
        color="purple",
    ),
    TrustBadge.RELIABLE: BadgeDefinition(
        badge=TrustBadge.RELIABLE,
        label_en="Reliable",
        label_ar="موثوق",
        description_en="Responds to 95%+ of inquiries",
        description_ar="يستجيب لأكثر من 95% من الاستفسارات",
        icon="ShieldCheck",
        color="amber",
    ),
    TrustBadge.TOP_RATED: BadgeDefinition(
        badge=TrustBadge.TOP_RATED,
        label_en="Top Rated",
        label_ar="الأعلى تقييماً",
        description_en="4.5+ star rating with 10+ reviews",
        description_ar="تقييم 4.5+ نجمة مع أكثر من 10 تقييمات",
        icon="Star",
        color="yellow",
    ),
    TrustBadge.FEATURED_SELLER: BadgeDefinition(
        badge=TrustBadge.FEATURED_SELLER,
        label_en="Featured Seller",
        label_ar="بائع مميز",
        description_en="Premium seller with priority placement",
        description_ar="بائع مميز مع أولوية في الظهور",
        icon="Star",
        color="rose",
    ),
}


# ============================================================
# Thresholds
# ============================================================

# Badge thresholds
FAST_RESPONDER_MAX_HOURS = 2
RELIABLE_MIN_RATE = 95
TOP_RATED_MIN_RATING = 4.5
TOP_RATED_MIN_REVIEWS = 10

# Trust score weights
WEIGHT_RESPONSE = 0.40
WEIGHT_REVIEWS = 0.30
WEIGHT_LISTING_QUALITY = 0.20
VERIFICATION_BONUS = 10

# Neutral priors when a signal has no data yet
NO_LEADS_RESPONSE_SCORE = 100
NO_REVIEWS_SCORE = 50
NO_LISTINGS_SCORE = 50
REVIEW_DAMPENING_MIN_REVIEWS = 5

# Response-time adjustments (hours -> points)
RESPONSE_TIME_VERY_FAST_HOURS = 1
RESPONSE_TIME_VERY_FAST_BONUS = 10
RESPONSE_TIME_FAST_BONUS = 5
RESPONSE_TIME_SLOW_HOURS = 24
RESPONSE_TIME_SLOW_PENALTY = -10

# Review eligibility
REVIEW_DELAY_DAYS = 7
REVIEW_EXPIRY_DAYS = 30

# Listing quality weights
WEIGHT_PHOTOS = 0.40
WEIGHT_DESCRIPTION = 0.35
WEIGHT_SPECIFICATIONS = 0.25


# ============================================================
# Photo scoring
# ============================================================

PHOTO_SCORE_TABLE: dict[int, int] = {
    0: 0,
    1: 20,
    2: 40,
    3: 60,
    4: 80,
    5: 100,
}


def get_photo_score(image_count: int) -> int:
    """Get photo score based on image count (flat cap at 5 photos)."""
    if image_count >= 5:
        return 100
    return PHOTO_SCORE_TABLE.get(image_count, 0)


# ============================================================
# Time helpers
# ============================================================


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the store."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounding up (52.5 -> 53)."""
    return math.floor(value + 0.5)
