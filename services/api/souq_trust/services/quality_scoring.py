"""Quality scoring service: listing completeness → 0-100 score.

Scores are based on:
- Photos (count, flat cap at 5)
- Description (English length, bonus for a full Arabic description)
- Specifications (number of filled fields in the free-form map)

Overall = photos 40% + description 35% + specifications 25%.

Scoring is a pure function of the listing. Persisting the score is an
upsert that overwrites the whole row; the owner's trust metrics embed the
mean quality score, so callers recompute those separately.
"""

from dataclasses import dataclass
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from souq_trust.models import Listing, ListingQualityScore
from souq_trust.schemas import ListingQuality
from souq_trust.services.errors import NotFoundError, StoreFailureError
from souq_trust.services.trust import (
    WEIGHT_DESCRIPTION,
    WEIGHT_PHOTOS,
    WEIGHT_SPECIFICATIONS,
    ListingStatus,
    get_photo_score,
    round_half_up,
    utcnow,
)
from souq_trust.stores.postgres import SessionFactory, get_session, upsert_row
from souq_trust.stores.redis import TTL_QUALITY_SCORE, NullResultCache, ResultCache, quality_score_key

logger = logging.getLogger("uvicorn.error")


# Description length thresholds (characters)
DESCRIPTION_MIN_GOOD = 100
DESCRIPTION_MIN_EXCELLENT = 300

_DESCRIPTION_GOOD_SCORE = 60
_DESCRIPTION_EXCELLENT_SCORE = 80
BILINGUAL_BONUS = 20


@dataclass
class RecalculationStats:
    """Statistics from a bulk recalculation run."""

    processed: int
    errors: int


# ============================================================
# Scoring algorithms
# ============================================================


def calculate_description_score(description_en: str | None, description_ar: str | None) -> int:
    """Score description completeness (0-100).

    Linear ramp to 60 below 100 chars, 60 up to 300 chars, 80 from 300 chars.
    An Arabic description of at least 100 chars adds 20, capped at 100.
    """
    en_length = len(description_en or "")

    if en_length >= DESCRIPTION_MIN_EXCELLENT:
        score = _DESCRIPTION_EXCELLENT_SCORE
    elif en_length >= DESCRIPTION_MIN_GOOD:
        score = _DESCRIPTION_GOOD_SCORE
    elif en_length > 0:
        score = round_half_up(en_length / DESCRIPTION_MIN_GOOD * _DESCRIPTION_GOOD_SCORE)
    else:
        score = 0

    if description_ar and len(description_ar) >= DESCRIPTION_MIN_GOOD:
        score = min(100, score + BILINGUAL_BONUS)

    return score


def count_filled_specifications(specifications: Any) -> int:
    """Count non-empty values in a specification map.

    None values and blank strings don't count; anything that is not a
    JSON object counts as zero.
    """
    if not isinstance(specifications, dict):
        return 0

    filled = 0
    for value in specifications.values():
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        filled += 1
    return filled


def calculate_specification_score(specifications: Any) -> int:
    """Score specification completeness: 0 → 0, 1-2 → 30, 3-4 → 60, 5+ → 100."""
    filled = count_filled_specifications(specifications)
    if filled >= 5:
        return 100
    if filled >= 3:
        return 60
    if filled >= 1:
        return 30
    return 0


def calculate_quality_scores(
    *,
    listing_id: str,
    image_count: int,
    description_en: str | None,
    description_ar: str | None,
    specifications: Any,
) -> ListingQuality:
    """Calculate all quality sub-scores and the weighted overall score."""
    photo_score = get_photo_score(image_count)
    description_score = calculate_description_score(description_en, description_ar)
    specification_score = calculate_specification_score(specifications)

    overall_score = round_half_up(
        photo_score * WEIGHT_PHOTOS
        + description_score * WEIGHT_DESCRIPTION
        + specification_score * WEIGHT_SPECIFICATIONS
    )

    return ListingQuality(
        listing_id=listing_id,
        photo_score=photo_score,
        description_score=description_score,
        specification_score=specification_score,
        overall_score=overall_score,
    )


def score_listing(listing: Listing) -> ListingQuality:
    """Score a listing row."""
    return calculate_quality_scores(
        listing_id=listing.id,
        image_count=listing.image_count or 0,
        description_en=listing.description_en,
        description_ar=listing.description_ar,
        specifications=listing.specifications,
    )


# ============================================================
# Service
# ============================================================


class QualityScoringService:
    """Calculates, persists and serves listing quality scores."""

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        cache: ResultCache | None = None,
        cache_ttl: int = TTL_QUALITY_SCORE,
    ) -> None:
        self._session_factory = session_factory
        self._cache = cache or NullResultCache()
        self._cache_ttl = cache_ttl

    async def calculate_and_save(self, listing_id: str) -> ListingQuality:
        """Calculate and persist the quality score for a listing.

        Raises:
            NotFoundError: If the listing does not exist.
            StoreFailureError: If the store read or write fails.
        """
        try:
            async with self._session_factory() as session:
                listing = await session.get(Listing, listing_id)
                if listing is None:
                    raise NotFoundError("Listing not found", detail={"listing_id": listing_id})
                scores = score_listing(listing)

            scores.calculated_at = utcnow()
            await upsert_row(
                self._session_factory,
                ListingQualityScore,
                listing_id,
                {
                    "listing_id": listing_id,
                    "photo_score": scores.photo_score,
                    "description_score": scores.description_score,
                    "specification_score": scores.specification_score,
                    "overall_score": scores.overall_score,
                    "calculated_at": scores.calculated_at,
                },
            )
        except SQLAlchemyError as e:
            logger.exception(f"Quality score calculation failed for listing={listing_id}")
            raise StoreFailureError("Failed to calculate quality score") from e

        await self._cache.delete(quality_score_key(listing_id))
        logger.info(
            f"Quality score saved: listing={listing_id} overall={scores.overall_score} "
            f"(photos={scores.photo_score}, description={scores.description_score}, "
            f"specs={scores.specification_score})"
        )
        return scores

    async def get_score(self, listing_id: str) -> ListingQuality | None:
        """Get the stored quality score for a listing (None if never scored)."""
        key = quality_score_key(listing_id)
        cached = await self._cache.get_json(key)
        if cached is not None:
            try:
                return ListingQuality.model_validate(cached)
            except ValueError:
                logger.warning(f"Discarding malformed cached quality score for {listing_id}")

        try:
            async with self._session_factory() as session:
                row = await session.get(ListingQualityScore, listing_id)
        except SQLAlchemyError as e:
            logger.exception(f"Failed to read quality score for listing={listing_id}")
            raise StoreFailureError("Failed to get quality score") from e

        if row is None:
            return None

        quality = ListingQuality(
            listing_id=row.listing_id,
            photo_score=row.photo_score,
            description_score=row.description_score,
            specification_score=row.specification_score,
            overall_score=row.overall_score,
            calculated_at=row.calculated_at,
        )
        await self._cache.set_json(key, quality.model_dump(mode="json"), self._cache_ttl)
        return quality

    async def recalculate_all(self) -> RecalculationStats:
        """Recalculate scores for every active listing (batch/admin job)."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Listing.id).where(Listing.status == ListingStatus.ACTIVE)
                )
                listing_ids = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.exception("Failed to list active listings for quality recalculation")
            raise StoreFailureError("Failed to recalculate scores") from e

        stats = RecalculationStats(processed=0, errors=0)
        for listing_id in listing_ids:
            try:
                await self.calculate_and_save(listing_id)
                stats.processed += 1
            except (NotFoundError, StoreFailureError) as e:
                logger.error(f"Quality recalculation failed for listing={listing_id}: {e}")
                stats.errors += 1

        logger.info(f"Quality recalculation complete: processed={stats.processed}, errors={stats.errors}")
        return stats
