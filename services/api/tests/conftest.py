"""Shared fixtures: a throwaway SQLite store and row builders."""

from datetime import datetime, timedelta
import json
from typing import Any

import pytest

from souq_trust.models import Lead, Listing, ListingQualityScore, Owner, OwnerReview, ReviewRequest
from souq_trust.services.container import build_services
from souq_trust.services.trust import (
    LeadStatus,
    ListingStatus,
    ReviewRating,
    ReviewStatus,
    VerificationStatus,
    utcnow,
)
from souq_trust.stores.postgres import close_db, create_tables, get_session, init_db
from souq_trust.stores.redis import ResultCache


class Seeder:
    """Inserts rows directly, bypassing the services under test."""

    async def owner(
        self,
        *,
        phone: str | None = None,
        email: str | None = None,
        full_name: str | None = "Test Owner",
        phone_verified: bool = False,
        business_status: VerificationStatus | None = None,
    ) -> str:
        async with get_session() as session:
            owner = Owner(
                full_name=full_name,
                phone=phone,
                email=email,
                phone_verified_at=utcnow() if phone_verified else None,
                business_verification_status=business_status,
            )
            session.add(owner)
            await session.flush()
            return owner.id

    async def listing(
        self,
        owner_id: str,
        *,
        image_count: int = 0,
        description_en: str = "",
        description_ar: str | None = None,
        specifications: dict[str, Any] | None = None,
        status: ListingStatus = ListingStatus.ACTIVE,
        title_en: str = "Caterpillar 320 Excavator",
    ) -> str:
        async with get_session() as session:
            listing = Listing(
                owner_id=owner_id,
                title_en=title_en,
                title_ar="حفارة كاتربيلر",
                description_en=description_en,
                description_ar=description_ar,
                specifications_json=json.dumps(specifications) if specifications is not None else None,
                image_count=image_count,
                status=status,
            )
            session.add(listing)
            await session.flush()
            return listing.id

    async def lead(
        self,
        listing_id: str,
        *,
        phone: str | None = None,
        email: str | None = None,
        created_at: datetime | None = None,
        owner_responded_at: datetime | None = None,
        status: LeadStatus = LeadStatus.NEW,
    ) -> str:
        async with get_session() as session:
            lead = Lead(
                listing_id=listing_id,
                name="Renter",
                phone=phone,
                email=email,
                status=status,
                owner_responded_at=owner_responded_at,
                created_at=created_at or utcnow(),
            )
            session.add(lead)
            await session.flush()
            return lead.id

    async def review_request(
        self,
        lead_id: str,
        *,
        sent_at: datetime,
        expired_at: datetime | None,
        completed_at: datetime | None = None,
        reviewer_phone: str | None = None,
        reviewer_email: str | None = None,
    ) -> str:
        async with get_session() as session:
            request = ReviewRequest(
                lead_id=lead_id,
                reviewer_phone=reviewer_phone,
                reviewer_email=reviewer_email,
                sent_at=sent_at,
                expired_at=expired_at,
                completed_at=completed_at,
            )
            session.add(request)
            await session.flush()
            return request.id

    async def review(
        self,
        lead_id: str,
        *,
        owner_id: str,
        reviewer_id: str,
        rating: ReviewRating,
        status: ReviewStatus = ReviewStatus.SUBMITTED,
        submitted_at: datetime | None = None,
    ) -> str:
        async with get_session() as session:
            review = OwnerReview(
                lead_id=lead_id,
                owner_id=owner_id,
                reviewer_id=reviewer_id,
                rating=rating,
                status=status,
                submitted_at=submitted_at or utcnow(),
                is_verified=True,
                did_owner_respond=False,
            )
            session.add(review)
            await session.flush()
            return review.id

    async def quality_score(self, listing_id: str, overall: int) -> None:
        async with get_session() as session:
            session.add(
                ListingQualityScore(
                    listing_id=listing_id,
                    photo_score=overall,
                    description_score=overall,
                    specification_score=overall,
                    overall_score=overall,
                )
            )

    async def reviewed_lead(self, owner_id: str, listing_id: str, rating: ReviewRating) -> str:
        """A lead plus a submitted review of the owner from a fresh reviewer."""
        reviewer_id = await self.owner(full_name="Reviewer")
        lead_id = await self.lead(listing_id, created_at=utcnow() - timedelta(days=10))
        return await self.review(lead_id, owner_id=owner_id, reviewer_id=reviewer_id, rating=rating)


class DictCache(ResultCache):
    """In-memory result cache that records calls."""

    def __init__(self) -> None:
        self.data: dict[str, dict[str, Any]] = {}
        self.deleted: list[str] = []

    async def get_json(self, key: str) -> dict[str, Any] | None:
        return self.data.get(key)

    async def set_json(self, key: str, value: dict[str, Any], ttl: int) -> None:
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.data.pop(key, None)


@pytest.fixture
async def db(tmp_path):
    """Fresh SQLite database per test (file-backed so sessions share it)."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'trust.db'}")
    await create_tables()
    yield
    await close_db()


@pytest.fixture
def seed(db) -> Seeder:
    return Seeder()


@pytest.fixture
def cache() -> DictCache:
    return DictCache()


@pytest.fixture
def services(db, cache):
    return build_services(cache=cache)
