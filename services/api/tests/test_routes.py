"""API tests for the trust, listing, review and admin routes."""

from datetime import timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from souq_trust.main import app
from souq_trust.routes import admin as admin_routes
from souq_trust.services.trust import ReviewRating, utcnow
from souq_trust.settings import Settings

RENTER_PHONE = "+966500000002"


@pytest.fixture
async def client(services, monkeypatch: pytest.MonkeyPatch):
    """Test client bound to the per-test services (the lifespan does not run here)."""
    monkeypatch.setattr(app.state, "services", services, raising=False)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def cron_secret(monkeypatch: pytest.MonkeyPatch) -> str:
    secret = "test-cron-secret"
    monkeypatch.setattr(admin_routes, "get_settings", lambda: Settings(CRON_SECRET=secret))
    return secret


# ============================================================
# Trust and listing quality
# ============================================================


@pytest.mark.asyncio
async def test_trust_not_calculated_is_404(client: AsyncClient, seed):
    owner_id = await seed.owner()

    response = await client.get(f"/v1/trust/{owner_id}")

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["detail"] == {"owner_id": owner_id}


@pytest.mark.asyncio
async def test_trust_response_is_enriched(client: AsyncClient, seed, services):
    owner_id = await seed.owner(phone_verified=True)
    listing_id = await seed.listing(owner_id)
    await seed.reviewed_lead(owner_id, listing_id, ReviewRating.EXCELLENT)
    await seed.reviewed_lead(owner_id, listing_id, ReviewRating.GOOD)
    await services.trust_scoring.recalculate(owner_id)

    response = await client.get(f"/v1/trust/{owner_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["ownerId"] == owner_id
    assert data["isVerified"] is True
    assert 0 <= data["trustScore"] <= 100
    assert [b["badgeId"] for b in data["badges"]] == ["VERIFIED_IDENTITY"]
    assert data["badges"][0]["labelEn"] == "Verified Identity"

    reviews = data["reviewMetrics"]
    assert reviews["totalReviews"] == 2
    assert reviews["averageRating"] == 4.5
    assert [b["rating"] for b in reviews["ratingDistribution"]] == [
        "EXCELLENT",
        "GOOD",
        "FAIR",
        "POOR",
        "VERY_POOR",
    ]
    assert reviews["ratingDistribution"][0]["count"] == 1
    assert reviews["ratingDistribution"][0]["labelAr"] == "ممتاز"


@pytest.mark.asyncio
async def test_listing_quality_default_when_not_scored(client: AsyncClient, seed):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)

    response = await client.get(f"/v1/listings/{listing_id}/quality")

    assert response.status_code == 200
    data = response.json()
    assert data["overallScore"] == 0
    assert data["message"] == "Quality score not yet calculated"


@pytest.mark.asyncio
async def test_listing_quality_after_scoring(client: AsyncClient, seed, services):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id, image_count=4)
    await services.quality_scoring.calculate_and_save(listing_id)

    response = await client.get(f"/v1/listings/{listing_id}/quality")

    data = response.json()
    assert data["photoScore"] == 80
    assert data["message"] is None


# ============================================================
# Reviews
# ============================================================


@pytest.mark.asyncio
async def test_submit_review_requires_caller(client: AsyncClient):
    response = await client.post("/v1/reviews", json={"leadId": "lead-1", "rating": "GOOD"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_submit_review_too_early_is_422(client: AsyncClient, seed):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    lead_id = await seed.lead(listing_id, phone=RENTER_PHONE, created_at=utcnow() - timedelta(days=1))
    renter_id = await seed.owner(phone=RENTER_PHONE)

    response = await client.post(
        "/v1/reviews",
        json={"leadId": lead_id, "rating": "GOOD"},
        headers={"X-User-Id": renter_id},
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "REVIEW_REQUEST_NOT_READY"


@pytest.mark.asyncio
async def test_review_flow(client: AsyncClient, seed, services):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    lead_id = await seed.lead(listing_id, phone=RENTER_PHONE, created_at=utcnow() - timedelta(days=8))
    renter_id = await seed.owner(phone=RENTER_PHONE)

    response = await client.post(
        "/v1/reviews",
        json={"leadId": lead_id, "rating": "EXCELLENT", "title": "Great excavator"},
        headers={"X-User-Id": renter_id},
    )
    assert response.status_code == 201
    review_id = response.json()["reviewId"]

    duplicate = await client.post(
        "/v1/reviews",
        json={"leadId": lead_id, "rating": "POOR"},
        headers={"X-User-Id": renter_id},
    )
    assert duplicate.status_code == 409

    await services.queue.drain()
    trust = await client.get(f"/v1/trust/{owner_id}")
    assert trust.json()["reviewMetrics"]["totalReviews"] == 1

    forbidden = await client.post(
        f"/v1/reviews/{review_id}/respond",
        json={"response": "Thanks!"},
        headers={"X-User-Id": renter_id},
    )
    assert forbidden.status_code == 403

    reply = await client.post(
        f"/v1/reviews/{review_id}/respond",
        json={"response": "Thanks!"},
        headers={"X-User-Id": owner_id},
    )
    assert reply.status_code == 200
    assert reply.json()["success"] is True

    review = await client.get(f"/v1/reviews/{review_id}")
    assert review.json()["ownerResponse"] == "Thanks!"
    assert review.json()["status"] == "RESPONDED"

    listed = await client.get("/v1/reviews", params={"ownerId": owner_id})
    assert listed.json()["pagination"]["total"] == 1
    assert listed.json()["pagination"]["totalPages"] == 1


@pytest.mark.asyncio
async def test_flag_review(client: AsyncClient, seed):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    review_id = await seed.reviewed_lead(owner_id, listing_id, ReviewRating.POOR)

    anonymous = await client.post(f"/v1/reviews/{review_id}/flag", json={"reason": "spam"})
    assert anonymous.status_code == 401

    flagged = await client.post(
        f"/v1/reviews/{review_id}/flag",
        json={"reason": "spam"},
        headers={"X-User-Id": owner_id},
    )
    assert flagged.status_code == 200

    review = await client.get(f"/v1/reviews/{review_id}")
    assert review.json()["status"] == "FLAGGED"


@pytest.mark.asyncio
async def test_unknown_review_is_404(client: AsyncClient, db):
    response = await client.get("/v1/reviews/missing-review")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_review_requests_for_caller(client: AsyncClient, seed, services):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    lead_id = await seed.lead(listing_id, phone=RENTER_PHONE)
    request_id = await services.reviews.create_review_request(lead_id)
    renter_id = await seed.owner(phone=RENTER_PHONE)
    stranger_id = await seed.owner(phone="+966533333333")

    pending = await client.get("/v1/reviews/requests", headers={"X-User-Id": renter_id})
    assert [r["id"] for r in pending.json()] == [request_id]
    assert pending.json()[0]["canSubmit"] is True

    one = await client.get(f"/v1/reviews/requests/{request_id}", headers={"X-User-Id": renter_id})
    assert one.json()["leadId"] == lead_id

    denied = await client.get(f"/v1/reviews/requests/{request_id}", headers={"X-User-Id": stranger_id})
    assert denied.status_code == 403

    missing = await client.get("/v1/reviews/requests/missing", headers={"X-User-Id": renter_id})
    assert missing.status_code == 404


# ============================================================
# Admin
# ============================================================


@pytest.mark.asyncio
async def test_cron_rejects_wrong_secret(client: AsyncClient, db, cron_secret: str):
    response = await client.post(
        "/v1/admin/review-requests/process",
        headers={"Authorization": "Bearer wrong"},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_cron_processes_requests(client: AsyncClient, seed, cron_secret: str):
    owner_id = await seed.owner()
    listing_id = await seed.listing(owner_id)
    lead_id = await seed.lead(listing_id, phone=RENTER_PHONE)
    now = utcnow()
    await seed.review_request(
        lead_id, sent_at=now - timedelta(hours=2), expired_at=now + timedelta(days=30), reviewer_phone=RENTER_PHONE
    )

    response = await client.post(
        "/v1/admin/review-requests/process",
        headers={"Authorization": f"Bearer {cron_secret}"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["processed"] == 1
    assert data["errors"] == 0
    assert data["expired"] == 0
    assert "durationMs" in data


@pytest.mark.asyncio
async def test_admin_recalculations(client: AsyncClient, seed, cron_secret: str):
    owner_id = await seed.owner()
    await seed.listing(owner_id, image_count=5)
    headers = {"Authorization": f"Bearer {cron_secret}"}

    quality = await client.post("/v1/admin/listings/quality/recalculate", headers=headers)
    assert quality.json() == {"success": True, "processed": 1, "errors": 0}

    trust = await client.post(f"/v1/admin/trust/{owner_id}/recalculate", headers=headers)
    assert trust.status_code == 200
    assert trust.json()["listingMetrics"]["avgListingQuality"] == 40

    missing = await client.post("/v1/admin/trust/missing-owner/recalculate", headers=headers)
    assert missing.status_code == 404
