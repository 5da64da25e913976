"""API routes."""

from fastapi import APIRouter

from souq_trust.routes import admin, listings, reviews, trust

api_router = APIRouter()

# Owner trust metrics (public)
api_router.include_router(trust.router, prefix="/v1/trust", tags=["trust"])

# Listing quality scores (public)
api_router.include_router(listings.router, prefix="/v1/listings", tags=["listings"])

# Reviews and review requests
api_router.include_router(reviews.router, prefix="/v1/reviews", tags=["reviews"])

# Admin / cron endpoints
api_router.include_router(admin.router, prefix="/v1/admin", tags=["admin"])
