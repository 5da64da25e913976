"""Shared route dependencies."""

from fastapi import Header, HTTPException, Request

from souq_trust.services.container import TrustServices


def get_services(request: Request) -> TrustServices:
    """Trust services built at startup (see main.lifespan)."""
    services: TrustServices | None = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Trust services not initialized")
    return services


def get_caller_id(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    """Authenticated user id, set by the upstream auth gateway."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    return x_user_id
