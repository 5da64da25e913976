"""FastAPI application entry point.

Souq Trust API - owner trust scores, listing quality and reviews.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from souq_trust.routes import api_router
from souq_trust.schemas import ErrorDetail, ErrorResponse
from souq_trust.services.container import build_services
from souq_trust.services.errors import (
    AlreadyExistsError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    TrustError,
)
from souq_trust.settings import get_settings
from souq_trust.stores.postgres import init_db, close_db, ping_db
from souq_trust.stores.redis import build_result_cache, init_redis, close_redis

logger = logging.getLogger("uvicorn.error")

# Typed service failures → HTTP status (anything else is a 500)
ERROR_STATUS: dict[type[TrustError], int] = {
    NotFoundError: 404,
    ForbiddenError: 403,
    AlreadyExistsError: 409,
    InvalidStateError: 422,
}


def status_for_error(exc: TrustError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()

    # Initialize database (skip in tests if no DB available)
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    # Initialize Redis; without it every read goes to Postgres
    if settings.cache_enabled:
        try:
            await init_redis()
        except Exception:
            logger.exception("Redis init failed, continuing without result cache")

    services = build_services(cache=build_result_cache())
    await services.queue.start()
    app.state.services = services

    yield

    # Shutdown
    await services.queue.stop()
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Trust & reputation scoring API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TrustError)
    async def trust_error_handler(request: Request, exc: TrustError) -> JSONResponse:
        """Render typed service failures in the structured error format."""
        status_code = status_for_error(exc)
        message = exc.message
        if status_code == 500 and not settings.debug:
            message = "Internal server error"
        body = ErrorResponse(error=ErrorDetail(code=exc.code, message=message, detail=exc.detail))
        return JSONResponse(status_code=status_code, content=body.model_dump())

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": str(exc) if settings.debug else "Internal server error",
                    "detail": None,
                }
            },
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "souq_trust.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
