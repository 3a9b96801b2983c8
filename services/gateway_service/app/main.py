"""FastAPI application entrypoint for the DarulQuran API.

Donations and member applications are mounted in-process under
``settings.API_PREFIX``; each service can still be run on its own through
its ``app.main`` module.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.donations_service.routers import admin_router as donations_admin
from services.donations_service.routers import public_router as donations_public
from services.members_service.routers import admin_router as members_admin
from services.members_service.routers import public_router as members_public


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance."""
    settings = get_settings()
    app = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        description="Donations and membership payments via SSLCommerz.",
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple readiness endpoint."""
        return {"status": "ok"}

    # Public routers before admin ones: /donations/my and /members/apply
    # must not be captured by the admin /{id} routes.
    prefix = settings.API_PREFIX
    app.include_router(donations_public, prefix=prefix)
    app.include_router(donations_admin, prefix=prefix)
    app.include_router(members_public, prefix=prefix)
    app.include_router(members_admin, prefix=prefix)

    return app


app = create_app()
