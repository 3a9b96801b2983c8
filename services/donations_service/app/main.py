"""FastAPI application for the Donations Service."""

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.donations_service.routers import admin_router, public_router
from slowapi.errors import RateLimitExceeded


def create_app() -> FastAPI:
    """Create and configure the Donations Service FastAPI app."""
    app = FastAPI(
        title="Donations Service",
        version="0.1.0",
        description="Donation checkout and reporting.",
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "donations"}

    # Public routes first so /donations/my is not taken for an id
    app.include_router(public_router)
    app.include_router(admin_router)

    return app


app = create_app()
