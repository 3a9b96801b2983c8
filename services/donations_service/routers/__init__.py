"""Donations service routers."""

from services.donations_service.routers.admin import router as admin_router
from services.donations_service.routers.public import router as public_router

__all__ = [
    "admin_router",
    "public_router",
]
