"""Background tasks for the payments worker."""

from __future__ import annotations

from libs.common.logging import get_logger
from libs.db.config import AsyncSessionLocal
from services.members_service.services.member_ops import purge_expired_sessions

logger = get_logger(__name__)


async def purge_expired_member_sessions() -> int:
    """Delete pending member checkout sessions whose TTL has passed."""
    async with AsyncSessionLocal() as db:
        deleted = await purge_expired_sessions(db)

    if deleted:
        logger.info(
            "Purged expired member payment sessions",
            extra={"extra_fields": {"deleted": deleted}},
        )
    return deleted
