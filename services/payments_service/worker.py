"""ARQ worker for payment housekeeping."""

from arq import cron
from libs.common.arq_config import get_redis_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


async def task_purge_expired_member_sessions(ctx: dict):
    from services.payments_service.tasks import purge_expired_member_sessions

    logger.info("Running: purge_expired_member_sessions")
    await purge_expired_member_sessions()


class WorkerSettings:
    redis_settings = get_redis_settings()

    functions = [
        task_purge_expired_member_sessions,
    ]

    cron_jobs = [
        cron(
            task_purge_expired_member_sessions,
            minute={0, 15, 30, 45},
            run_at_startup=True,
        ),
    ]
