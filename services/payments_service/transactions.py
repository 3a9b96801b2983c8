"""Transaction ids and gateway callback URLs."""

import time
import uuid

from libs.common.config import get_settings


def generate_transaction_id(prefix: str) -> str:
    """Return a new unique id like ``DON-1718000000000-3f9a1c2b7d4e``."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def callback_urls(module: str) -> dict[str, str]:
    """
    Gateway callback URLs for a module, built only from server configuration.

    Returns a dict with ``success_url``, ``fail_url`` and ``cancel_url``.
    """
    settings = get_settings()
    base = f"{settings.BASE_URL.rstrip('/')}{settings.API_PREFIX}/{module}/payment"
    return {
        "success_url": f"{base}/success",
        "fail_url": f"{base}/fail",
        "cancel_url": f"{base}/cancel",
    }
