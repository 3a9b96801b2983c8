"""Members service models package.

Re-exports all models and enums so that alembic and the mapper registry
see every table on import.
"""

from services.members_service.models.application import MemberApplication  # noqa: F401
from services.members_service.models.enums import (  # noqa: F401
    ApplicationStatus,
    Gender,
    MemberPaymentMethod,
    MemberType,
)
from services.members_service.models.payment_session import (  # noqa: F401
    MemberPaymentSession,
)

__all__ = [
    "ApplicationStatus",
    "Gender",
    "MemberApplication",
    "MemberPaymentMethod",
    "MemberPaymentSession",
    "MemberType",
]
