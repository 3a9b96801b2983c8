"""Short-lived record of an online member checkout."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.payments_service.models import PaymentStatus, enum_values
from sqlalchemy import JSON, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

JSONType = JSON().with_variant(JSONB, "postgresql")


class MemberPaymentSession(Base):
    """Holds the submitted form between gateway checkout and completion.

    Consumed exactly once by the completion path; pending rows past
    ``expires_at`` are purged by the worker.
    """

    __tablename__ = "member_payment_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            name="payment_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PaymentStatus.PENDING,
        index=True,
        nullable=False,
    )
    form_data: Mapped[dict] = mapped_column(JSONType, nullable=False)

    success_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    fail_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    cancel_url: Mapped[str] = mapped_column(String(1024), nullable=False)

    gateway_session_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    gateway_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    gateway_response: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
    validation_data: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
