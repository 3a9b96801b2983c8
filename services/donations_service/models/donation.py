"""Donation model."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.payments_service.models import PaymentStatus, enum_values
from sqlalchemy import JSON, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Numeric, String, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column


class Donation(Base):
    """A single gateway checkout for a donation.

    Rows are only written once the gateway has accepted the session, so every
    donation has a live transaction id.
    """

    __tablename__ = "donations"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_donations_amount_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    transaction_id: Mapped[str] = mapped_column(
        String(64), unique=True, index=True, nullable=False
    )
    purpose: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    # Email address or phone number
    contact: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    behalf: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

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

    gateway_val_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    gateway_payload: Mapped[Optional[dict]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    def __repr__(self):
        return f"<Donation {self.transaction_id} {self.status.value}>"
