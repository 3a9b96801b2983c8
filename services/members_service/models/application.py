"""Member application model."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.members_service.models.enums import (
    ApplicationStatus,
    Gender,
    MemberPaymentMethod,
    MemberType,
    enum_values,
)
from services.payments_service.models import PaymentStatus
from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Numeric, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column


class MemberApplication(Base):
    """Durable membership application.

    Online applications are only created once the gateway has confirmed the
    payment; bank applications start in ``pending_verification``.
    """

    __tablename__ = "member_applications"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_member_applications_amount_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    type: Mapped[MemberType] = mapped_column(
        SAEnum(
            MemberType,
            name="member_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        index=True,
        nullable=False,
    )
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)

    # Applicant
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    father_name: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[Gender] = mapped_column(
        SAEnum(
            Gender,
            name="gender_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    mobile: Mapped[str] = mapped_column(String(32), nullable=False)
    is_overseas: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    occupation: Mapped[str] = mapped_column(String(255), nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    # Payment
    payment_method: Mapped[MemberPaymentMethod] = mapped_column(
        SAEnum(
            MemberPaymentMethod,
            name="member_payment_method_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    # Gateway tran_id for online payments, bank reference for transfers
    transaction_id: Mapped[Optional[str]] = mapped_column(
        String(128), unique=True, index=True, nullable=True
    )
    payment_document_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    payment_status: Mapped[PaymentStatus] = mapped_column(
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
    application_status: Mapped[ApplicationStatus] = mapped_column(
        SAEnum(
            ApplicationStatus,
            name="application_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=ApplicationStatus.PENDING_APPROVAL,
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
        return f"<MemberApplication {self.name} {self.application_status.value}>"
