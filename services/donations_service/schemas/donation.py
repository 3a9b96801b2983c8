"""Donation request/response schemas."""

import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from services.donations_service.models.enums import DonationPurpose
from services.payments_service.models import PaymentStatus

EMAIL_RE = re.compile(r"^\S+@\S+\.\S+$")
PHONE_RE = re.compile(r"^[0-9]\d{7,14}$")


def is_email(contact: str) -> bool:
    return bool(EMAIL_RE.match(contact or ""))


class DonationCreateRequest(BaseModel):
    purpose: str = Field(
        ...,
        max_length=255,
        description="One of the known funds, or any other non-empty text",
        examples=[p.value for p in DonationPurpose],
    )
    contact: str = Field(..., description="Email address or phone number")
    amount: float = Field(..., gt=0)
    name: Optional[str] = Field(None, max_length=255)
    behalf: Optional[str] = Field(None, max_length=255)

    @field_validator("purpose")
    @classmethod
    def purpose_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Purpose is required")
        return v

    @field_validator("contact")
    @classmethod
    def contact_is_email_or_phone(cls, v: str) -> str:
        v = v.strip()
        if not (EMAIL_RE.match(v) or PHONE_RE.match(v)):
            raise ValueError("Contact must be a valid email or phone number")
        return v

    @field_validator("name", "behalf")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


class DonationInitiated(BaseModel):
    id: uuid.UUID
    url: str
    transactionId: str


class DonationInitiatedResponse(BaseModel):
    success: bool = True
    data: DonationInitiated


class DonationResponse(BaseModel):
    id: uuid.UUID
    transaction_id: str
    purpose: str
    contact: str
    amount: float
    name: Optional[str] = None
    behalf: Optional[str] = None
    status: PaymentStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class DonationListResponse(BaseModel):
    success: bool = True
    data: list[DonationResponse]
    pagination: Pagination
    totalDonationAmount: float


class DonationDetailResponse(BaseModel):
    success: bool = True
    data: DonationResponse


class MyDonationsResponse(BaseModel):
    success: bool = True
    data: list[DonationResponse]
