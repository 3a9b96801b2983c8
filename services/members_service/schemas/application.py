"""Member application request/response schemas."""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.config import get_settings
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    field_validator,
    model_validator,
)
from services.members_service.models.enums import (
    ApplicationStatus,
    Gender,
    MemberPaymentMethod,
    MemberType,
)
from services.payments_service.models import PaymentStatus

# Gateway checkouts issue ids of the form MEM-<ms>-<hex>
MEMBER_TRANSACTION_PREFIX = "MEM"

# Stored in MemberPaymentSession.form_data and copied onto the application
FORM_FIELDS = (
    "type",
    "amount",
    "name",
    "father_name",
    "gender",
    "mobile",
    "is_overseas",
    "email",
    "occupation",
    "reference",
    "address",
)


class MemberForm(BaseModel):
    """Fields shared by online and bank applications.

    Accepts the frontend's camelCase names as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    type: MemberType
    amount: float = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=255)
    father_name: str = Field(..., alias="fatherName", min_length=1, max_length=255)
    gender: Gender
    mobile: str = Field(..., min_length=1, max_length=32)
    is_overseas: bool = Field(False, alias="isOverseas")
    email: Optional[EmailStr] = None
    district: Optional[str] = None
    occupation: Optional[str] = None
    reference: Optional[str] = Field(None, max_length=255)
    address: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def apply_membership_rules(self):
        settings = get_settings()

        # Older forms send the district in place of an occupation
        if not self.occupation:
            self.occupation = self.district or None
        if not self.occupation:
            raise ValueError("Occupation is required")

        minimum = (
            settings.MEMBER_LIFETIME_MIN_AMOUNT
            if self.type == MemberType.LIFETIME
            else settings.MEMBER_DONOR_MIN_AMOUNT
        )
        if self.amount < minimum:
            raise ValueError(
                f"Amount is below the minimum of {minimum:,.0f} for {self.type.value} members"
            )

        if self.is_overseas and not self.email:
            raise ValueError("Email is required for overseas members")
        return self

    def form_data(self) -> dict:
        data = self.model_dump(mode="json", include=set(FORM_FIELDS))
        if data.get("email"):
            data["email"] = data["email"].lower()
        return data


class OnlinePaymentRequest(MemberForm):
    payment_method: MemberPaymentMethod = Field(
        MemberPaymentMethod.ONLINE, alias="paymentMethod"
    )

    @field_validator("payment_method")
    @classmethod
    def must_be_online(cls, v: MemberPaymentMethod) -> MemberPaymentMethod:
        if v != MemberPaymentMethod.ONLINE:
            raise ValueError("Bank payments are submitted through /members/apply")
        return v


class BankApplicationRequest(MemberForm):
    payment_method: MemberPaymentMethod = Field(..., alias="paymentMethod")
    transaction_id: Optional[str] = Field(None, alias="transactionId", max_length=128)
    payment_document_url: str = Field(..., alias="paymentDocumentUrl", min_length=1)

    @field_validator("transaction_id")
    @classmethod
    def reference_is_not_a_gateway_id(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if v.upper().startswith(f"{MEMBER_TRANSACTION_PREFIX}-"):
            raise ValueError(
                f"transactionId may not start with {MEMBER_TRANSACTION_PREFIX}-; "
                "use the bank's reference"
            )
        return v

    @model_validator(mode="after")
    def bank_transfer_needs_reference(self):
        if self.payment_method == MemberPaymentMethod.ONLINE:
            raise ValueError("Online payments are started through /members/online-payment")
        if self.payment_method == MemberPaymentMethod.BANK_TRANSFER and not self.transaction_id:
            raise ValueError("transactionId is required for bank transfers")
        return self


class CompletePaymentRequest(BaseModel):
    """Sent by the frontend after the gateway redirects back."""

    model_config = ConfigDict(populate_by_name=True)

    transaction_id: str = Field(..., alias="transactionId", min_length=1)
    val_id: str = Field(..., validation_alias=AliasChoices("valId", "val_id"), min_length=1)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class PaymentStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_status: PaymentStatus = Field(..., alias="paymentStatus")

    @field_validator("payment_status", mode="before")
    @classmethod
    def accept_legacy_cancel(cls, v):
        return PaymentStatus.CANCELLED if v == "cancel" else v


class OnlinePaymentInitiated(BaseModel):
    url: str
    transactionId: str


class OnlinePaymentInitiatedResponse(BaseModel):
    success: bool = True
    data: OnlinePaymentInitiated


class ApplicationSummary(BaseModel):
    id: uuid.UUID
    type: MemberType
    status: ApplicationStatus
    paymentMethod: MemberPaymentMethod
    transactionId: Optional[str] = None


class ApplicationSummaryResponse(BaseModel):
    success: bool = True
    data: ApplicationSummary
    message: str


class MemberApplicationResponse(BaseModel):
    id: uuid.UUID
    type: MemberType
    amount: float
    name: str
    father_name: str
    gender: Gender
    mobile: str
    is_overseas: bool
    email: Optional[str] = None
    occupation: str
    reference: Optional[str] = None
    address: str
    payment_method: MemberPaymentMethod
    transaction_id: Optional[str] = None
    payment_document_url: Optional[str] = None
    payment_status: PaymentStatus
    application_status: ApplicationStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MemberApplicationDetailResponse(BaseModel):
    success: bool = True
    data: MemberApplicationResponse
    message: Optional[str] = None


class ApplicationPagination(BaseModel):
    currentPage: int
    totalPages: int
    totalItems: int
    itemsPerPage: int


class MemberApplicationListResponse(BaseModel):
    success: bool = True
    data: list[MemberApplicationResponse]
    pagination: ApplicationPagination


class MessageResponse(BaseModel):
    success: bool = True
    message: str
