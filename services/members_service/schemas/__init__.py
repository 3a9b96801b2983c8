"""Members service schemas package."""

from services.members_service.schemas.application import (  # noqa: F401
    FORM_FIELDS,
    MEMBER_TRANSACTION_PREFIX,
    ApplicationPagination,
    ApplicationStatusUpdate,
    ApplicationSummary,
    ApplicationSummaryResponse,
    BankApplicationRequest,
    CompletePaymentRequest,
    MemberApplicationDetailResponse,
    MemberApplicationListResponse,
    MemberApplicationResponse,
    MemberForm,
    MessageResponse,
    OnlinePaymentInitiated,
    OnlinePaymentInitiatedResponse,
    OnlinePaymentRequest,
    PaymentStatusUpdate,
)

__all__ = [
    "FORM_FIELDS",
    "ApplicationPagination",
    "ApplicationStatusUpdate",
    "ApplicationSummary",
    "ApplicationSummaryResponse",
    "BankApplicationRequest",
    "CompletePaymentRequest",
    "MemberApplicationDetailResponse",
    "MemberApplicationListResponse",
    "MemberApplicationResponse",
    "MemberForm",
    "MessageResponse",
    "OnlinePaymentInitiated",
    "OnlinePaymentInitiatedResponse",
    "OnlinePaymentRequest",
    "PaymentStatusUpdate",
]
