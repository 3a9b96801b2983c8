"""Donations service schemas package."""

from services.donations_service.schemas.donation import (  # noqa: F401
    DonationCreateRequest,
    DonationDetailResponse,
    DonationInitiated,
    DonationInitiatedResponse,
    DonationListResponse,
    DonationResponse,
    MyDonationsResponse,
    Pagination,
    is_email,
)

__all__ = [
    "DonationCreateRequest",
    "DonationDetailResponse",
    "DonationInitiated",
    "DonationInitiatedResponse",
    "DonationListResponse",
    "DonationResponse",
    "MyDonationsResponse",
    "Pagination",
    "is_email",
]
