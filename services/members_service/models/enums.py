"""Enum definitions for members service models."""

import enum

from services.payments_service.models.enums import enum_values  # noqa: F401


class MemberType(str, enum.Enum):
    LIFETIME = "lifetime"
    DONOR = "donor"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"


class MemberPaymentMethod(str, enum.Enum):
    ONLINE = "online"
    BANK_TRANSFER = "bank_transfer"
    BANK_DEPOSIT = "bank_deposit"


class ApplicationStatus(str, enum.Enum):
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
