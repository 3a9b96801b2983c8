"""Donations service models package."""

from services.donations_service.models.donation import Donation  # noqa: F401
from services.donations_service.models.enums import DonationPurpose  # noqa: F401

__all__ = ["Donation", "DonationPurpose"]
