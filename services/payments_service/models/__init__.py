"""Payments core models package."""

from services.payments_service.models.enums import (
    TERMINAL_STATUSES,
    CallbackOutcome,
    PaymentFlow,
    PaymentStatus,
    can_apply_callback,
    enum_values,
    resolve_callback_status,
)

__all__ = [
    "TERMINAL_STATUSES",
    "CallbackOutcome",
    "PaymentFlow",
    "PaymentStatus",
    "can_apply_callback",
    "enum_values",
    "resolve_callback_status",
]
