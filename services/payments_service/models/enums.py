"""Payment state machine shared by donations and member applications."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    # Bank transfer / deposit awaiting an admin's look at the receipt
    PENDING_VERIFICATION = "pending_verification"


class CallbackOutcome(str, enum.Enum):
    SUCCESS = "success"
    FAIL = "fail"
    CANCEL = "cancel"


class PaymentFlow(str, enum.Enum):
    DONATION = "donation"
    MEMBER = "member"


TERMINAL_STATUSES = frozenset(
    {PaymentStatus.COMPLETED, PaymentStatus.FAILED, PaymentStatus.CANCELLED}
)

_CALLBACK_TRANSITIONS = {
    PaymentFlow.DONATION: {
        CallbackOutcome.SUCCESS: PaymentStatus.COMPLETED,
        CallbackOutcome.FAIL: PaymentStatus.FAILED,
        # Donations have no cancelled state; a cancelled checkout is a failed one
        CallbackOutcome.CANCEL: PaymentStatus.FAILED,
    },
    PaymentFlow.MEMBER: {
        CallbackOutcome.SUCCESS: PaymentStatus.COMPLETED,
        CallbackOutcome.FAIL: PaymentStatus.FAILED,
        CallbackOutcome.CANCEL: PaymentStatus.CANCELLED,
    },
}


def resolve_callback_status(flow: PaymentFlow, outcome: CallbackOutcome) -> PaymentStatus:
    """Status a gateway callback moves a pending payment to."""
    return _CALLBACK_TRANSITIONS[PaymentFlow(flow)][CallbackOutcome(outcome)]


def can_apply_callback(current: PaymentStatus) -> bool:
    """Only pending payments react to gateway callbacks; terminal states are final."""
    return PaymentStatus(current) == PaymentStatus.PENDING
