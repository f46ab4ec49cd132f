"""Payment status transitions enforced by the ledger."""

from enum import Enum


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    AUTHORIZED = "Authorized"
    DECLINED = "Declined"
    # Public API vocabulary for requests refused before processing; never stored.
    REJECTED = "Rejected"
    INTERNAL_ERROR = "InternalError"


ALLOWED_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.PENDING: {
        PaymentStatus.AUTHORIZED,
        PaymentStatus.DECLINED,
        PaymentStatus.INTERNAL_ERROR,
    },
    PaymentStatus.AUTHORIZED: set(),
    PaymentStatus.DECLINED: set(),
    PaymentStatus.REJECTED: set(),
    PaymentStatus.INTERNAL_ERROR: set(),
}


class InvalidTransitionError(ValueError):
    """Raised when a status change is not allowed by the state machine."""


def validate_transition(current: PaymentStatus, new: PaymentStatus) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise InvalidTransitionError(f"Invalid transition: {current.value} -> {new.value}")
