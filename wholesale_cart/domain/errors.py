# wholesale_cart/domain/errors.py
from enum import Enum


class RejectionReason(str, Enum):
    INVALID_QUANTITY = "invalid_quantity"
    NOT_ELIGIBLE = "not_eligible"
    BELOW_MINIMUM = "below_minimum"
    INCOMPLETE_SIZE_RUN = "incomplete_size_run"
    LIST_EXPIRED = "list_expired"
    EXCEEDS_AVAILABLE = "exceeds_available"
    EXCEEDS_CUSTOMER_MAX = "exceeds_customer_max"


class ValidationRejected(ValueError):
    """
    Raised when a channel policy refuses an add or update.
    The cart state is left untouched.
    """

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message

    def __repr__(self) -> str:
        return f"ValidationRejected({self.reason.value!r}, {self.message!r})"


class UnknownChannel(LookupError):
    pass
