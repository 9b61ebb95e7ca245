"""
Error taxonomy for the reservation engine.

Caller mistakes raise ``BookingValidationError`` before the store is touched.
Expected scheduling outcomes are returned as ``Rejection`` values, never raised.
"""

from dataclasses import dataclass
from enum import Enum


class BookingError(Exception):
    """Base exception for reservation engine errors"""


class BookingValidationError(BookingError):
    """Bad or missing parameters supplied by the caller"""


class RejectionReason(str, Enum):
    """Stable machine-readable rejection codes"""
    OUTSIDE_HOURS = "outside-hours"
    PAST_CUTOFF = "past-cutoff"
    SLOT_UNAVAILABLE = "slot-unavailable"
    HOLD_EXPIRED = "hold-expired"


REJECTION_MESSAGES = {
    RejectionReason.OUTSIDE_HOURS: "Requested time is outside business hours.",
    RejectionReason.PAST_CUTOFF: "Requested time is past the cutoff for today.",
    RejectionReason.SLOT_UNAVAILABLE: "One or more requested slots are no longer available.",
    RejectionReason.HOLD_EXPIRED: (
        "Your reservation expired before payment completed. "
        "Your payment is safe; please reschedule or contact us."
    ),
}


@dataclass(frozen=True)
class Rejection:
    """An expected, recoverable refusal with a reason code"""
    reason: RejectionReason
    message: str

    ok = False

    @classmethod
    def of(cls, reason: RejectionReason) -> "Rejection":
        return cls(reason=reason, message=REJECTION_MESSAGES[reason])

    def to_dict(self) -> dict:
        return {"ok": False, "reason": self.reason.value, "message": self.message}
