"""SQLAlchemy models for the transcript portal."""

from .destination import Destination
from .payment import Payment, PaymentStatus
from .status_event import StatusEvent
from .student import Student
from .transcript_request import RequestScope, RequestStatus, TranscriptRequest

__all__ = [
    "Destination",
    "Payment",
    "PaymentStatus",
    "RequestScope",
    "RequestStatus",
    "StatusEvent",
    "Student",
    "TranscriptRequest",
]
