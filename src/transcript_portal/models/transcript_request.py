"""Transcript request model and its lifecycle states."""

import enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class RequestScope(str, enum.Enum):
    """Where the transcript is delivered."""

    WITHIN_NG = "WITHIN_NG"
    OUTSIDE_NG = "OUTSIDE_NG"


class RequestStatus(str, enum.Enum):
    """Lifecycle states; DRAFT is reserved for staff-created records."""

    DRAFT = "DRAFT"
    PAYMENT_PENDING = "PAYMENT_PENDING"
    PAID = "PAID"
    SUBMITTED = "SUBMITTED"
    PROCESSING = "PROCESSING"
    SENT = "SENT"
    CANCELLED = "CANCELLED"


class TranscriptRequest(Base):
    """A student's request for a transcript to be sent somewhere."""

    __tablename__ = "transcript_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    scope = Column(SAEnum(RequestScope, name="request_scope"), nullable=False)
    request_email = Column(String(255), nullable=False)
    status = Column(
        SAEnum(RequestStatus, name="request_status"),
        nullable=False,
        default=RequestStatus.PAYMENT_PENDING,
    )
    payment_id = Column(Integer, ForeignKey("payments.id", ondelete="SET NULL"))
    created_at = Column(DateTime, default=utc_now, nullable=False)

    student = relationship("Student", back_populates="requests")
    payment = relationship("Payment", foreign_keys=[payment_id])
    destinations = relationship("Destination", back_populates="request", order_by="Destination.id")
    events = relationship("StatusEvent", back_populates="request", order_by="StatusEvent.id")
