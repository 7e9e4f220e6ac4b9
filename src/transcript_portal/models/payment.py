"""Payment model."""

import enum

from sqlalchemy import JSON, Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class PaymentStatus(str, enum.Enum):
    """Forward-only payment states."""

    INITIATED = "INITIATED"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class Payment(Base):
    """A gateway transaction created at initiation and settled by reconciliation."""

    __tablename__ = "payments"
    __table_args__ = (UniqueConstraint("reference", name="payments_reference_unique"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    # no FK: transcript_requests.payment_id already points at this table
    intended_request_id = Column(Integer, index=True)
    gateway = Column(String(32), nullable=False, default="PAYSTACK")
    reference = Column(String(64), nullable=False)
    amount_kobo = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="NGN")
    status = Column(SAEnum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.INITIATED)
    paid_at = Column(DateTime)
    raw_init_json = Column(JSON)
    raw_verify_json = Column(JSON)
    raw_webhook_json = Column(JSON)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    student = relationship("Student", back_populates="payments")
