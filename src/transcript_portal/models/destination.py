"""Delivery destination model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class Destination(Base):
    """Where a transcript should go; the newest row per request wins."""

    __tablename__ = "destinations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("transcript_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    institution_name = Column(String(255), nullable=False)
    country = Column(String(128), nullable=False)
    address_line1 = Column(String(255), nullable=False)
    address_line2 = Column(String(255))
    city = Column(String(128))
    state_region = Column(String(128))
    postal_code = Column(String(32))
    email_recipient = Column(String(255))
    created_at = Column(DateTime, default=utc_now, nullable=False)

    request = relationship("TranscriptRequest", back_populates="destinations")
