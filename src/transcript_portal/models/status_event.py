"""Status event model forming the request audit trail."""

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now
from .transcript_request import RequestStatus


class StatusEvent(Base):
    """Append-only record of a lifecycle transition."""

    __tablename__ = "status_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("transcript_requests.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(SAEnum(RequestStatus, name="request_status"), nullable=False)
    note = Column(String(500))
    created_at = Column(DateTime, default=utc_now, nullable=False)

    request = relationship("TranscriptRequest", back_populates="events")
