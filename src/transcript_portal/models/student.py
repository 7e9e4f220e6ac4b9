"""Student account model."""

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..utils.datetime import utc_now


class Student(Base):
    """Registered student with a profile snapshot taken from the directory."""

    __tablename__ = "students"
    __table_args__ = (UniqueConstraint("matric_no", name="students_matric_no_unique"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    matric_no = Column(String(64), nullable=False)
    password_hash = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(32))
    full_name = Column(String(255))
    department = Column(String(255))
    school = Column(String(255))
    level = Column(String(32))
    entry_session = Column(String(32))
    created_at = Column(DateTime, default=utc_now, nullable=False)

    requests = relationship("TranscriptRequest", back_populates="student")
    payments = relationship("Payment", back_populates="student")
