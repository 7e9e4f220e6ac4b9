"""Ownership checks joining every resource through the acting student's matric number."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, UnauthorizedError
from ..models import Payment, Student, TranscriptRequest


def resolve_student(session: Session, matric_no: str) -> Student:
    """Return the student behind a session, or reject the session."""

    stmt = select(Student).where(Student.matric_no == matric_no)
    student = session.execute(stmt).scalar_one_or_none()
    if student is None:
        raise UnauthorizedError("Unknown account")
    return student


def owned_request(session: Session, matric_no: str, request_id: int, *, lock: bool = False) -> TranscriptRequest:
    """Fetch a request only if ``matric_no`` owns it.

    Absent and foreign requests raise the same ``NotFoundError``.
    """

    stmt = (
        select(TranscriptRequest)
        .join(Student, Student.id == TranscriptRequest.student_id)
        .where(TranscriptRequest.id == request_id, Student.matric_no == matric_no)
    )
    if lock:
        stmt = stmt.with_for_update(of=TranscriptRequest).execution_options(populate_existing=True)
    request = session.execute(stmt).scalar_one_or_none()
    if request is None:
        raise NotFoundError("Request not found")
    return request


def owned_payment(session: Session, matric_no: str, reference: str) -> Payment:
    stmt = (
        select(Payment)
        .join(Student, Student.id == Payment.student_id)
        .where(Payment.reference == reference, Student.matric_no == matric_no)
    )
    payment = session.execute(stmt).scalar_one_or_none()
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment
