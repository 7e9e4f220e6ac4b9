"""Endpoints scoped to the signed-in student."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...models import Student
from ...schemas import PaymentRead, RequestRead, StudentProfile
from ...services import lifecycle_service, payment_service
from ..deps import get_current_student

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/profile", response_model=StudentProfile, summary="Current student's profile")
def profile(student: Student = Depends(get_current_student)) -> StudentProfile:
    return student


@router.get("/requests", response_model=List[RequestRead], summary="Current student's requests")
def my_requests(
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
) -> List[RequestRead]:
    """Newest first."""

    return list(lifecycle_service.list_requests(db, student_id=student.id))


@router.get("/payments", response_model=List[PaymentRead], summary="Current student's payments")
def my_payments(
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
) -> List[PaymentRead]:
    return list(payment_service.list_payments(db, student_id=student.id))
