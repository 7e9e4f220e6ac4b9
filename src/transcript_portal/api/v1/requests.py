"""Transcript request, destination and event endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.config import Settings
from ...core.database import get_db, unit_of_work
from ...models import Student
from ...schemas import DestinationCreate, DestinationRead, RequestCreate, RequestCreated, RequestRead, StatusEventRead
from ...services import destination_service, event_service, identity_service, lifecycle_service
from ..deps import get_app_settings, get_current_student

router = APIRouter(prefix="/requests", tags=["requests"])


@router.post(
    "",
    response_model=RequestCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Start a transcript request",
    responses={
        201: {
            "description": "Request created and awaiting payment",
            "content": {
                "application/json": {
                    "example": {
                        "request_id": 42,
                        "status": "PAYMENT_PENDING",
                        "amount_ngn": 20000,
                        "amount_kobo": 2000000,
                    }
                }
            },
        },
        401: {"description": "Not authenticated"},
    },
)
def start_request(
    payload: RequestCreate,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> RequestCreated:
    """Open a request for the signed-in student.

    Example request body::

        {
            "scope": "OUTSIDE_NG",
            "request_email": "ada@example.edu"
        }
    """

    with unit_of_work(db):
        request = lifecycle_service.create_request(
            db,
            student=student,
            scope=payload.scope,
            request_email=payload.request_email,
        )
    amount_ngn = lifecycle_service.fee_for_scope(payload.scope, settings)
    return RequestCreated(
        request_id=request.id,
        status=request.status,
        amount_ngn=amount_ngn,
        amount_kobo=amount_ngn * 100,
    )


@router.get(
    "/{request_id}",
    response_model=RequestRead,
    summary="Get one of my requests",
    responses={404: {"description": "Request not found"}},
)
def get_request(
    request_id: int,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
) -> RequestRead:
    return identity_service.owned_request(db, student.matric_no, request_id)


@router.post(
    "/{request_id}/destination",
    response_model=DestinationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit where the transcript should be sent",
    responses={
        400: {"description": "Request not paid yet, or country does not match scope"},
        404: {"description": "Request not found"},
    },
)
def submit_destination(
    request_id: int,
    payload: DestinationCreate,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
) -> DestinationRead:
    """Record a destination; the first one moves a PAID request to SUBMITTED.

    Example request body::

        {
            "institution_name": "University of Toronto",
            "country": "Canada",
            "address_line1": "27 King's College Cir",
            "city": "Toronto",
            "state_region": "ON",
            "postal_code": "M5S 1A1"
        }
    """

    with unit_of_work(db):
        destination = destination_service.submit_destination(
            db,
            matric_no=student.matric_no,
            request_id=request_id,
            payload=payload,
        )
    return destination


@router.get(
    "/{request_id}/destination",
    response_model=Optional[DestinationRead],
    summary="Latest destination for a request",
    responses={404: {"description": "Request not found"}},
)
def get_destination(
    request_id: int,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
) -> Optional[DestinationRead]:
    """Returns ``null`` when no destination has been submitted yet."""

    return destination_service.latest_destination(db, matric_no=student.matric_no, request_id=request_id)


@router.get(
    "/{request_id}/events",
    response_model=List[StatusEventRead],
    summary="Status history of a request",
    responses={404: {"description": "Request not found"}},
)
def list_events(
    request_id: int,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
) -> List[StatusEventRead]:
    identity_service.owned_request(db, student.matric_no, request_id)
    return list(event_service.list_events(db, request_id=request_id))
