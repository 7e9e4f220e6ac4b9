"""Destination capture for paid transcript requests."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..models import Destination, RequestScope, RequestStatus
from ..schemas import DestinationCreate
from .identity_service import owned_request
from .lifecycle_service import transition

HOME_COUNTRY = "Nigeria"
SUBMITTED_NOTE = "Destination provided by student"

_ELIGIBLE_STATES = (RequestStatus.PAID, RequestStatus.SUBMITTED)


def submit_destination(
    session: Session,
    *,
    matric_no: str,
    request_id: int,
    payload: DestinationCreate,
) -> Destination:
    """Record a destination and, on first submission, mark the request SUBMITTED.

    Earlier destinations are kept; the newest one is authoritative.
    """

    request = owned_request(session, matric_no, request_id, lock=True)

    if request.status not in _ELIGIBLE_STATES:
        raise ValidationError("Payment must be completed before a destination can be submitted")

    if request.scope == RequestScope.WITHIN_NG and payload.country.strip() != HOME_COUNTRY:
        raise ValidationError(f"Country must be {HOME_COUNTRY} for WITHIN_NG requests")

    destination = Destination(
        request_id=request.id,
        institution_name=payload.institution_name,
        country=payload.country,
        address_line1=payload.address_line1,
        address_line2=payload.address_line2,
        city=payload.city,
        state_region=payload.state_region,
        postal_code=payload.postal_code,
        email_recipient=payload.email_recipient,
    )
    session.add(destination)
    session.flush()

    if request.status == RequestStatus.PAID:
        transition(session, request, RequestStatus.SUBMITTED, SUBMITTED_NOTE)

    session.refresh(destination)
    return destination


def latest_destination(session: Session, *, matric_no: str, request_id: int) -> Optional[Destination]:
    """Return the authoritative destination for an owned request, if any."""

    owned_request(session, matric_no, request_id)
    stmt = (
        select(Destination)
        .where(Destination.request_id == request_id)
        .order_by(Destination.created_at.desc(), Destination.id.desc())
        .limit(1)
    )
    return session.execute(stmt).scalar_one_or_none()
