"""Transcript request lifecycle: creation, transitions and payment linkage."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.errors import NotFoundError, ValidationError
from ..models import Payment, PaymentStatus, RequestScope, RequestStatus, Student, TranscriptRequest
from .event_service import append_event

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.DRAFT: frozenset({RequestStatus.PAYMENT_PENDING, RequestStatus.CANCELLED}),
    RequestStatus.PAYMENT_PENDING: frozenset({RequestStatus.PAID, RequestStatus.CANCELLED}),
    RequestStatus.PAID: frozenset({RequestStatus.SUBMITTED, RequestStatus.CANCELLED}),
    RequestStatus.SUBMITTED: frozenset({RequestStatus.PROCESSING, RequestStatus.CANCELLED}),
    RequestStatus.PROCESSING: frozenset({RequestStatus.SENT, RequestStatus.CANCELLED}),
    RequestStatus.SENT: frozenset(),
    RequestStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset({RequestStatus.SENT, RequestStatus.CANCELLED})

# PAID and SUBMITTED only happen through payment confirmation and destination capture.
STAFF_TARGETS = frozenset(
    {RequestStatus.PAYMENT_PENDING, RequestStatus.PROCESSING, RequestStatus.SENT, RequestStatus.CANCELLED}
)

LINKABLE_STATES = (RequestStatus.PAYMENT_PENDING, RequestStatus.PAID)


def fee_for_scope(scope: RequestScope, settings: Settings) -> int:
    """Fee in naira for the delivery scope."""

    if scope == RequestScope.WITHIN_NG:
        return settings.within_ng_fee_ngn
    return settings.outside_ng_fee_ngn


def can_transition(current: RequestStatus, target: RequestStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition(
    session: Session,
    request: TranscriptRequest,
    target: RequestStatus,
    note: Optional[str] = None,
) -> TranscriptRequest:
    """Move ``request`` to ``target`` and log it, or refuse without side effects."""

    current = RequestStatus(request.status)
    if not can_transition(current, target):
        raise ValidationError(f"Cannot move request from {current.value} to {target.value}")

    request.status = target
    append_event(session, request, target, note)
    logger.info("request %s: %s -> %s", request.id, current.value, target.value)
    return request


def create_request(
    session: Session,
    *,
    student: Student,
    scope: RequestScope,
    request_email: str,
) -> TranscriptRequest:
    """Open a request awaiting payment."""

    request = TranscriptRequest(
        student_id=student.id,
        scope=scope,
        request_email=request_email.strip(),
        status=RequestStatus.PAYMENT_PENDING,
    )
    session.add(request)
    session.flush()
    session.refresh(request)
    return request


def list_requests(session: Session, *, student_id: int) -> Sequence[TranscriptRequest]:
    stmt = (
        select(TranscriptRequest)
        .where(TranscriptRequest.student_id == student_id)
        .order_by(TranscriptRequest.created_at.desc(), TranscriptRequest.id.desc())
    )
    return session.execute(stmt).scalars().all()


def _linked_request(session: Session, payment: Payment) -> Optional[TranscriptRequest]:
    stmt = select(TranscriptRequest).where(TranscriptRequest.payment_id == payment.id).limit(1)
    return session.execute(stmt).scalar_one_or_none()


def _intended_request(session: Session, payment: Payment) -> Optional[TranscriptRequest]:
    stmt = (
        select(TranscriptRequest)
        .where(
            TranscriptRequest.id == payment.intended_request_id,
            TranscriptRequest.student_id == payment.student_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return session.execute(stmt).scalar_one_or_none()


def _most_recent_linkable(session: Session, student_id: int) -> Optional[TranscriptRequest]:
    stmt = (
        select(TranscriptRequest)
        .where(
            TranscriptRequest.student_id == student_id,
            TranscriptRequest.status.in_(LINKABLE_STATES),
        )
        .order_by(TranscriptRequest.created_at.desc(), TranscriptRequest.id.desc())
        .limit(1)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return session.execute(stmt).scalar_one_or_none()


def _link_candidate(session: Session, payment: Payment, settings: Settings) -> Optional[TranscriptRequest]:
    """The request a payment may settle, or ``None``.

    A payment started for a request only ever settles that request. Payments
    without one fall back to the newest request awaiting payment, provided
    the amount paid is that request's fee.
    """

    if payment.intended_request_id is not None:
        candidate = _intended_request(session, payment)
        if candidate is None or candidate.status not in LINKABLE_STATES:
            logger.warning(
                "payment %s not linked: request %s is no longer awaiting payment",
                payment.reference,
                payment.intended_request_id,
            )
            return None
        return candidate

    candidate = _most_recent_linkable(session, payment.student_id)
    if candidate is None:
        logger.warning("payment %s confirmed but no request awaits it", payment.reference)
        return None

    expected_kobo = fee_for_scope(candidate.scope, settings) * 100
    if payment.amount_kobo != expected_kobo:
        logger.warning(
            "payment %s not linked: paid %s kobo, request %s costs %s kobo",
            payment.reference,
            payment.amount_kobo,
            candidate.id,
            expected_kobo,
        )
        return None
    return candidate


def link_confirmed_payment(session: Session, payment: Payment, settings: Settings, *, note: str) -> Optional[int]:
    """Attach a successful payment to a request and mark that request PAID.

    Safe to call repeatedly: a payment already linked returns its request
    without logging again. Returns ``None`` when no request can take the
    payment; the payment itself stays recorded.
    """

    if payment.status != PaymentStatus.SUCCESS:
        raise ValidationError("Only successful payments can be linked")

    linked = _linked_request(session, payment)
    if linked is not None:
        return linked.id

    candidate = _link_candidate(session, payment, settings)
    if candidate is None:
        return None

    if candidate.status == RequestStatus.PAID:
        if candidate.payment_id is not None:
            logger.warning(
                "payment %s not linked: request %s is already paid by payment %s",
                payment.reference,
                candidate.id,
                candidate.payment_id,
            )
            return None
        candidate.payment_id = payment.id
        session.flush()
        return candidate.id

    candidate.payment_id = payment.id
    transition(session, candidate, RequestStatus.PAID, note)
    session.flush()
    return candidate.id


def apply_staff_transition(
    session: Session,
    *,
    request_id: int,
    target: RequestStatus,
    note: Optional[str] = None,
) -> TranscriptRequest:
    """Staff-driven moves: processing, dispatch and cancellation."""

    if target not in STAFF_TARGETS:
        raise ValidationError(f"{target.value} cannot be set by staff")

    stmt = (
        select(TranscriptRequest)
        .where(TranscriptRequest.id == request_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    request = session.execute(stmt).scalar_one_or_none()
    if request is None:
        raise NotFoundError("Request not found")

    return transition(session, request, target, note)
