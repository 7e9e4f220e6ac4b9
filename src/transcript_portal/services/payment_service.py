"""Payment initiation and the single reconciliation routine.

Webhook, callback verification, manual requery and the scheduled requery job
all settle payments through :func:`confirm_payment`. Only a payment that is
``SUCCESS`` moves a request to ``PAID``; a payment already ``SUCCESS`` is never
re-verified remotely, which keeps duplicate confirmations idempotent.
"""

from __future__ import annotations

import enum
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..clients.paystack import FAILED_STATUSES, SUCCESS_STATUSES, PaystackClient, gateway_status
from ..core.config import Settings
from ..core.database import unit_of_work
from ..core.errors import NotFoundError, UpstreamError, ValidationError
from ..models import Payment, PaymentStatus, RequestStatus, Student
from ..utils.datetime import utc_now
from .identity_service import owned_request
from .lifecycle_service import fee_for_scope, link_confirmed_payment

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "TRX_"
REFERENCE_LENGTH = 18


class ConfirmationChannel(str, enum.Enum):
    """Transport that delivered a confirmation signal."""

    WEBHOOK = "webhook"
    CALLBACK = "callback"
    REQUERY = "requery"
    SCHEDULED = "scheduled requery"

    @property
    def note(self) -> str:
        return f"Payment verified via {self.value}"


@dataclass(frozen=True)
class ConfirmationOutcome:
    reference: str
    confirmed: bool
    payment_status: PaymentStatus
    request_id: Optional[int] = None


@dataclass(frozen=True)
class InitiatedPayment:
    reference: str
    authorization_url: str
    amount_kobo: int


def generate_reference() -> str:
    return REFERENCE_PREFIX + secrets.token_urlsafe(REFERENCE_LENGTH)[:REFERENCE_LENGTH]


def _payment_by_reference(session: Session, reference: str, *, lock: bool = False) -> Payment:
    stmt = select(Payment).where(Payment.reference == reference)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    payment = session.execute(stmt).scalar_one_or_none()
    if payment is None:
        raise NotFoundError("Payment not found")
    return payment


def create_payment(
    session: Session,
    *,
    student: Student,
    request_id: int,
    amount_ngn: Optional[int],
    settings: Settings,
) -> Payment:
    """Insert an INITIATED payment for an owned request awaiting payment."""

    request = owned_request(session, student.matric_no, request_id)
    if request.status != RequestStatus.PAYMENT_PENDING:
        raise ValidationError("Request is not awaiting payment")

    fee_ngn = fee_for_scope(request.scope, settings)
    if amount_ngn is not None and amount_ngn != fee_ngn:
        raise ValidationError(f"Amount must be {fee_ngn} NGN for {request.scope.value} requests")

    payment = Payment(
        student_id=student.id,
        intended_request_id=request.id,
        gateway="PAYSTACK",
        reference=generate_reference(),
        amount_kobo=fee_ngn * 100,
        currency="NGN",
        status=PaymentStatus.INITIATED,
    )
    session.add(payment)
    session.flush()
    return payment


def initiate_payment(
    session: Session,
    gateway: PaystackClient,
    *,
    student: Student,
    request_id: int,
    email: str,
    amount_ngn: Optional[int],
    settings: Settings,
) -> InitiatedPayment:
    """Create the payment row, then open the transaction at the gateway.

    Runs as separate units of work: the INITIATED row is committed before the
    gateway is called so verification never has to synthesize a payment.
    """

    with unit_of_work(session):
        payment = create_payment(
            session,
            student=student,
            request_id=request_id,
            amount_ngn=amount_ngn,
            settings=settings,
        )
    reference = payment.reference

    try:
        init_payload = gateway.initialize_transaction(
            email=email,
            amount_kobo=payment.amount_kobo,
            reference=reference,
            callback_url=f"{settings.app_url.rstrip('/')}/payments/callback?ref={reference}",
            metadata={"request_id": request_id, "matric_no": student.matric_no},
        )
    except UpstreamError as exc:
        with unit_of_work(session):
            failed = _payment_by_reference(session, reference, lock=True)
            if failed.status == PaymentStatus.INITIATED:
                failed.status = PaymentStatus.FAILED
                failed.raw_init_json = {"error": exc.detail}
        raise

    with unit_of_work(session):
        stored = _payment_by_reference(session, reference, lock=True)
        stored.raw_init_json = init_payload

    logger.info("payment %s initiated for request %s", reference, request_id)
    return InitiatedPayment(
        reference=reference,
        authorization_url=init_payload["data"]["authorization_url"],
        amount_kobo=payment.amount_kobo,
    )


def confirm_payment(
    session: Session,
    gateway: PaystackClient,
    reference: str,
    *,
    channel: ConfirmationChannel,
    settings: Settings,
    event_payload: Optional[Dict[str, Any]] = None,
) -> ConfirmationOutcome:
    """Settle a payment and link it to a request.

    Callers wrap this in ``unit_of_work`` so the payment update, request
    transition and status event commit together. The gateway is only asked
    while the payment is still INITIATED, and before any row is written.
    """

    payment = _payment_by_reference(session, reference)

    verify_payload: Optional[Dict[str, Any]] = None
    if payment.status == PaymentStatus.INITIATED:
        verify_payload = gateway.verify_transaction(reference)

    payment = _payment_by_reference(session, reference, lock=True)

    # settled payments keep the audit trail of the delivery that settled them
    if event_payload is not None and payment.status == PaymentStatus.INITIATED:
        payment.raw_webhook_json = event_payload

    if verify_payload is not None:
        if payment.status == PaymentStatus.INITIATED:
            payment.raw_verify_json = verify_payload
            remote_status = gateway_status(verify_payload)
            if remote_status in SUCCESS_STATUSES:
                payment.status = PaymentStatus.SUCCESS
                payment.paid_at = utc_now()
                logger.info("payment %s confirmed via %s", reference, channel.value)
            elif remote_status in FAILED_STATUSES:
                payment.status = PaymentStatus.FAILED
                logger.info("payment %s failed at gateway (%s)", reference, remote_status)
            else:
                logger.info("payment %s still pending at gateway (%s)", reference, remote_status or "unknown")
        else:
            logger.info("payment %s settled concurrently as %s", reference, payment.status.value)

    request_id: Optional[int] = None
    if payment.status == PaymentStatus.SUCCESS:
        request_id = link_confirmed_payment(session, payment, settings, note=channel.note)

    session.flush()
    return ConfirmationOutcome(
        reference=reference,
        confirmed=payment.status == PaymentStatus.SUCCESS,
        payment_status=PaymentStatus(payment.status),
        request_id=request_id,
    )


def list_payments(session: Session, *, student_id: int) -> Sequence[Payment]:
    stmt = (
        select(Payment)
        .where(Payment.student_id == student_id)
        .order_by(Payment.created_at.desc(), Payment.id.desc())
    )
    return session.execute(stmt).scalars().all()
