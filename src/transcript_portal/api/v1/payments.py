"""Payment endpoints: initiation and the three confirmation adapters.

Callback verification, manual requery and the webhook differ only in how they
receive a reference; all of them settle through
``payment_service.confirm_payment``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from ...clients.paystack import PaystackClient, verify_signature
from ...core.config import Settings
from ...core.database import get_db, unit_of_work
from ...core.errors import UnauthorizedError
from ...models import Student
from ...schemas import PaymentInit, PaymentInitResponse, VerificationResult
from ...services import identity_service, payment_service
from ...services.payment_service import ConfirmationChannel
from ..deps import get_app_settings, get_current_student, get_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

CHARGE_SUCCESS = "charge.success"


@router.post(
    "/init",
    response_model=PaymentInitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a gateway transaction for a request",
    responses={
        400: {"description": "Request not awaiting payment, or wrong amount"},
        404: {"description": "Request not found"},
        502: {"description": "Gateway unreachable or rejected the transaction"},
    },
)
def init_payment(
    payload: PaymentInit,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
) -> PaymentInitResponse:
    """Create an INITIATED payment and return the gateway's authorization URL.

    Example request body::

        {
            "request_id": 42,
            "email": "ada@example.edu",
            "amount_ngn": 20000
        }
    """

    initiated = payment_service.initiate_payment(
        db,
        gateway,
        student=student,
        request_id=payload.request_id,
        email=payload.email,
        amount_ngn=payload.amount_ngn,
        settings=settings,
    )
    return PaymentInitResponse(
        reference=initiated.reference,
        authorization_url=initiated.authorization_url,
        amount_kobo=initiated.amount_kobo,
    )


def _confirm_owned(
    db: Session,
    gateway: PaystackClient,
    settings: Settings,
    student: Student,
    reference: str,
    channel: ConfirmationChannel,
) -> VerificationResult:
    identity_service.owned_payment(db, student.matric_no, reference)
    with unit_of_work(db):
        outcome = payment_service.confirm_payment(db, gateway, reference, channel=channel, settings=settings)
    return VerificationResult(
        confirmed=outcome.confirmed,
        request_id=outcome.request_id,
        payment_status=outcome.payment_status,
    )


@router.get(
    "/verify",
    response_model=VerificationResult,
    summary="Verify a payment after the gateway redirects back",
    responses={404: {"description": "Payment not found"}, 502: {"description": "Gateway unreachable"}},
)
def verify_payment(
    reference: str = Query(..., min_length=1, alias="ref"),
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
) -> VerificationResult:
    return _confirm_owned(db, gateway, settings, student, reference, ConfirmationChannel.CALLBACK)


@router.post(
    "/{reference}/requery",
    response_model=VerificationResult,
    summary="Ask the gateway again about a payment",
    responses={404: {"description": "Payment not found"}, 502: {"description": "Gateway unreachable"}},
)
def requery_payment(
    reference: str,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
    gateway: PaystackClient = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
) -> VerificationResult:
    return _confirm_owned(db, gateway, settings, student, reference, ConfirmationChannel.REQUERY)


def _reconcile_webhook_event(
    session_factory: sessionmaker,
    gateway: PaystackClient,
    settings: Settings,
    reference: str,
    event: Dict[str, Any],
) -> None:
    session = session_factory()
    try:
        with unit_of_work(session):
            outcome = payment_service.confirm_payment(
                session,
                gateway,
                reference,
                channel=ConfirmationChannel.WEBHOOK,
                settings=settings,
                event_payload=event,
            )
        logger.info(
            "webhook for %s processed: confirmed=%s request=%s",
            reference,
            outcome.confirmed,
            outcome.request_id,
        )
    except Exception:
        # the gateway retries on non-2xx; reconciliation is idempotent, so report and acknowledge
        logger.exception("webhook for %s could not be processed", reference)
    finally:
        session.close()


@router.post(
    "/webhook",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Paystack webhook receiver",
    responses={401: {"description": "Invalid signature"}},
)
async def paystack_webhook(
    request: Request,
    x_paystack_signature: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings),
    gateway: PaystackClient = Depends(get_gateway),
) -> Dict[str, bool]:
    """Accept a signed gateway event; internal failures are logged, never returned."""

    raw_body = await request.body()
    if not verify_signature(raw_body, x_paystack_signature, settings.paystack_secret_key):
        logger.warning("rejected webhook with invalid signature")
        raise UnauthorizedError("Invalid signature")

    try:
        event = json.loads(raw_body)
    except ValueError:
        logger.warning("signed webhook body is not JSON; ignoring")
        return {"received": True}

    if not isinstance(event, dict) or event.get("event") != CHARGE_SUCCESS:
        logger.info("ignoring webhook event %s", event.get("event") if isinstance(event, dict) else None)
        return {"received": True}

    reference = (event.get("data") or {}).get("reference")
    if not reference:
        logger.warning("charge.success webhook without a reference")
        return {"received": True}

    await run_in_threadpool(
        _reconcile_webhook_event,
        request.app.state.session_factory,
        gateway,
        settings,
        reference,
        event,
    )
    return {"received": True}
