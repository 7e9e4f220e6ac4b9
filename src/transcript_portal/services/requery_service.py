"""Scheduled requery of payments the gateway never reported back on."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..clients.paystack import PaystackClient
from ..core.config import Settings
from ..core.database import unit_of_work
from ..core.errors import PortalError
from ..models import Payment, PaymentStatus
from ..utils.datetime import to_naive_utc
from .payment_service import ConfirmationChannel, confirm_payment

logger = logging.getLogger(__name__)


def find_stale_payments(
    session: Session,
    *,
    now: datetime,
    grace_minutes: int,
    max_age_hours: int,
    limit: int,
) -> Sequence[str]:
    """References of INITIATED payments older than the grace period but not abandoned for good."""

    newest = now - timedelta(minutes=grace_minutes)
    oldest = now - timedelta(hours=max_age_hours)
    stmt = (
        select(Payment.reference)
        .where(
            Payment.status == PaymentStatus.INITIATED,
            Payment.created_at <= newest,
            Payment.created_at >= oldest,
        )
        .order_by(Payment.created_at.asc())
        .limit(limit)
    )
    return session.execute(stmt).scalars().all()


def run_payment_requery(
    session: Session,
    gateway: PaystackClient,
    settings: Settings,
    *,
    current_time: datetime | None = None,
) -> dict[str, int]:
    """Requery stale payments one by one, each in its own transaction.

    Returns summary statistics useful for logging/testing.
    """

    now_naive = to_naive_utc(current_time)

    references = find_stale_payments(
        session,
        now=now_naive,
        grace_minutes=settings.requery_grace_minutes,
        max_age_hours=settings.requery_max_age_hours,
        limit=settings.requery_batch_size,
    )
    session.rollback()

    summary = {
        "checked": 0,
        "confirmed": 0,
        "failed": 0,
        "errors": 0,
    }

    for reference in references:
        summary["checked"] += 1
        try:
            with unit_of_work(session):
                outcome = confirm_payment(
                    session,
                    gateway,
                    reference,
                    channel=ConfirmationChannel.SCHEDULED,
                    settings=settings,
                )
        except PortalError as exc:
            summary["errors"] += 1
            logger.warning("requery of payment %s failed: %s", reference, exc.detail)
            continue

        if outcome.confirmed:
            summary["confirmed"] += 1
        elif outcome.payment_status == PaymentStatus.FAILED:
            summary["failed"] += 1

    return summary
