"""Append-only status event log."""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import RequestStatus, StatusEvent, TranscriptRequest


def append_event(
    session: Session,
    request: TranscriptRequest,
    status: RequestStatus,
    note: Optional[str] = None,
) -> StatusEvent:
    """Record that ``request`` reached ``status``."""

    event = StatusEvent(request_id=request.id, status=status, note=note)
    session.add(event)
    session.flush()
    return event


def list_events(session: Session, *, request_id: int) -> Sequence[StatusEvent]:
    """Return the audit trail for a request, oldest first."""

    stmt = (
        select(StatusEvent)
        .where(StatusEvent.request_id == request_id)
        .order_by(StatusEvent.created_at.asc(), StatusEvent.id.asc())
    )
    return session.execute(stmt).scalars().all()
