"""Staff-only lifecycle transitions."""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from ...core.config import Settings
from ...core.database import get_db, unit_of_work
from ...core.errors import UnauthorizedError
from ...schemas import RequestRead, StaffTransition
from ...services import lifecycle_service
from ..deps import get_app_settings

router = APIRouter(prefix="/staff", tags=["staff"])


def require_staff(
    x_staff_token: Optional[str] = Header(None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    expected = settings.staff_api_token
    if not expected or not x_staff_token or not hmac.compare_digest(expected, x_staff_token):
        raise UnauthorizedError("Staff token required")


@router.post(
    "/requests/{request_id}/transitions",
    response_model=RequestRead,
    summary="Move a request along the lifecycle",
    dependencies=[Depends(require_staff)],
    responses={
        400: {"description": "Transition not allowed"},
        401: {"description": "Missing or wrong staff token"},
        404: {"description": "Request not found"},
    },
)
def transition_request(
    request_id: int,
    payload: StaffTransition,
    db: Session = Depends(get_db),
) -> RequestRead:
    """Apply PROCESSING, SENT or CANCELLED and log it.

    Example request body::

        {
            "status": "PROCESSING",
            "note": "Transcript printed and sealed"
        }
    """

    with unit_of_work(db):
        request = lifecycle_service.apply_staff_transition(
            db,
            request_id=request_id,
            target=payload.status,
            note=payload.note,
        )
    return request
