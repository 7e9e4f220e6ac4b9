"""Pydantic schemas for transcript requests, destinations and events."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import RequestScope, RequestStatus

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"


class RequestCreate(BaseModel):
    """Body for starting a transcript request."""

    scope: RequestScope
    request_email: str = Field(..., min_length=3, max_length=255, pattern=EMAIL_PATTERN)


class RequestCreated(BaseModel):
    """Returned after a request is created; the fee is what payment must cover."""

    request_id: int
    status: RequestStatus
    amount_ngn: int
    amount_kobo: int


class RequestRead(BaseModel):
    id: int
    scope: RequestScope
    status: RequestStatus
    request_email: str
    payment_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DestinationCreate(BaseModel):
    """Delivery details supplied by the student after payment."""

    institution_name: str = Field(..., min_length=1, max_length=255)
    country: str = Field(..., min_length=1, max_length=128)
    address_line1: str = Field(..., min_length=1, max_length=255)
    address_line2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, max_length=128)
    state_region: Optional[str] = Field(None, max_length=128)
    postal_code: Optional[str] = Field(None, max_length=32)
    email_recipient: Optional[str] = Field(None, max_length=255, pattern=EMAIL_PATTERN)


class DestinationRead(BaseModel):
    id: int
    institution_name: str
    country: str
    address_line1: str
    address_line2: Optional[str]
    city: Optional[str]
    state_region: Optional[str]
    postal_code: Optional[str]
    email_recipient: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusEventRead(BaseModel):
    status: RequestStatus
    note: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StaffTransition(BaseModel):
    """Staff-driven move along the lifecycle."""

    status: RequestStatus
    note: Optional[str] = Field(None, max_length=500)
