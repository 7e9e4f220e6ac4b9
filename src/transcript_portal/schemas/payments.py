"""Pydantic schemas for payment endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import PaymentStatus
from .requests import EMAIL_PATTERN


class PaymentInit(BaseModel):
    """Body for starting a gateway transaction for a request."""

    request_id: int
    email: str = Field(..., min_length=3, max_length=255, pattern=EMAIL_PATTERN)
    amount_ngn: Optional[int] = Field(None, gt=0, description="Must match the fee for the request scope when given.")


class PaymentInitResponse(BaseModel):
    reference: str
    authorization_url: str
    amount_kobo: int


class PaymentRead(BaseModel):
    reference: str
    amount_kobo: int
    currency: str
    status: PaymentStatus
    paid_at: Optional[datetime]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class VerificationResult(BaseModel):
    """Outcome of a pull verification (callback or manual requery)."""

    confirmed: bool
    request_id: Optional[int] = None
    payment_status: PaymentStatus
