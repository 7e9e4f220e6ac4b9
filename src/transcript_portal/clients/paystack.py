"""Thin Paystack HTTP client and webhook signature check."""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..core.errors import UpstreamError

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = frozenset({"success"})
FAILED_STATUSES = frozenset({"failed", "reversed"})


def verify_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """Check ``x-paystack-signature``: hex HMAC-SHA512 of the raw body."""

    if not secret or not signature:
        return False
    computed = hmac.new(secret.encode(), payload, hashlib.sha512).hexdigest()
    return hmac.compare_digest(computed, signature.strip().lower())


class PaystackClient:
    """Initializes and verifies transactions against the Paystack API."""

    def __init__(self, secret_key: str, base_url: str = "https://api.paystack.co", timeout: float = 15.0) -> None:
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.secret_key}",
            "Content-Type": "application/json",
        }

    def _decode(self, response: requests.Response, action: str) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as exc:
            logger.error("paystack %s returned non-JSON (HTTP %s)", action, response.status_code)
            raise UpstreamError(f"Payment gateway returned an invalid {action} response") from exc
        if not isinstance(body, dict):
            raise UpstreamError(f"Payment gateway returned an invalid {action} response")
        return body

    def initialize_transaction(
        self,
        *,
        email: str,
        amount_kobo: int,
        reference: str,
        callback_url: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Start a transaction; the payer continues at ``data.authorization_url``."""

        payload: Dict[str, Any] = {
            "email": email,
            "amount": amount_kobo,
            "reference": reference,
            "callback_url": callback_url,
        }
        if metadata:
            payload["metadata"] = metadata

        try:
            response = requests.post(
                f"{self.base_url}/transaction/initialize",
                headers=self._headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("paystack initialize failed for %s: %s", reference, exc)
            raise UpstreamError("Payment gateway is unreachable") from exc

        body = self._decode(response, "initialize")
        if not body.get("status") or not (body.get("data") or {}).get("authorization_url"):
            logger.warning("paystack rejected initialize for %s: %s", reference, body.get("message"))
            raise UpstreamError(body.get("message") or "Payment gateway rejected the transaction")
        return body

    def verify_transaction(self, reference: str) -> Dict[str, Any]:
        """Return the raw verify payload; ``data.status`` is authoritative."""

        try:
            response = requests.get(
                f"{self.base_url}/transaction/verify/{quote(reference, safe='')}",
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("paystack verify failed for %s: %s", reference, exc)
            raise UpstreamError("Payment gateway is unreachable") from exc

        return self._decode(response, "verify")


def gateway_status(verify_payload: Dict[str, Any]) -> str:
    """Extract the lower-cased transaction status from a verify payload."""

    data = verify_payload.get("data") or {}
    if not isinstance(data, dict):
        return ""
    return str(data.get("status") or "").lower()
