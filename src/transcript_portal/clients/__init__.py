"""Adapters for systems outside the transcript store."""

from .directory import StudentDirectory
from .paystack import PaystackClient, verify_signature

__all__ = ["PaystackClient", "StudentDirectory", "verify_signature"]
