"""Public schema exports."""

from .auth import DirectoryLookup, DirectoryProfile, LoginRequest, RegisterRequest, StudentProfile, TokenResponse
from .payments import PaymentInit, PaymentInitResponse, PaymentRead, VerificationResult
from .requests import (
	DestinationCreate,
	DestinationRead,
	RequestCreate,
	RequestCreated,
	RequestRead,
	StaffTransition,
	StatusEventRead,
)

__all__ = [
	"DestinationCreate",
	"DestinationRead",
	"DirectoryLookup",
	"DirectoryProfile",
	"LoginRequest",
	"PaymentInit",
	"PaymentInitResponse",
	"PaymentRead",
	"RegisterRequest",
	"RequestCreate",
	"RequestCreated",
	"RequestRead",
	"StaffTransition",
	"StatusEventRead",
	"StudentProfile",
	"TokenResponse",
	"VerificationResult",
]
