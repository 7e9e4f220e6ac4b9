"""Service layer exports."""

from . import (
	account_service,
	destination_service,
	event_service,
	identity_service,
	lifecycle_service,
	payment_service,
	requery_service,
)

__all__ = [
	"account_service",
	"destination_service",
	"event_service",
	"identity_service",
	"lifecycle_service",
	"payment_service",
	"requery_service",
]
