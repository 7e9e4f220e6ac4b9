"""Background jobs."""

from .payment_requery import register_scheduler, run_requery_once

__all__ = ["register_scheduler", "run_requery_once"]
