"""Background scheduler that requeries payments stuck in INITIATED."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from ..clients.paystack import PaystackClient
from ..core.config import Settings
from ..services.requery_service import run_payment_requery

logger = logging.getLogger(__name__)

JOB_ID = "payment_requery"


def _execute_requery(session_factory: sessionmaker, gateway: PaystackClient, settings: Settings) -> dict[str, int]:
    session = session_factory()
    try:
        summary = run_payment_requery(session, gateway, settings, current_time=datetime.now(timezone.utc))
        logger.info("payment requery completed: %s", summary)
        return summary
    except Exception:  # pragma: no cover - safeguard for background job
        session.rollback()
        logger.exception("payment requery job failed")
        raise
    finally:
        session.close()


def register_scheduler(app: FastAPI) -> AsyncIOScheduler:
    """Attach APScheduler lifecycle hooks to the FastAPI app."""

    settings: Settings = app.state.settings
    scheduler = AsyncIOScheduler(timezone="UTC")

    async def _scheduled_job() -> None:
        await run_in_threadpool(_execute_requery, app.state.session_factory, app.state.gateway, settings)

    scheduler.add_job(
        _scheduled_job,
        "interval",
        minutes=settings.requery_interval_minutes,
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=300,
    )
    app.state.scheduler = scheduler

    @app.on_event("startup")
    async def start_scheduler() -> None:
        if not scheduler.running:
            scheduler.start()
            logger.info("payment requery scheduler started")

    @app.on_event("shutdown")
    async def shutdown_scheduler() -> None:
        if scheduler.running:
            scheduler.shutdown(wait=False)
            logger.info("payment requery scheduler stopped")

    return scheduler


def run_requery_once(app: FastAPI) -> dict[str, int]:
    """Convenience helper to run the requery synchronously for manual testing."""

    return _execute_requery(app.state.session_factory, app.state.gateway, app.state.settings)
