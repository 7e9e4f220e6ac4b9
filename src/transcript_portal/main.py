"""FastAPI application entrypoint for the transcript portal."""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.v1.router import api_router
from .clients.directory import StudentDirectory
from .clients.paystack import PaystackClient
from .core.config import Settings, get_settings
from .core.database import Base, build_engine, build_session_factory
from .core.errors import PortalError
from .core.logging_config import configure_logging
from .jobs import register_scheduler


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(
    settings: Optional[Settings] = None,
    *,
    gateway: Optional[PaystackClient] = None,
    directory: Optional[StudentDirectory] = None,
) -> FastAPI:
    """Instantiate and configure the FastAPI application.

    Data-store handles and outbound clients live on ``app.state`` and reach
    handlers through dependencies; nothing is shared at module level.
    """

    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Transcript Portal API", version="0.1.0")

    engine = build_engine(settings.database_url)
    if settings.create_tables:
        Base.metadata.create_all(engine)

    if gateway is None:
        gateway = PaystackClient(
            settings.paystack_secret_key,
            base_url=settings.paystack_base_url,
            timeout=settings.http_timeout_seconds,
        )
    if directory is None:
        directory = StudentDirectory(build_session_factory(build_engine(settings.directory_database_url)))

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.gateway = gateway
    app.state.directory = directory

    app.add_exception_handler(PortalError, portal_error_handler)
    app.include_router(api_router, prefix="/api/v1")
    if settings.scheduler_enabled:
        register_scheduler(app)
    return app


app = create_app()
