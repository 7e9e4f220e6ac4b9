"""Primary API router definition."""

from fastapi import APIRouter

from . import auth, me, payments, requests, staff

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(me.router)
api_router.include_router(requests.router)
api_router.include_router(payments.router)
api_router.include_router(staff.router)


@api_router.get("/health", tags=["health"])
async def healthcheck() -> dict[str, str]:
    """Basic health probe endpoint."""
    return {"status": "ok"}
