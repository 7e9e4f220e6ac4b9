"""Request-scoped dependencies resolved from the application's injected handles."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..clients.directory import StudentDirectory
from ..clients.paystack import PaystackClient
from ..core.config import Settings
from ..core.database import get_db
from ..core.errors import UnauthorizedError
from ..core.security import decode_access_token
from ..models import Student
from ..services import identity_service

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> PaystackClient:
    return request.app.state.gateway


def get_directory(request: Request) -> StudentDirectory:
    return request.app.state.directory


def get_current_matric(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Matric number carried by the bearer token."""

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Not authenticated")
    return decode_access_token(credentials.credentials, settings)


def get_current_student(
    matric_no: str = Depends(get_current_matric),
    db: Session = Depends(get_db),
) -> Student:
    return identity_service.resolve_student(db, matric_no)
