"""Registration and login endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...clients.directory import StudentDirectory
from ...core.config import Settings
from ...core.database import get_db, unit_of_work
from ...core.security import create_access_token
from ...schemas import DirectoryLookup, DirectoryProfile, LoginRequest, RegisterRequest, StudentProfile, TokenResponse
from ...services import account_service
from ..deps import get_app_settings, get_directory

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/lookup",
    response_model=DirectoryProfile,
    summary="Look up a student in the directory",
    responses={404: {"description": "No matching student record"}, 502: {"description": "Directory unavailable"}},
)
def lookup(
    payload: DirectoryLookup,
    directory: StudentDirectory = Depends(get_directory),
) -> DirectoryProfile:
    """Return the verified profile a new account will be created from."""

    return account_service.lookup_profile(directory, payload.matric)


@router.post(
    "/register",
    response_model=StudentProfile,
    status_code=status.HTTP_201_CREATED,
    summary="Create a student account",
    responses={404: {"description": "No matching student record"}, 409: {"description": "Account already exists"}},
)
def register(
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    directory: StudentDirectory = Depends(get_directory),
    settings: Settings = Depends(get_app_settings),
) -> StudentProfile:
    """Register a student.

    Example request body::

        {
            "matric": "CSC/2016/001",
            "password": "s3cret-pass",
            "email": "ada@example.edu",
            "phone": "+2348000000000"
        }
    """

    with unit_of_work(db):
        student = account_service.register_student(
            db,
            directory,
            matric_no=payload.matric,
            password=payload.password,
            email=payload.email,
            phone=payload.phone,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
    return student


@router.post("/login", response_model=TokenResponse, summary="Exchange credentials for a token")
def login(
    payload: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> TokenResponse:
    student = account_service.authenticate(db, matric_no=payload.matric, password=payload.password)
    return TokenResponse(access_token=create_access_token(student.matric_no, settings))
