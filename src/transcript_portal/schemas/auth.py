"""Pydantic schemas for registration, login and profile endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DirectoryLookup(BaseModel):
    """Request body for a directory lookup."""

    matric: str = Field(..., min_length=1, max_length=64)


class DirectoryProfile(BaseModel):
    """Verified record as held by the student directory."""

    matric_no: str
    surname: Optional[str] = None
    first_name: Optional[str] = None
    other_name: Optional[str] = None
    department: Optional[str] = None
    school: Optional[str] = None
    level: Optional[str] = None
    entry_session: Optional[str] = None

    @property
    def full_name(self) -> str:
        return " ".join(part.strip() for part in (self.surname, self.first_name, self.other_name) if part and part.strip())


class RegisterRequest(BaseModel):
    """Registration payload; the profile itself is re-read from the directory."""

    matric: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=6, max_length=128)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    phone: Optional[str] = Field(None, max_length=32)


class LoginRequest(BaseModel):
    matric: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class StudentProfile(BaseModel):
    """Profile snapshot stored at registration."""

    matric_no: str
    full_name: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    department: Optional[str]
    school: Optional[str]
    level: Optional[str]
    entry_session: Optional[str]

    model_config = ConfigDict(from_attributes=True)
