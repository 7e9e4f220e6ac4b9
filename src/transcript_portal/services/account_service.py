"""Registration, directory lookup and login."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..clients.directory import StudentDirectory
from ..core.errors import ConflictError, NotFoundError, UnauthorizedError
from ..core.security import get_password_hash, verify_password
from ..models import Student
from ..schemas import DirectoryProfile

logger = logging.getLogger(__name__)


def lookup_profile(directory: StudentDirectory, matric_no: str) -> DirectoryProfile:
    """Return the directory record for a matric number."""

    profile = directory.find_by_matric(matric_no.strip())
    if profile is None:
        raise NotFoundError("No student record matches that matric number")
    return profile


def _find_student(session: Session, matric_no: str) -> Optional[Student]:
    stmt = select(Student).where(Student.matric_no == matric_no).limit(1)
    return session.execute(stmt).scalar_one_or_none()


def register_student(
    session: Session,
    directory: StudentDirectory,
    *,
    matric_no: str,
    password: str,
    email: str,
    phone: Optional[str] = None,
    bcrypt_rounds: int = 12,
) -> Student:
    """Create an account with a profile snapshot copied from the directory."""

    matric_no = matric_no.strip()
    if _find_student(session, matric_no) is not None:
        raise ConflictError("Account already exists")

    profile = lookup_profile(directory, matric_no)

    student = Student(
        matric_no=profile.matric_no,
        password_hash=get_password_hash(password, rounds=bcrypt_rounds),
        email=email.strip(),
        phone=phone,
        full_name=profile.full_name or None,
        department=profile.department,
        school=profile.school,
        level=profile.level,
        entry_session=profile.entry_session,
    )
    session.add(student)
    try:
        session.flush()
    except IntegrityError as exc:
        # lost a race with a concurrent registration
        raise ConflictError("Account already exists") from exc

    logger.info("registered student %s", student.matric_no)
    return student


def authenticate(session: Session, *, matric_no: str, password: str) -> Student:
    student = _find_student(session, matric_no.strip())
    if student is None or not verify_password(password, student.password_hash):
        raise UnauthorizedError("Invalid matric number or password")
    return student
