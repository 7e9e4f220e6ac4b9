"""Read-only adapter over the university's student directory database."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import Column, MetaData, String, Table, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..core.errors import UpstreamError
from ..schemas.auth import DirectoryProfile

logger = logging.getLogger(__name__)

directory_metadata = MetaData()

# Owned by the e-portal; never created or migrated from here outside of tests.
std_data_view = Table(
    "std_data_view",
    directory_metadata,
    Column("matric_no", String(64), primary_key=True),
    Column("surname", String(128)),
    Column("first_name", String(128)),
    Column("other_name", String(128)),
    Column("department", String(255)),
    Column("school", String(255)),
    Column("level", String(32)),
    Column("entry_session", String(32)),
)


class StudentDirectory:
    """Looks up verified student profiles by matriculation number."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def find_by_matric(self, matric_no: str) -> Optional[DirectoryProfile]:
        stmt = select(std_data_view).where(std_data_view.c.matric_no == matric_no.strip()).limit(1)
        session = self._session_factory()
        try:
            row = session.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            logger.exception("directory lookup failed for %s", matric_no)
            raise UpstreamError("Student directory is unavailable") from exc
        finally:
            session.close()

        if row is None:
            return None
        return DirectoryProfile(**dict(row))
