"""Database engine, session factory and unit-of-work helpers."""

import logging
from contextlib import contextmanager
from typing import Generator, Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .errors import InternalError, PortalError

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``."""

    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, future=True, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True)


def get_db(request: Request) -> Generator:
    """Yield a database session for request lifetime."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(session: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing.

    Domain errors are re-raised after rollback; database errors become
    ``InternalError`` so that no partial linkage is ever reported as success.
    """

    try:
        yield session
        session.commit()
    except PortalError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("transaction rolled back")
        raise InternalError("Transaction failed") from exc
    except Exception:
        session.rollback()
        raise
