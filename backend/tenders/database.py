"""Database engine, session factory and unit-of-work boundary."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings
from .domain_errors import DomainError, InternalError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _configure_sqlite(engine: Engine) -> None:
    """Enable foreign key enforcement on every SQLite connection."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ARG001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})
        _configure_sqlite(sqlite_engine)
        return sqlite_engine
    return create_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables from ORM metadata."""
    from . import models  # noqa: F401  (registers mappers on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing at all."""
    try:
        yield db
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Persistence failure, transaction rolled back")
        raise InternalError(details={"reason": exc.__class__.__name__}) from exc
    except Exception:
        db.rollback()
        raise
