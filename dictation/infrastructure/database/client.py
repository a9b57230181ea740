"""
Database connection management.

Provides the engine/session factory for SQLAlchemy. Most code never touches
this module directly - it goes through the repositories, which translate
between ORM rows and domain models.

Any SQLAlchemy URL works. Local development defaults to a SQLite file;
in-memory SQLite ("sqlite://") shares a single connection so every session
sees the same data, which is what the test suite relies on.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Raised when the database cannot be reached."""
    pass


def create_database_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with settings appropriate for the URL's backend."""
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(url, echo=echo, pool_pre_ping=True)


class Database:
    """Owns the engine and hands out sessions."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self._engine = create_database_engine(url, echo=echo)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )
        self._schema_ready = False
        logger.info(
            "Initialized database",
            extra={"backend": self._engine.dialect.name}
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def schema_ready(self) -> bool:
        return self._schema_ready

    def create_all(self) -> None:
        """
        Create missing tables. Existing tables are left untouched.

        Raises DatabaseConnectionError if the database cannot be reached;
        schema_ready stays False so the next call tries again.
        """
        try:
            Base.metadata.create_all(bind=self._engine)
        except Exception as e:
            raise DatabaseConnectionError(str(e)) from e
        self._schema_ready = True

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a session that is rolled back on error and always closed."""
        session = self._session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> None:
        """Run SELECT 1. Raises DatabaseConnectionError if it fails."""
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            raise DatabaseConnectionError(str(e)) from e

    def dispose(self) -> None:
        self._engine.dispose()
