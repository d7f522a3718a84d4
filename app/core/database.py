"""Database engine and session management.

The engine is owned by a Database object constructed at application startup and
disposed at shutdown; nothing connects at import time.
"""

import logging
from collections.abc import Generator
from pathlib import Path
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.models.base import Base

logger = logging.getLogger(__name__)


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(settings: Settings) -> Engine:
    """Create the SQLAlchemy engine for DATABASE_URL with the configured storage timeout."""
    url = settings.DATABASE_URL
    if _is_sqlite(url):
        kwargs: dict[str, Any] = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DATABASE_TIMEOUT_SEC,
            },
        }
        if url.rstrip("/") in ("sqlite:", "sqlite:/", "sqlite://") or ":memory:" in url:
            # One shared connection, otherwise every session sees an empty database.
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=settings.DEBUG, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_timeout=settings.DATABASE_TIMEOUT_SEC,
        connect_args={"connect_timeout": max(1, int(settings.DATABASE_TIMEOUT_SEC))},
        echo=settings.DEBUG,
    )


class Database:
    """Storage handle: engine plus session factory, injected where sessions are needed."""

    def __init__(self, settings: Settings) -> None:
        self.url = settings.DATABASE_URL
        self.engine = build_engine(settings)
        self._sessionmaker = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def session(self) -> Session:
        return self._sessionmaker()

    def create_all(self) -> None:
        """Create any missing tables from ORM metadata."""
        # Register every model on Base.metadata before creating tables.
        import app.models  # noqa: F401

        if _is_sqlite(self.url) and "///" in self.url and ":memory:" not in self.url:
            Path(self.url.split("///", 1)[-1]).parent.mkdir(parents=True, exist_ok=True)
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a DB session from the app's Database and closes it when done."""
    database: Database = request.app.state.database
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Database connectivity check failed: %s", type(e).__name__)
        return False
