"""Task store client built on SQLAlchemy 2.0."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from task_tracker.config import Settings


logger = logging.getLogger(__name__)

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _engine_options(url: str, echo: bool, pool_pre_ping: bool, pool_recycle: int) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        if url in _IN_MEMORY_URLS:
            # One shared connection, otherwise every checkout sees an empty database
            options["poolclass"] = StaticPool
        return options

    options["pool_pre_ping"] = pool_pre_ping
    options["pool_recycle"] = pool_recycle
    return options


class Database:
    """Owns the engine and session factory for the tasks table.

    Construct once at process start, hand sessions to request handlers,
    and call :meth:`close` at shutdown.
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_pre_ping: bool = True,
        pool_recycle: int = 300,
    ) -> None:
        self.url = url
        self.engine: Engine = create_engine(
            url, **_engine_options(url, echo, pool_pre_ping, pool_recycle)
        )
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.db_echo,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=settings.db_pool_recycle,
        )

    def create_all(self) -> None:
        """Create the tasks table if it does not exist."""
        from task_tracker import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready", extra={"db.url": self.engine.url.render_as_string()})

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session, rolling back on any error before re-raising it."""
        session = self._session_factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        """Dispose of pooled connections."""
        self.engine.dispose()
        logger.info("Database connections closed")


def get_session(request: Request) -> Iterator[Session]:
    """Dependency for FastAPI to get a session from the app's store client."""
    database: Database = request.app.state.database
    with database.session() as session:
        yield session
