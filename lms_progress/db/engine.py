"""SQLAlchemy engine and session factory.

When DATABASE_URL is configured, provides:
- a sync engine (PostgreSQL via psycopg, or any SQLAlchemy URL)
- a session factory for request-scoped sessions
- a FastAPI lifespan hook that disposes the engine on shutdown

Outside prod the lifespan hook also creates any missing tables, so a
fresh dev database works without running migrations.  In prod the
schema comes from `alembic upgrade head` only.

When DATABASE_URL is None, `engine` and `session_factory` are None and
the app falls back to in-memory repositories.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from lms_progress.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


def make_engine(url: str, **kwargs) -> Engine:
    if url.startswith("postgresql"):
        kwargs.setdefault("pool_size", 5)
        kwargs.setdefault("max_overflow", 10)
    return create_engine(url, pool_pre_ping=True, **kwargs)


def make_session_factory(bind: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


# --- Engine and session factory (None when no DATABASE_URL) ---

if SETTINGS.database_url:
    engine: Engine | None = make_engine(SETTINGS.database_url, echo=SETTINGS.is_dev)
    session_factory: sessionmaker[Session] | None = make_session_factory(engine)
else:
    engine = None
    session_factory = None


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:
    """One unit of work: commit on success, roll back on exception."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_schema(bind: Engine) -> None:
    # Registers every Row class on Base.metadata
    from lms_progress.db import tables  # noqa: F401

    Base.metadata.create_all(bind)


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engine."""
    if engine is None:
        logger.info("No DATABASE_URL configured, using in-memory repositories")
        yield
        return

    if SETTINGS.is_prod:
        logger.info("Schema managed by migrations (alembic upgrade head)")
    else:
        create_schema(engine)
    logger.info("Database engine created: %s", engine.url.render_as_string())
    yield
    engine.dispose()
    logger.info("Database engine disposed")
