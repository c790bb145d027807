"""Engine and session management.

The app factory builds one engine and one session factory per application and
keeps them on ``app.state``; request handlers receive a session through the
``SessionDep`` dependency.

Usage:
    @router.get("/items")
    def list_items(session: SessionDep):
        return session.scalars(select(Item)).all()
"""

from __future__ import annotations

import logging
from typing import Annotated, Iterator

from fastapi import Depends, Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import DatabaseSettings
from app.db import models  # noqa: F401 - import to register models
from app.db.base import Base

logger = logging.getLogger(__name__)


def create_db_engine(db_settings: DatabaseSettings) -> Engine:
    """Create the SQLAlchemy engine for the configured database.

    In-memory SQLite gets a single shared connection so every session (and
    every worker thread) sees the same database.
    """
    url = db_settings.dsn()

    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
    else:
        engine = create_engine(
            url,
            pool_size=db_settings.pool_size,
            max_overflow=db_settings.max_overflow,
            pool_recycle=db_settings.pool_recycle_seconds,
            pool_pre_ping=True,
        )

    logger.info("db.engine_created", extra={"target": db_settings.safe_dsn()})
    return engine


def get_session_maker(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autoflush=False)


def verify_connection(engine: Engine) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def init_db(engine: Engine) -> None:
    """Create missing tables from the ORM metadata (auto-migrate)."""
    Base.metadata.create_all(engine)
    logger.info("db.auto_migrate_completed")


def get_db(request: Request) -> Iterator[Session]:
    """Yield a session bound to the application's engine."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


SessionDep = Annotated[Session, Depends(get_db)]
