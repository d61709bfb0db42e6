"""SQLAlchemy engine, session factory and FastAPI session dependency.

One Session is opened per request and closed when the response is sent.
Every ledger mutation is a single statement committed on its own, so no
request ever holds a multi-statement transaction open.
"""

from __future__ import annotations

import logging
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from wallet_api.core.config import DatabaseSettings, settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_db_engine(db_settings: DatabaseSettings | None = None) -> Engine:
    """Create an engine for the configured database URL.

    SQLite gets ``check_same_thread=False`` because FastAPI runs sync routes
    in a thread pool; in-memory SQLite additionally shares one connection so
    every session sees the same database.
    """

    cfg = db_settings or settings.db
    kwargs: dict = {"echo": cfg.echo}

    if cfg.url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if cfg.url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    return create_engine(cfg.url, **kwargs)


engine = create_db_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables."""

    # Register models on Base.metadata
    from wallet_api.models import transaction  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info("db.tables_ready", extra={"dialect": target.dialect.name})


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped Session."""

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
