"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before any wallet_api import so settings
pick up an in-memory database and a quiet log configuration.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("DB_CREATE_TABLES_ON_STARTUP", "true")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from wallet_api.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter
from wallet_api.core.config import DatabaseSettings
from wallet_api.core.database import Base, create_db_engine, get_session, init_db
from wallet_api.core.rate_limit import get_rate_limiter
from wallet_api.main import app
from wallet_api.repositories.transaction_repository import TransactionRepository
from wallet_api.services.transaction_service import TransactionService


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory SQLite database per test."""
    db_engine = create_db_engine(DatabaseSettings(url="sqlite://"))
    init_db(db_engine)
    yield db_engine
    Base.metadata.drop_all(db_engine)
    db_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    db_session = session_factory()
    yield db_session
    db_session.close()


@pytest.fixture
def service(session: Session) -> TransactionService:
    return TransactionService(TransactionRepository(session))


@pytest.fixture
def limiter() -> InMemorySlidingWindowRateLimiter:
    """Limiter with the production defaults (100 requests / 60 s)."""
    return InMemorySlidingWindowRateLimiter(limit=100, window_seconds=60)


@pytest.fixture
def client(
    session_factory: sessionmaker,
    limiter: InMemorySlidingWindowRateLimiter,
) -> Generator[TestClient, None, None]:
    """Test client wired to the per-test database and limiter."""

    def _get_session() -> Generator[Session, None, None]:
        db_session = session_factory()
        try:
            yield db_session
        finally:
            db_session.close()

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
