"""
tests/conftest.py

Shared pytest fixtures used by both unit and integration test suites.
All DB fixtures use in-memory SQLite (StaticPool) and all HTTP fixtures
use respx.mock: no real network calls are made in any test.
"""

from __future__ import annotations

import os

import httpx
import pytest
import respx
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

# ---------------------------------------------------------------------------
# Redirect the DB to /tmp for all test runs: must happen before db.database
# is imported anywhere, because the engine is created at import time.
# ---------------------------------------------------------------------------

os.environ.setdefault("DB_PATH", "/tmp/nodehub_test.db")

# NOTE: Models must be imported before SQLModel.metadata.create_all so that
# all table definitions are registered in the metadata before we call create_all.
import db.models  # noqa: E402,F401: side-effect import to register table metadata


# ---------------------------------------------------------------------------
# Database fixtures: in-memory SQLite, isolated per test
# ---------------------------------------------------------------------------


@pytest.fixture(name="engine")
def engine_fixture():
    """
    Yields an in-memory SQLite engine with all tables created.

    StaticPool keeps a single connection so every Session opened on this
    engine (including those opened by background workers) sees the same data.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="db_session")
def db_session_fixture(engine):
    """Yields a fresh session on the per-test in-memory engine."""
    with Session(engine) as session:
        yield session


@pytest.fixture()
def session_factory(engine):
    """Zero-argument callable opening new sessions on the test engine."""

    def _factory() -> Session:
        return Session(engine)

    return _factory


# ---------------------------------------------------------------------------
# HTTP mock fixture: intercepts all httpx calls
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_http():
    """
    Yields a respx router that intercepts all httpx.AsyncClient calls.

    No real network traffic is allowed during tests.
    """
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
async def http_client():
    """
    Yields a real httpx.AsyncClient instance for use in tests.

    Pair with the mock_http fixture so all requests are intercepted by respx.
    """
    async with httpx.AsyncClient() as client:
        yield client
