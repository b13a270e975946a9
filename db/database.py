"""
db/database.py

Responsibility: Creates the SQLite engine, session factory, and exposes
init_db() for startup table initialisation.
Does NOT: define table models, run queries, or contain business logic.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Generator

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

import db.models  # noqa: F401: registers table metadata

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

_DB_PATH = os.getenv("DB_PATH", "./data/nodehub.db")
_DB_URL = f"sqlite:///{_DB_PATH}"

# check_same_thread=False is required for SQLite + FastAPI's async workers.
engine = create_engine(
    _DB_URL,
    connect_args={"check_same_thread": False},
    echo=False,
)

SessionFactory = Callable[[], Session]

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_db(bind: Engine | None = None) -> None:
    """
    Creates all tables defined in SQLModel metadata if they don't exist.

    Called once from the FastAPI lifespan function in app.py.

    Args:
        bind: Engine to initialise; defaults to the application engine.

    Returns:
        None
    """
    target = bind or engine
    if target is engine:
        db_dir = os.path.dirname(_DB_PATH)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    SQLModel.metadata.create_all(target)
    logger.info("Database initialised at %s", target.url)


def make_session_factory(bind: Engine | None = None) -> SessionFactory:
    """
    Returns a zero-argument callable that opens a new Session.

    Background workers (the reconciliation queue, the availability monitor)
    run outside any request, so each task or sweep opens its own session
    through this factory.

    Args:
        bind: Engine the sessions are bound to; defaults to the app engine.

    Returns:
        A callable returning a fresh SQLModel Session.
    """
    target = bind or engine

    def _factory() -> Session:
        return Session(target)

    return _factory


def get_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a SQLModel Session for the current request.

    Usage in route handlers:
        session: Session = Depends(get_session)

    Yields:
        A SQLModel Session bound to the application engine.
    """
    with Session(engine) as session:
        yield session
