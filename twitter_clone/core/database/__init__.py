"""Core database access helpers.

Builds a per-backend engine (SQLite vs pooled Postgres), a SessionLocal factory and a
`get_db` dependency that guarantees cleanup. The URL comes from settings and switches
to the test database automatically when APP_ENV=test.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from twitter_clone.core.config import settings
from twitter_clone.models.base import Base


def _engine_kwargs(database_url: str) -> dict:
    """Return engine keyword arguments tuned per backend (SQLite vs pooled Postgres)."""
    url = make_url(database_url)
    if url.drivername.startswith("sqlite"):
        return {
            "pool_pre_ping": True,
            "connect_args": {"check_same_thread": False},
            "poolclass": NullPool,
        }
    return {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
        "pool_reset_on_return": "rollback",
        "connect_args": {
            "options": "-c timezone=utc",
            "application_name": "twitter_clone",
            "connect_timeout": 10,
        },
    }


def build_engine(database_url: str | None = None) -> Engine:
    """Create a SQLAlchemy engine using application settings by default.

    Respects APP_ENV=test by choosing the test DSN to protect production data.
    """
    if database_url is None:
        use_test_url = settings.environment.lower() == "test"
        database_url = settings.get_database_url(use_test=use_test_url)
    return create_engine(database_url, **_engine_kwargs(database_url))


engine: Engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Provide a database session with guaranteed close."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


from .query_helpers import (  # noqa: E402
    grouped_counts,
    optimize_tweet_query,
    paginate_query,
)

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "build_engine",
    "paginate_query",
    "optimize_tweet_query",
    "grouped_counts",
]
