"""twitter_clone package init."""

from twitter_clone.core.config import Settings, settings
from twitter_clone.core.database import Base, SessionLocal, engine, get_db

__all__ = [
    "settings",
    "Settings",
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
]
