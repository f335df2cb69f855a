"""Database utilities - engine, session, migrations."""

from src.feedback.core.db.engine import build_engine, dispose_engine, get_engine
from src.feedback.core.db.migrations import run_migrations_sync
from src.feedback.core.db.session import create_session_factory, get_session

__all__ = [
    # Engine
    "build_engine",
    "dispose_engine",
    "get_engine",
    # Session
    "create_session_factory",
    "get_session",
    # Migrations
    "run_migrations_sync",
]
