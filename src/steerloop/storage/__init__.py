"""Run-history storage (SQLAlchemy)."""

from steerloop.storage.engine import create_session_factory, create_store_engine, init_db
from steerloop.storage.repositories import RunRepository
from steerloop.storage.sqlite import SqliteRunRepository, row_reports

__all__ = [
    "create_store_engine",
    "create_session_factory",
    "init_db",
    "RunRepository",
    "SqliteRunRepository",
    "row_reports",
]
