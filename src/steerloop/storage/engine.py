"""Engine, sessions and schema setup for the run-history database."""

from __future__ import annotations

import logging

from sqlalchemy import Engine, create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker

from steerloop.storage.schema import Base, MetaRow

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "2"

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA busy_timeout=5000",
    "PRAGMA foreign_keys=ON",
)


def _apply_sqlite_pragmas(dbapi_conn, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_conn.cursor()
    for pragma in _SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


def create_store_engine(db_path: str = ":memory:", *, url: str | None = None) -> Engine:
    """Engine for *db_path* (``":memory:"`` by default) or an explicit *url*.

    SQLite connections get WAL journaling, a busy timeout and enforced
    foreign keys so attempt rows cascade with their run.
    """
    if url is None:
        url = "sqlite://" if db_path == ":memory:" else f"sqlite:///{db_path}"
    engine = create_engine(url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _apply_sqlite_pragmas)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Sessions whose objects stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> str:
    """Create missing tables and return the stored schema version.

    A fresh database is stamped with SCHEMA_VERSION. An existing one keeps
    its stamp; a mismatch is logged.
    """
    Base.metadata.create_all(engine)
    with create_session_factory(engine)() as session:
        row = session.execute(
            select(MetaRow).where(MetaRow.key == "schema_version")
        ).scalar_one_or_none()
        if row is None:
            session.add(MetaRow(key="schema_version", value=SCHEMA_VERSION))
            session.commit()
            return SCHEMA_VERSION
        if row.value != SCHEMA_VERSION:
            logger.warning(
                "Run database schema is version %s, this steerloop expects %s",
                row.value,
                SCHEMA_VERSION,
            )
        return row.value
