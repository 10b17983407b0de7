"""
db.engine - Engine lifecycle for the registry database.

One engine per process, rebuilt by init_db() (tests point it at a fresh
SQLite file per case).  SQLite is the default backend; the hierarchy's
ON DELETE CASCADE only works there with foreign keys switched on, so
every new SQLite connection gets REGISTRY_PRAGMAS.
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base

logger = logging.getLogger(__name__)

REGISTRY_PRAGMAS = (
    ("foreign_keys", "ON"),
    ("journal_mode", "WAL"),
    ("synchronous", "NORMAL"),
)

_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def _enable_registry_pragmas(dbapi_conn, _rec) -> None:
    cur = dbapi_conn.cursor()
    try:
        for name, value in REGISTRY_PRAGMAS:
            cur.execute(f"PRAGMA {name}={value}")
    finally:
        cur.close()


def init_db(db_url: str) -> None:
    """(Re)bind the registry to ``db_url`` and create any missing tables."""
    global _engine, _SessionLocal

    dispose_db()
    engine = create_engine(db_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_registry_pragmas)

    Base.metadata.create_all(engine)
    _engine = engine
    _SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    logger.info("Registry database ready at %s",
                engine.url.render_as_string(hide_password=True))


def get_session() -> Session:
    """New session on the registry database; the caller closes it."""
    if _SessionLocal is None:
        raise RuntimeError("Registry database not initialised, call init_db() first")
    return _SessionLocal()


def dispose_db() -> None:
    """Close pooled connections and forget the engine."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
