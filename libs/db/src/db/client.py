"""Engine and session helpers for the ledger database.

One engine is built lazily per database URL and kept for the life of the
process, so callers that pass ``database_url`` explicitly and callers that
rely on ``DATABASE_URL`` can coexist. :func:`dispose_engine` drops them all.

    with session_scope(database_url=url) as s:
        s.execute(insert(LedgerTransaction), rows)
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models.ledger import Base

_ENGINES: dict[str, Engine] = {}
_SESSION_MAKERS: dict[str, sessionmaker[Session]] = {}
_LOCK = threading.Lock()


def resolve_database_url(override: str | None = None) -> str:
    url = override or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


def get_engine(*, database_url: str | None = None) -> Engine:
    """Return the engine for ``database_url`` (or ``DATABASE_URL``)."""

    url = resolve_database_url(database_url)
    with _LOCK:
        engine = _ENGINES.get(url)
        if engine is None:
            engine = create_engine(url, pool_pre_ping=True)
            _ENGINES[url] = engine
            _SESSION_MAKERS[url] = sessionmaker(bind=engine, expire_on_commit=False)
        return engine


def dispose_engine() -> None:
    """Dispose every cached engine; the next call builds fresh ones."""

    with _LOCK:
        for engine in _ENGINES.values():
            engine.dispose()
        _ENGINES.clear()
        _SESSION_MAKERS.clear()


@contextmanager
def session_scope(*, database_url: str | None = None) -> Iterator[Session]:
    """One unit of work: commit on success, roll back and re-raise on error."""

    url = resolve_database_url(database_url)
    get_engine(database_url=url)
    session = _SESSION_MAKERS[url]()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_schema(*, database_url: str | None = None) -> None:
    """Create any missing tables declared on ``Base.metadata``."""

    Base.metadata.create_all(bind=get_engine(database_url=database_url))


__all__ = [
    "create_schema",
    "dispose_engine",
    "get_engine",
    "resolve_database_url",
    "session_scope",
]
