"""DB helpers for tests: bootstrap a temporary SQLite ledger database."""

from __future__ import annotations

from pathlib import Path

from db.client import create_schema, session_scope
from db.models.ledger import LedgerTransaction
from sqlalchemy import select


def bootstrap_sqlite_db(db_file: Path) -> str:
    """Create a SQLite database file with the ledger schema and return its URL.

    A file-backed database lets every SQLAlchemy connection see the same state
    (in-memory SQLite databases are per-connection).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    create_schema(database_url=url)
    return url


def fetch_ledger_rows(database_url: str) -> list[dict[str, object]]:
    """Return all stored rows as plain dicts ordered by ``internal_id``."""

    with session_scope(database_url=database_url) as session:
        rows = session.scalars(
            select(LedgerTransaction).order_by(LedgerTransaction.internal_id)
        ).all()
        return [
            {
                "id": r.id,
                "internal_id": r.internal_id,
                "date": r.date,
                "amount": r.amount,
                "account_id": r.account_id,
            }
            for r in rows
        ]
