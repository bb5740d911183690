"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the ledger models used by ``ledger_pipeline``.
"""

from .ledger import Base, LedgerTransaction

__all__ = [
    "Base",
    "LedgerTransaction",
]
