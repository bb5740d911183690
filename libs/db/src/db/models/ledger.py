from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Float, Index, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: ledger_transactions
# ---------------------------


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    # Generated UUID4 string; the numeric id from the source file is only
    # unique within that file and is kept as ``internal_id``.
    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    internal_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    # ISO-8601 timestamp at UTC midnight, e.g. ``2024-01-15T00:00:00Z``.
    date: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    account_id: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("internal_id > 0", name="ck_ledger_tx_internal_id_positive"),
        Index("ix_ledger_tx_account_date", "account_id", "date"),
    )


__all__ = [
    "Base",
    "LedgerTransaction",
]
