"""Data models and type aliases for ``ledger_pipeline``.

Three layers live here:

- :class:`Transaction`: one parsed ledger row, immutable once built by the
  loader. The coordinator attaches the owning account id exactly once via
  :meth:`Transaction.with_account`.
- :class:`MonthlySummary` / :class:`Summary`: the aggregated view produced by
  :func:`ledger_pipeline.summarize.summarize`.
- :class:`StoredTransaction`: the validated item shape written to the keyed
  store by :class:`ledger_pipeline.persistence.BatchPersister`.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Core record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single ledger entry parsed from one input file.

    Attributes
    ----------
    id:
        Positive integer from the file's first column. Unique within that file
        only; kept for traceability and never used as a storage key.
    date:
        Calendar date of the entry. No time-of-day or timezone semantics; the
        persisted form is normalized to UTC midnight.
    amount:
        Signed amount. Negative is a debit, positive a credit, zero neither.
    account_id:
        Owning account, empty until the coordinator attaches it.
    """

    id: int
    date: date
    amount: float
    account_id: str = ""

    def with_account(self, account_id: str) -> Transaction:
        """Return a copy of this transaction owned by ``account_id``."""

        return dataclasses.replace(self, account_id=account_id)


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MonthlySummary:
    """Statistics for one ``(year, month)`` bucket.

    ``average_debit`` is the mean of strictly negative amounts and
    ``average_credit`` the mean of strictly positive ones; each is ``0.0`` when
    the bucket has no such amounts. ``transaction_count`` includes zero-amount
    rows.
    """

    transaction_count: int
    average_debit: float
    average_credit: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "transaction_count": self.transaction_count,
            "average_debit": self.average_debit,
            "average_credit": self.average_credit,
        }


type MonthlyData = dict[int, MonthlySummary]
"""Month number (1-12) -> bucket statistics."""

type YearlyData = dict[int, MonthlyData]
"""Calendar year -> monthly statistics for that year."""


@dataclass(frozen=True, slots=True)
class Summary:
    """Total balance plus per-year, per-month statistics.

    ``yearly_data`` is a plain mapping with no meaningful iteration order. Use
    :meth:`rows` or :meth:`to_dict` whenever an ordered view is needed (display,
    serialization, comparisons in tests); both sort by year then month.
    """

    total_balance: float = 0.0
    yearly_data: YearlyData = field(default_factory=dict)

    def rows(self) -> Iterator[tuple[int, int, MonthlySummary]]:
        """Yield ``(year, month, stats)`` ordered by year, then month."""

        for year in sorted(self.yearly_data):
            months = self.yearly_data[year]
            for month in sorted(months):
                yield year, month, months[month]

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready mapping with deterministic key order.

        Year and month keys become strings so the result survives a JSON round
        trip unchanged.
        """

        yearly: dict[str, dict[str, dict[str, Any]]] = {}
        for year, month, stats in self.rows():
            yearly.setdefault(str(year), {})[str(month)] = stats.to_dict()
        return {"total_balance": self.total_balance, "yearly_data": yearly}


# ---------------------------------------------------------------------------
# Persisted item schema
# ---------------------------------------------------------------------------


class StoredTransaction(BaseModel):
    """Typed, validated model of one item written to the keyed store.

    Field names match the columns of ``db.models.ledger.LedgerTransaction`` so
    ``model_dump()`` can be handed straight to an insert.
    """

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    id: str = Field(min_length=1)
    internal_id: int = Field(gt=0)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}T00:00:00Z$")
    amount: float
    account_id: str

    @field_validator("id")
    @classmethod
    def _id_non_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("id must be non-empty")
        return v


__all__ = [
    "MonthlyData",
    "MonthlySummary",
    "StoredTransaction",
    "Summary",
    "Transaction",
    "YearlyData",
]
