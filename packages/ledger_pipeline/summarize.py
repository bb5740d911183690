"""Aggregate parsed transactions into a :class:`~ledger_pipeline.models.Summary`.

Pure computation: no I/O, no failure modes beyond what the inputs carry.

- ``total_balance`` is a plain left-to-right sum in input order, so the same
  input always yields bit-identical totals.
- Transactions are grouped by ``(year, month)`` of their date. Within each
  bucket, zero amounts count toward ``transaction_count`` but are neither
  debits nor credits.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import MonthlySummary, Summary, Transaction, YearlyData


def _group_by_year_month(
    transactions: Iterable[Transaction],
) -> dict[tuple[int, int], list[float]]:
    """Return amounts per ``(year, month)`` bucket, preserving input order."""

    by_key: dict[tuple[int, int], list[float]] = {}
    for tx in transactions:
        by_key.setdefault((tx.date.year, tx.date.month), []).append(tx.amount)
    return by_key


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    total = 0.0
    for v in values:
        total += v
    return total / len(values)


def summarize_bucket(amounts: Sequence[float]) -> MonthlySummary:
    """Compute count and debit/credit averages for one bucket's amounts."""

    debits = [a for a in amounts if a < 0]
    credits = [a for a in amounts if a > 0]
    return MonthlySummary(
        transaction_count=len(amounts),
        average_debit=_mean(debits),
        average_credit=_mean(credits),
    )


def summarize(transactions: Iterable[Transaction]) -> Summary:
    """Return the total balance and per-year-per-month statistics."""

    txs = list(transactions)
    if not txs:
        return Summary(total_balance=0.0, yearly_data={})

    total = 0.0
    for tx in txs:
        total += tx.amount

    yearly: YearlyData = {}
    for (year, month), amounts in _group_by_year_month(txs).items():
        yearly.setdefault(year, {})[month] = summarize_bucket(amounts)

    return Summary(total_balance=total, yearly_data=yearly)


__all__ = ["summarize", "summarize_bucket"]
