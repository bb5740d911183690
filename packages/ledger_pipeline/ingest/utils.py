"""Ingest utilities shared by CLI commands and the pipeline."""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from ..models import Transaction
from .csv_loader import CancelToken, TransactionCsvLoader


def load_transactions_from_csv(
    csv_path: str | PathLike[str],
    *,
    current_year: int | None = None,
    cancel: CancelToken | None = None,
) -> list[Transaction]:
    """Open a UTF-8 transaction CSV and return its parsed rows.

    Opening with ``newline=""`` leaves line-ending handling to the ``csv``
    module so quoted fields and line numbers stay accurate.
    """

    p = Path(csv_path)
    loader = TransactionCsvLoader(current_year=current_year)
    with p.open(encoding="utf-8", newline="") as f:
        return loader.load(f, cancel=cancel)


__all__ = ["load_transactions_from_csv"]
