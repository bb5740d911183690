"""Loader for three-column transaction CSV exports.

Input contract
--------------
- First line is a header (e.g. ``Id,Date,Transaction``). It is always
  discarded and never parsed, even when it happens to look like data.
- Every following non-blank line holds exactly three comma-separated fields:
  ``<id>,<date>,<signed-amount>``.

Field rules
-----------
- ``id``: digits only (surrounding whitespace tolerated), ``1 <= id < 2**32``.
- ``date``: ``M/D`` (year taken from the loader's ``current_year``) or
  ``M/D/YYYY``.
- ``amount``: optional single leading ``+``/``-`` followed by a finite decimal
  number. No sign means positive.

Failure mode
------------
The first invalid line aborts the whole load with a
:class:`~ledger_pipeline.errors.RecordValidationError` subclass naming the
1-based line (header is line 1). Malformed quoting and bytes that do not
decode as UTF-8 are reported the same way. Callers never receive a partial
list.
"""

from __future__ import annotations

import csv
import math
import re
from datetime import UTC, date, datetime
from typing import Protocol, TextIO

from ..errors import FieldCountError, FieldValueError, ParseCancelledError, RecordValidationError
from ..logging_setup import get_logger
from ..models import Transaction

logger = get_logger("ledger_pipeline.ingest.csv_loader")

EXPECTED_FIELDS = 3
MAX_ID = 2**32 - 1

_ID_RE = re.compile(r"[0-9]+")
_MONTH_DAY_RE = re.compile(r"[0-9]{1,2}")
_YEAR_RE = re.compile(r"[0-9]{4}")
_AMOUNT_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class CancelToken(Protocol):
    """Anything with an ``is_set()`` flag, e.g. :class:`threading.Event`."""

    def is_set(self) -> bool: ...


class TransactionCsvLoader:
    """Parse a transaction CSV stream into :class:`Transaction` records.

    ``current_year`` fills in the year for ``M/D`` dates. It is fixed when the
    loader is constructed (defaulting to the current UTC year) so one loader
    gives the same answer for the same input for its whole lifetime.
    """

    def __init__(self, *, current_year: int | None = None) -> None:
        self.current_year = current_year if current_year is not None else datetime.now(UTC).year

    def load(self, stream: TextIO, *, cancel: CancelToken | None = None) -> list[Transaction]:
        """Read ``stream`` to the end and return transactions in input order.

        ``cancel`` is checked before every record; once set, loading stops with
        :class:`ParseCancelledError` carrying the line that would have been
        read next.
        """

        reader = csv.reader(stream, skipinitialspace=True, strict=True)

        if cancel is not None and cancel.is_set():
            raise ParseCancelledError(1)
        try:
            header = next(reader, None)
        except csv.Error as e:
            raise RecordValidationError(max(reader.line_num, 1), f"malformed CSV: {e}") from e
        except UnicodeDecodeError as e:
            raise RecordValidationError(reader.line_num + 1, f"invalid UTF-8: {e}") from e
        if header is None:
            raise RecordValidationError(1, "missing header line")

        transactions: list[Transaction] = []
        while True:
            if cancel is not None and cancel.is_set():
                raise ParseCancelledError(reader.line_num + 1)
            try:
                row = next(reader)
            except StopIteration:
                break
            except csv.Error as e:
                raise RecordValidationError(reader.line_num, f"malformed CSV: {e}") from e
            except UnicodeDecodeError as e:
                # Decoding is buffered, so this is the first line not yet returned.
                raise RecordValidationError(reader.line_num + 1, f"invalid UTF-8: {e}") from e
            if not row:
                # Blank line: nothing to parse, but it still counts toward line_num.
                continue
            transactions.append(self._parse_row(row, reader.line_num))

        logger.debug("loaded %d transaction(s) from %d line(s)", len(transactions), reader.line_num)
        return transactions

    # ---- Row/field parsing --------------------------------------------------

    def _parse_row(self, row: list[str], line: int) -> Transaction:
        if len(row) != EXPECTED_FIELDS:
            raise FieldCountError(line, expected=EXPECTED_FIELDS, actual=len(row))
        raw_id, raw_date, raw_amount = row
        return Transaction(
            id=_parse_id(raw_id, line),
            date=self._parse_date(raw_date, line),
            amount=_parse_amount(raw_amount, line),
        )

    def _parse_date(self, raw: str, line: int) -> date:
        s = raw.strip()
        if not s:
            raise FieldValueError(line, field="date", value=raw, reason="must not be empty")

        parts = s.split("/")
        if len(parts) == 2:
            month_s, day_s = parts
            year = self.current_year
        elif len(parts) == 3:
            month_s, day_s, year_s = parts
            if not _YEAR_RE.fullmatch(year_s):
                raise FieldValueError(
                    line, field="date", value=raw, reason="year must have four digits"
                )
            year = int(year_s)
        else:
            raise FieldValueError(
                line, field="date", value=raw, reason="expected M/D or M/D/YYYY"
            )

        if not (_MONTH_DAY_RE.fullmatch(month_s) and _MONTH_DAY_RE.fullmatch(day_s)):
            raise FieldValueError(
                line, field="date", value=raw, reason="month and day must be numeric"
            )
        try:
            return date(year, int(month_s), int(day_s))
        except ValueError as e:
            raise FieldValueError(line, field="date", value=raw, reason=str(e)) from e


def _parse_id(raw: str, line: int) -> int:
    s = raw.strip()
    if not s:
        raise FieldValueError(line, field="id", value=raw, reason="must not be empty")
    if not _ID_RE.fullmatch(s):
        raise FieldValueError(line, field="id", value=raw, reason="must be a positive integer")
    value = int(s)
    if value < 1 or value > MAX_ID:
        raise FieldValueError(
            line, field="id", value=raw, reason=f"must be between 1 and {MAX_ID}"
        )
    return value


def _parse_amount(raw: str, line: int) -> float:
    s = raw.strip()
    if not s:
        raise FieldValueError(line, field="amount", value=raw, reason="must not be empty")
    if not _AMOUNT_RE.fullmatch(s):
        raise FieldValueError(line, field="amount", value=raw, reason="must be a number")
    if s[0] == "+":
        s = s[1:]
    value = float(s)
    if not math.isfinite(value):
        raise FieldValueError(line, field="amount", value=raw, reason="must be finite")
    return value


def load_transactions(
    stream: TextIO,
    *,
    current_year: int | None = None,
    cancel: CancelToken | None = None,
) -> list[Transaction]:
    """Convenience wrapper: build a loader and read ``stream`` once."""

    return TransactionCsvLoader(current_year=current_year).load(stream, cancel=cancel)


__all__ = [
    "EXPECTED_FIELDS",
    "MAX_ID",
    "CancelToken",
    "TransactionCsvLoader",
    "load_transactions",
]
