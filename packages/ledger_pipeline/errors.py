"""Typed exception hierarchy for ``ledger_pipeline``.

Every error carries a machine-readable ``code`` plus the structured context
callers need for observability (line numbers, field names, unwritten counts),
so handlers catch by type and never parse messages::

    LedgerPipelineError
    +-- RecordValidationError       malformed input line
    |   +-- FieldCountError         wrong number of fields
    |   +-- FieldValueError         bad id/date/amount content
    +-- ParseCancelledError         caller aborted mid-stream
    +-- PersistenceError            items left unwritten after retries
    +-- NotificationError           summary hand-off failed
    +-- ConfigError                 required setting missing

Validation and cancellation errors are raised before anything is persisted.
None of these are retried outside the persister's own bounded retry.
"""

from __future__ import annotations

from collections.abc import Sequence


class LedgerPipelineError(Exception):
    """Base class for all pipeline errors."""

    code: str = "LEDGER_PIPELINE_ERROR"


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class RecordValidationError(LedgerPipelineError):
    """An input line failed validation; the whole load is aborted."""

    code: str = "RECORD_INVALID"

    def __init__(self, line: int, reason: str):
        self.line = line
        self.reason = reason
        super().__init__(f"line {line}: {reason}")


class FieldCountError(RecordValidationError):
    """A data line did not have exactly the expected number of fields."""

    code: str = "FIELD_COUNT"

    def __init__(self, line: int, *, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(line, f"expected {expected} fields, got {actual}")


class FieldValueError(RecordValidationError):
    """A single field on a data line could not be parsed."""

    code: str = "FIELD_INVALID"

    def __init__(self, line: int, *, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        super().__init__(line, f"invalid {field} {value!r}: {reason}")


class ParseCancelledError(LedgerPipelineError):
    """The caller signalled cancellation while the stream was being read."""

    code: str = "PARSE_CANCELLED"

    def __init__(self, line: int):
        self.line = line
        super().__init__(f"parsing cancelled at line {line}")


# ---------------------------------------------------------------------------
# Persistence / hand-off
# ---------------------------------------------------------------------------


class PersistenceError(LedgerPipelineError):
    """Some items were not durably written.

    ``unwritten`` counts items across the whole ``save`` call; batches listed in
    ``failed_batches`` (0-based) are the ones that still had pending items.
    Batches that were fully acknowledged stay written.
    """

    code: str = "PERSISTENCE_FAILED"

    def __init__(self, unwritten: int, *, failed_batches: Sequence[int], detail: str = ""):
        self.unwritten = unwritten
        self.failed_batches = tuple(failed_batches)
        msg = (
            f"{unwritten} item(s) remain unwritten "
            f"(failed batches: {', '.join(str(i) for i in self.failed_batches) or '-'})"
        )
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class NotificationError(LedgerPipelineError):
    """The notifier failed to accept the summary."""

    code: str = "NOTIFICATION_FAILED"

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"failed to notify {address}: {reason}")


class ConfigError(LedgerPipelineError):
    """A required configuration value is missing."""

    code: str = "CONFIG_MISSING"

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"{key} is not set")


__all__ = [
    "ConfigError",
    "FieldCountError",
    "FieldValueError",
    "LedgerPipelineError",
    "NotificationError",
    "ParseCancelledError",
    "PersistenceError",
    "RecordValidationError",
]
