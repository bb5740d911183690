"""Persistence of parsed transactions to a keyed batch-write store.

:class:`BatchPersister` owns the write algorithm:

1. Split the input into consecutive batches of at most ``MAX_BATCH_SIZE`` (25,
   the store's per-request item ceiling).
2. Give every transaction a fresh UUID4 key; the file's numeric id is kept as
   ``internal_id``.
3. Submit each batch once, then resubmit whatever the store reports as
   unprocessed, immediately, up to ``MAX_RETRIES`` more times.
4. Keep going with later batches when one batch exhausts its retries, then
   raise :class:`~ledger_pipeline.errors.PersistenceError` with the total
   number of unwritten items. Acknowledged batches are never rolled back.

Batches are processed strictly one after another.

:class:`SqlTransactionStore` is the shipped store: one SQLAlchemy transaction
per request against ``db.models.ledger.LedgerTransaction``.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import AbstractContextManager
from functools import partial
from typing import Protocol, TypeVar

from db.client import session_scope
from db.models.ledger import LedgerTransaction
from sqlalchemy import insert
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from .errors import PersistenceError
from .logging_setup import get_logger
from .models import StoredTransaction, Transaction

logger = get_logger("ledger_pipeline.persistence")

MAX_BATCH_SIZE = 25
MAX_RETRIES = 3

T = TypeVar("T")


class BatchWriteStore(Protocol):
    """Keyed store accepting up to ``MAX_BATCH_SIZE`` puts per request.

    ``batch_write`` returns the subset of ``items`` it could not durably write
    (empty when everything was acknowledged). The caller resubmits them.
    """

    def batch_write(self, items: Sequence[StoredTransaction]) -> Sequence[StoredTransaction]: ...


def iter_batches(items: Sequence[T], size: int = MAX_BATCH_SIZE) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` elements."""

    if size < 1:
        raise ValueError("size must be a positive integer")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def format_item_date(tx: Transaction) -> str:
    """ISO-8601 timestamp at UTC midnight for ``tx.date``."""

    return f"{tx.date.isoformat()}T00:00:00Z"


def to_stored_item(tx: Transaction, *, key: str) -> StoredTransaction:
    return StoredTransaction(
        id=key,
        internal_id=tx.id,
        date=format_item_date(tx),
        amount=float(tx.amount),
        account_id=tx.account_id,
    )


class BatchPersister:
    """Write transactions to a :class:`BatchWriteStore` with bounded retry.

    Parameters
    ----------
    store:
        Destination store.
    id_factory:
        Produces the storage key for each item; ``uuid.uuid4`` by default.
        Tests inject a deterministic factory.
    """

    def __init__(
        self,
        store: BatchWriteStore,
        *,
        id_factory: Callable[[], uuid.UUID | str] = uuid.uuid4,
    ) -> None:
        self._store = store
        self._id_factory = id_factory

    def save(self, transactions: Iterable[Transaction]) -> None:
        """Persist every transaction or raise :class:`PersistenceError`."""

        txs = list(transactions)
        if not txs:
            return

        batches = list(iter_batches(txs))
        failed_batches: list[int] = []
        unwritten = 0

        for idx, batch in enumerate(batches):
            items = [to_stored_item(tx, key=str(self._id_factory())) for tx in batch]
            pending: Sequence[StoredTransaction] = items
            attempts = 0
            try:
                while pending and attempts <= MAX_RETRIES:
                    if attempts:
                        logger.warning(
                            "batch %d: retrying %d unprocessed item(s) (retry %d/%d)",
                            idx,
                            len(pending),
                            attempts,
                            MAX_RETRIES,
                        )
                    pending = list(self._store.batch_write(pending))
                    attempts += 1
            except Exception as e:
                not_attempted = sum(len(b) for b in batches[idx + 1 :])
                logger.error("batch %d: store request failed: %s", idx, e)
                raise PersistenceError(
                    unwritten + len(pending) + not_attempted,
                    failed_batches=[*failed_batches, idx],
                    detail=f"batch {idx} request failed: {e}",
                ) from e

            if pending:
                logger.error(
                    "batch %d: %d item(s) still unprocessed after %d retries",
                    idx,
                    len(pending),
                    MAX_RETRIES,
                )
                failed_batches.append(idx)
                unwritten += len(pending)
            else:
                logger.debug("batch %d: %d item(s) written in %d request(s)", idx, len(items), attempts)

        if unwritten:
            raise PersistenceError(unwritten, failed_batches=failed_batches)


# ---------------------------------------------------------------------------
# SQL-backed store
# ---------------------------------------------------------------------------


type SessionFactory = Callable[[], AbstractContextManager[Session]]


class SqlTransactionStore:
    """:class:`BatchWriteStore` backed by the shared SQLAlchemy database.

    Each request is inserted in a single transaction. A transient
    ``OperationalError`` (lock timeout, dropped connection) rolls the request
    back and reports every item in it as unprocessed so the persister can
    resubmit. Any other database error propagates.
    """

    def __init__(
        self,
        session_factory: SessionFactory | None = None,
        *,
        database_url: str | None = None,
    ) -> None:
        self._session_factory = session_factory or partial(
            session_scope, database_url=database_url
        )

    def batch_write(self, items: Sequence[StoredTransaction]) -> list[StoredTransaction]:
        if len(items) > MAX_BATCH_SIZE:
            raise ValueError(f"batch_write accepts at most {MAX_BATCH_SIZE} items, got {len(items)}")
        if not items:
            return []

        rows = [item.model_dump() for item in items]
        try:
            with self._session_factory() as session:
                session.execute(insert(LedgerTransaction), rows)
        except OperationalError as e:
            logger.warning("batch_write: %d item(s) left unprocessed: %s", len(items), e.orig)
            return list(items)
        return []


__all__ = [
    "MAX_BATCH_SIZE",
    "MAX_RETRIES",
    "BatchPersister",
    "BatchWriteStore",
    "SqlTransactionStore",
    "format_item_date",
    "iter_batches",
    "to_stored_item",
]
