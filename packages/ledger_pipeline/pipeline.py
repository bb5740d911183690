"""Pipeline coordinator: parse -> persist -> summarize -> notify.

:class:`TransactionPipeline` composes the loader, the batch persister and an
optional notifier for one file at a time. It holds no per-call state, so one
instance can serve many sequential or concurrent invocations as long as each
call gets its own stream.

A process-wide instance is available through :func:`get_pipeline`, built
lazily on first use from :func:`~ledger_pipeline.config.load_settings` (same
pattern as the shared engine in ``db.client``). Nothing in the pipeline itself
depends on that cache; tests and library callers build their own.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO

from .config import Settings, load_settings
from .errors import NotificationError
from .ingest.csv_loader import CancelToken, TransactionCsvLoader
from .logging_setup import get_logger
from .models import Summary
from .notify import OutboxNotifier, SummaryNotifier
from .persistence import BatchPersister, SqlTransactionStore
from .summarize import summarize

logger = get_logger("ledger_pipeline.pipeline")


@dataclass(frozen=True, slots=True)
class SourceFile:
    """One input file plus the account metadata that travels with it."""

    path: str
    account_id: str
    account_email: str | None = None

    def __post_init__(self) -> None:
        if not self.path.strip():
            raise ValueError("SourceFile.path must be non-empty")
        if not self.account_id.strip():
            raise ValueError(f"SourceFile.account_id must be non-empty (path={self.path})")

    def open(self) -> TextIO:
        return Path(self.path).open(encoding="utf-8", newline="")


@dataclass(frozen=True, slots=True)
class ProcessingResult:
    source: str
    account_id: str
    account_email: str | None
    transaction_count: int
    summary: Summary


@dataclass(slots=True)
class BatchReport:
    """Outcome of :meth:`TransactionPipeline.process_many`."""

    total: int = 0
    results: list[ProcessingResult] = field(default_factory=list)
    errors: list[tuple[str, Exception]] = field(default_factory=list)
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def describe(self) -> str:
        return (
            f"processing completed: {self.succeeded} succeeded, {self.failed} failed "
            f"(total: {self.total}, duration: {self.duration_seconds:.3f}s)"
        )


class TransactionPipeline:
    def __init__(
        self,
        loader: TransactionCsvLoader,
        persister: BatchPersister,
        notifier: SummaryNotifier | None = None,
    ) -> None:
        self.loader = loader
        self.persister = persister
        self.notifier = notifier

    def process(
        self,
        stream: TextIO,
        *,
        account_id: str,
        account_email: str | None = None,
        source: str = "<stream>",
        cancel: CancelToken | None = None,
    ) -> ProcessingResult:
        """Run the full pipeline for one stream.

        Any stage failure propagates and stops the later stages: a file that
        fails to parse is never persisted, and a file that fails to persist is
        never summarized or announced.
        """

        logger.info("parsing transactions from %s", source)
        try:
            parsed = self.loader.load(stream, cancel=cancel)
        except Exception as e:
            logger.error("failed to parse %s: %s", source, e)
            raise
        txs = [tx.with_account(account_id) for tx in parsed]
        logger.info("parsed %d transaction(s) for account %s", len(txs), account_id)

        logger.info("persisting transactions from %s", source)
        try:
            self.persister.save(txs)
        except Exception as e:
            logger.error("failed to persist %s: %s", source, e)
            raise
        logger.info("persisted %d transaction(s)", len(txs))

        summary = summarize(txs)
        logger.info(
            "calculated summary for account %s (balance=%.2f, months=%d)",
            account_id,
            summary.total_balance,
            sum(1 for _ in summary.rows()),
        )

        if account_email and self.notifier is not None:
            logger.info("sending summary to %s", account_email)
            try:
                self.notifier.send(account_email, summary)
            except Exception as e:
                logger.error("failed to notify %s: %s", account_email, e)
                raise NotificationError(account_email, str(e)) from e
        elif not account_email:
            logger.info("no account email provided; skipping notification")
        else:
            logger.info("no notifier configured; skipping notification to %s", account_email)

        logger.info("%s processed successfully", source)
        return ProcessingResult(
            source=source,
            account_id=account_id,
            account_email=account_email,
            transaction_count=len(txs),
            summary=summary,
        )

    def process_file(
        self, source_file: SourceFile, *, cancel: CancelToken | None = None
    ) -> ProcessingResult:
        with source_file.open() as f:
            return self.process(
                f,
                account_id=source_file.account_id,
                account_email=source_file.account_email,
                source=source_file.path,
                cancel=cancel,
            )

    def process_many(
        self, jobs: Iterable[SourceFile], *, cancel: CancelToken | None = None
    ) -> BatchReport:
        """Process files one by one; a failing file never stops the others."""

        t0 = time.perf_counter()
        report = BatchReport()
        for job in jobs:
            report.total += 1
            try:
                report.results.append(self.process_file(job, cancel=cancel))
            except Exception as e:  # noqa: BLE001 - recorded per file, reported below
                logger.error("failed to process %s: %s", job.path, e)
                report.errors.append((job.path, e))
        report.duration_seconds = time.perf_counter() - t0

        if report.errors:
            logger.warning("processing completed with %d error(s)", report.failed)
        logger.info(report.describe())
        return report


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_PIPELINE: TransactionPipeline | None = None
_PIPELINE_SETTINGS: Settings | None = None
_PIPELINE_LOCK = threading.Lock()


def build_pipeline(settings: Settings, *, current_year: int | None = None) -> TransactionPipeline:
    """Wire the SQL store, outbox notifier (when configured) and a fresh loader."""

    store = SqlTransactionStore(database_url=settings.require_database_url())
    notifier = OutboxNotifier(settings.outbox_path) if settings.outbox_path else None
    return TransactionPipeline(
        TransactionCsvLoader(current_year=current_year),
        BatchPersister(store),
        notifier,
    )


def get_pipeline(settings: Settings | None = None) -> TransactionPipeline:
    """Return the shared pipeline, building it on first use.

    ``settings`` (default: :func:`load_settings`) only shapes the first build.
    Passing settings that differ from the ones the shared pipeline was built
    with raises ``RuntimeError``; call :func:`reset_pipeline` first.
    """

    global _PIPELINE, _PIPELINE_SETTINGS
    with _PIPELINE_LOCK:
        if _PIPELINE is None:
            logger.debug("building shared pipeline")
            resolved = settings or load_settings()
            _PIPELINE = build_pipeline(resolved)
            _PIPELINE_SETTINGS = resolved
        elif settings is not None and settings != _PIPELINE_SETTINGS:
            raise RuntimeError(
                "get_pipeline() already built with different settings; "
                "call reset_pipeline() first"
            )
        return _PIPELINE


def reset_pipeline() -> None:
    global _PIPELINE, _PIPELINE_SETTINGS
    with _PIPELINE_LOCK:
        _PIPELINE = None
        _PIPELINE_SETTINGS = None


__all__ = [
    "BatchReport",
    "ProcessingResult",
    "SourceFile",
    "TransactionPipeline",
    "build_pipeline",
    "get_pipeline",
    "reset_pipeline",
]
