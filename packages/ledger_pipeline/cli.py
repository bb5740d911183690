# ruff: noqa: I001
"""CLI for the ``ledger_pipeline`` package.

Exposes callable command handlers (``cmd_summarize``, ``cmd_ingest``) and a
Typer-based console interface. Environment variables (notably
``DATABASE_URL``) are loaded from a local ``.env`` via ``python-dotenv`` before
delegating to the handlers. Business logic lives in ``ledger_pipeline.pipeline``
and related modules.
"""

from __future__ import annotations

import calendar
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from .config import load_env_file, load_settings
from .errors import ConfigError, RecordValidationError
from .logging_setup import configure_logging
from .models import Summary

console = Console()
err_console = Console(stderr=True)


# ---- Rendering ---------------------------------------------------------------


def render_summary(summary: Summary, *, title: str = "Transaction summary") -> Table:
    """Build a rich table of the summary, ordered by year then month."""

    table = Table(title=title, caption=f"Total balance: {summary.total_balance:.2f}")
    table.add_column("Year", justify="right")
    table.add_column("Month")
    table.add_column("Transactions", justify="right")
    table.add_column("Avg debit", justify="right")
    table.add_column("Avg credit", justify="right")
    for year, month, stats in summary.rows():
        table.add_row(
            str(year),
            calendar.month_name[month],
            str(stats.transaction_count),
            f"{stats.average_debit:.2f}",
            f"{stats.average_credit:.2f}",
        )
    return table


# ---- Command handlers --------------------------------------------------------


def cmd_summarize(csv_path: str, *, year: int | None = None) -> int:
    """Parse ``csv_path`` and print its summary. Nothing is persisted.

    Returns ``0`` on success and ``1`` when the file cannot be read or fails
    validation (details on stderr).
    """

    from .ingest.utils import load_transactions_from_csv
    from .summarize import summarize

    try:
        txs = load_transactions_from_csv(csv_path, current_year=year)
    except FileNotFoundError:
        err_console.print(f"[red]Error:[/red] File not found: {csv_path}")
        return 1
    except PermissionError:
        err_console.print(f"[red]Error:[/red] Permission denied: {csv_path}")
        return 1
    except RecordValidationError as e:
        err_console.print(f"[red]Error:[/red] {e} (in {csv_path})")
        return 1

    console.print(render_summary(summarize(txs), title=f"Summary: {Path(csv_path).name}"))
    return 0


def cmd_ingest(
    csv_paths: Sequence[str],
    *,
    account_id: str,
    account_email: str | None = None,
    database_url: str | None = None,
    year: int | None = None,
) -> int:
    """Run the full pipeline for each file and print one summary per success.

    Files are processed independently; the exit status is ``1`` when any of
    them failed.
    """

    from db.client import create_schema
    from .pipeline import SourceFile, build_pipeline, get_pipeline

    settings = load_settings(database_url=database_url)
    try:
        url = settings.require_database_url()
    except ConfigError as e:
        err_console.print(f"[red]Error:[/red] {e}; pass --database-url or set it in .env")
        return 1

    try:
        jobs = [SourceFile(str(p), account_id, account_email) for p in csv_paths]
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        return 1

    try:
        create_schema(database_url=url)
    except Exception as e:
        err_console.print(f"[red]Error:[/red] failed to prepare the database: {e}")
        return 1

    pipeline = (
        get_pipeline(settings) if year is None else build_pipeline(settings, current_year=year)
    )
    report = pipeline.process_many(jobs)

    for result in report.results:
        console.print(
            render_summary(
                result.summary,
                title=f"{Path(result.source).name}: {result.transaction_count} transaction(s)",
            )
        )
    for path, err in report.errors:
        err_console.print(f"[red]Error:[/red] {err} (in {path})")
    console.print(report.describe())

    return 1 if report.failed else 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Parse transaction CSV files, persist them to the ledger store and "
        "summarize balances per month. Loads DATABASE_URL from a local .env."
    ),
)


@app.callback()
def _root() -> None:
    """Load ``.env`` (never overriding the environment) and configure logging."""

    load_env_file()
    configure_logging(load_settings().log_level)


@app.command("summarize")
def summarize_cmd(
    csv_path: Annotated[Path, typer.Argument(help="Transaction CSV to summarize", dir_okay=False)],
    year: Annotated[
        int | None, typer.Option(help="Year applied to M/D dates (defaults to the current year).")
    ] = None,
) -> None:
    """Print the monthly summary of a CSV without persisting it."""

    raise typer.Exit(cmd_summarize(str(csv_path), year=year))


@app.command("ingest")
def ingest_cmd(
    csv_paths: Annotated[
        list[Path], typer.Argument(help="One or more transaction CSV files", dir_okay=False)
    ],
    account_id: Annotated[str, typer.Option("--account-id", help="Account owning the rows.")],
    email: Annotated[
        str | None, typer.Option("--email", help="Address to send the summary to.")
    ] = None,
    database_url: Annotated[
        str | None, typer.Option(help="Override DATABASE_URL (falls back to env var).")
    ] = None,
    year: Annotated[
        int | None, typer.Option(help="Year applied to M/D dates (defaults to the current year).")
    ] = None,
) -> None:
    """Parse, persist, summarize and (optionally) notify for each CSV."""

    raise typer.Exit(
        cmd_ingest(
            [str(p) for p in csv_paths],
            account_id=account_id,
            account_email=email,
            database_url=database_url,
            year=year,
        )
    )


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
