from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ledger_pipeline.cli import app, cmd_summarize
from tests.helpers.db import bootstrap_sqlite_db, fetch_ledger_rows

SAMPLE = "Id,Date,Transaction\n1,1/1,-150\n2,1/3,+900.5\n3,1/15,+99.5\n4,1/20,-50\n"

runner = CliRunner()


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    path = tmp_path / "txns.csv"
    path.write_text(SAMPLE, encoding="utf-8")
    return path


def test_summarize_prints_monthly_table(sample_csv: Path):
    result = runner.invoke(app, ["summarize", str(sample_csv), "--year", "2024"])

    assert result.exit_code == 0, result.output
    assert "January" in result.output
    assert "-100.00" in result.output
    assert "500.00" in result.output
    assert "Total balance: 799.50" in result.output


def test_summarize_invalid_file_exits_1(tmp_path: Path):
    bad = tmp_path / "bad.csv"
    bad.write_text("h\n1,1/1,abc\n", encoding="utf-8")

    result = runner.invoke(app, ["summarize", str(bad)])

    assert result.exit_code == 1
    assert "line 2" in result.output


def test_summarize_undecodable_file_exits_1(tmp_path: Path):
    bad = tmp_path / "bad.csv"
    bad.write_bytes(b"h\n1,1/1,5\n2,1/2,\xff\n")

    result = runner.invoke(app, ["summarize", str(bad)])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "invalid UTF-8" in result.output


def test_summarize_missing_file_returns_1(tmp_path: Path):
    assert cmd_summarize(str(tmp_path / "nope.csv")) == 1


def test_ingest_persists_rows(sample_csv: Path, tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}"

    result = runner.invoke(
        app,
        ["ingest", str(sample_csv), "--account-id", "acc-1", "--database-url", url, "--year", "2024"],
    )

    assert result.exit_code == 0, result.output
    assert "1 succeeded, 0 failed" in result.output
    rows = fetch_ledger_rows(url)
    assert [r["amount"] for r in rows] == [-150.0, 900.5, 99.5, -50.0]
    assert {r["account_id"] for r in rows} == {"acc-1"}


def test_ingest_reads_database_url_and_outbox_from_env(
    sample_csv: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    outbox = tmp_path / "outbox.jsonl"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("LEDGER_OUTBOX_PATH", str(outbox))

    result = runner.invoke(
        app, ["ingest", str(sample_csv), "--account-id", "acc-1", "--email", "me@example.com"]
    )

    assert result.exit_code == 0, result.output
    (line,) = outbox.read_text(encoding="utf-8").splitlines()
    assert json.loads(line)["address"] == "me@example.com"
    assert len(fetch_ledger_rows(url)) == 4


def test_ingest_reads_dotenv_from_working_directory(sample_csv: Path, tmp_path: Path):
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    (tmp_path / ".env").write_text(f"DATABASE_URL={url}\n", encoding="utf-8")

    result = runner.invoke(app, ["ingest", str(sample_csv), "--account-id", "acc-1"])

    assert result.exit_code == 0, result.output
    assert len(fetch_ledger_rows(url)) == 4


def test_ingest_without_database_url_exits_1(sample_csv: Path):
    result = runner.invoke(app, ["ingest", str(sample_csv), "--account-id", "acc-1"])

    assert result.exit_code == 1
    assert "DATABASE_URL is not set" in result.output


def test_ingest_reports_failed_file_and_exits_1(sample_csv: Path, tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}"
    bad = tmp_path / "bad.csv"
    bad.write_text("h\n1,1/1\n", encoding="utf-8")

    result = runner.invoke(
        app,
        ["ingest", str(sample_csv), str(bad), "--account-id", "acc-1", "--database-url", url],
    )

    assert result.exit_code == 1
    assert "1 succeeded, 1 failed" in result.output
    assert len(fetch_ledger_rows(url)) == 4


def test_ingest_rejects_blank_account_id(sample_csv: Path, tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}"

    result = runner.invoke(
        app, ["ingest", str(sample_csv), "--account-id", " ", "--database-url", url]
    )

    assert result.exit_code == 1
    assert "account_id must be non-empty" in result.output
