from __future__ import annotations

from pathlib import Path

import pytest
from db.client import create_schema, dispose_engine, get_engine, session_scope
from sqlalchemy import text


def test_one_engine_per_url(tmp_path: Path):
    a = f"sqlite+pysqlite:///{tmp_path / 'a.db'}"
    b = f"sqlite+pysqlite:///{tmp_path / 'b.db'}"

    assert get_engine(database_url=a) is get_engine(database_url=a)
    assert get_engine(database_url=a) is not get_engine(database_url=b)

    dispose_engine()
    assert get_engine(database_url=a) is not None


def test_url_falls_back_to_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    url = f"sqlite+pysqlite:///{tmp_path / 'env.db'}"
    monkeypatch.setenv("DATABASE_URL", url)

    assert get_engine() is get_engine(database_url=url)


def test_missing_url_raises():
    with pytest.raises(RuntimeError, match="DATABASE_URL is not set"):
        get_engine()


def test_session_scope_rolls_back_on_error(tmp_path: Path):
    url = f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}"
    create_schema(database_url=url)

    with pytest.raises(ZeroDivisionError):
        with session_scope(database_url=url) as s:
            s.execute(
                text(
                    "INSERT INTO ledger_transactions (id, internal_id, date, amount, account_id) "
                    "VALUES ('k', 1, '2024-01-01T00:00:00Z', 1.0, 'a')"
                )
            )
            1 / 0

    with session_scope(database_url=url) as s:
        assert s.execute(text("SELECT COUNT(*) FROM ledger_transactions")).scalar_one() == 0
