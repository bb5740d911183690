"""Pytest configuration for test isolation.

Several pieces of the package keep process-wide state: the shared SQLAlchemy
engine in ``db.client``, the lazily built pipeline in
``ledger_pipeline.pipeline`` and the package logger configured by the CLI.
Environment variables (``DATABASE_URL`` and friends) and a stray ``.env`` in
the working tree would also leak into CLI runs.

To keep tests hermetic, an autouse fixture clears the relevant variables,
runs each test from its own temporary directory and resets the shared state
afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from db.client import dispose_engine

from ledger_pipeline.logging_setup import reset_logging
from ledger_pipeline.pipeline import reset_pipeline

_ENV_VARS = ("DATABASE_URL", "LEDGER_OUTBOX_PATH", "LEDGER_PIPELINE_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _isolate_process_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # The CLI loads ``.env`` from the CWD; an empty temp dir has none.
    monkeypatch.chdir(tmp_path)
    yield
    reset_pipeline()
    dispose_engine()
    reset_logging()
