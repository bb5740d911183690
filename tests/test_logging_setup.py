from __future__ import annotations

import io
import logging

import pytest

from ledger_pipeline.logging_setup import configure_logging, get_logger, resolve_level


def test_library_logger_is_silent_until_configured():
    get_logger("ledger_pipeline.anything")

    handlers = logging.getLogger("ledger_pipeline").handlers
    assert handlers
    assert all(isinstance(h, logging.NullHandler) for h in handlers)


def test_configure_logging_installs_one_handler_once():
    buf = io.StringIO()

    configure_logging("debug", fmt="%(name)s %(levelname)s %(message)s", stream=buf)
    configure_logging("error", stream=io.StringIO())
    get_logger("ledger_pipeline.persistence").debug("hello %d", 1)

    pkg = logging.getLogger("ledger_pipeline")
    assert len(pkg.handlers) == 1
    assert pkg.propagate is False
    assert buf.getvalue() == "ledger_pipeline.persistence DEBUG hello 1\n"


def test_level_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LEDGER_PIPELINE_LOG_LEVEL", "WARNING")
    buf = io.StringIO()

    configure_logging(stream=buf)
    log = get_logger("ledger_pipeline.pipeline")
    log.info("dropped")
    log.warning("kept")

    assert buf.getvalue().endswith("kept\n")
    assert "dropped" not in buf.getvalue()


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(logging.DEBUG, logging.DEBUG), ("warning", logging.WARNING), (" 15 ", 15), ("bogus", logging.INFO)],
)
def test_resolve_level(raw: int | str, expected: int):
    assert resolve_level(raw) == expected


def test_resolve_level_defaults_to_info():
    assert resolve_level() == logging.INFO
