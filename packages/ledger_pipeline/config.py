"""Environment-driven settings for ``ledger_pipeline``.

Entrypoints load a local ``.env`` (see :func:`load_env_file`) before calling
:func:`load_settings`; already-exported variables always win.

Variables
---------
- ``DATABASE_URL``: SQLAlchemy URL of the ledger store. Required only for
  commands that persist.
- ``LEDGER_PIPELINE_LOG_LEVEL``: level name or number (default ``INFO``).
- ``LEDGER_OUTBOX_PATH``: file the :class:`~ledger_pipeline.notify.OutboxNotifier`
  appends summaries to. When unset, notification is skipped.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigError


@dataclass(frozen=True, slots=True)
class Settings:
    database_url: str | None = None
    log_level: str = "INFO"
    outbox_path: Path | None = None

    def require_database_url(self) -> str:
        if not self.database_url:
            raise ConfigError("DATABASE_URL")
        return self.database_url


def _env(name: str) -> str | None:
    val = os.getenv(name)
    if val is None or not val.strip():
        return None
    return val.strip()


def load_env_file(path: str | os.PathLike[str] | None = None) -> None:
    """Load ``.env`` from ``path`` (default: CWD) without overriding the env."""

    load_dotenv(dotenv_path=Path(path) if path else Path.cwd() / ".env", override=False)


def load_settings(*, database_url: str | None = None) -> Settings:
    """Build :class:`Settings` from the environment.

    ``database_url`` overrides ``DATABASE_URL`` when given (CLI flag).
    """

    outbox = _env("LEDGER_OUTBOX_PATH")
    return Settings(
        database_url=database_url or _env("DATABASE_URL"),
        log_level=_env("LEDGER_PIPELINE_LOG_LEVEL") or "INFO",
        outbox_path=Path(outbox).expanduser() if outbox else None,
    )


__all__ = ["Settings", "load_env_file", "load_settings"]
