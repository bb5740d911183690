"""Summary hand-off to an external notification collaborator.

Rendering and delivery live outside this package. The pipeline only needs an
object with ``send(address, summary)``; :class:`OutboxNotifier` is the local
implementation used by the CLI, appending one JSON line per summary for a
downstream mailer to pick up.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol

from .logging_setup import get_logger
from .models import Summary

logger = get_logger("ledger_pipeline.notify")


class SummaryNotifier(Protocol):
    def send(self, address: str, summary: Summary) -> None: ...


class OutboxNotifier:
    """Append ``{"address": ..., "summary": ...}`` lines to an outbox file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)

    def send(self, address: str, summary: Summary) -> None:
        if not address.strip():
            raise ValueError("address must be non-empty")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(
            {"address": address, "summary": summary.to_dict()},
            ensure_ascii=False,
            separators=(",", ":"),
        )
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        logger.debug("queued summary for %s in %s", address, self.path)


__all__ = ["OutboxNotifier", "SummaryNotifier"]
