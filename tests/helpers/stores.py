"""In-memory batch-write stores for persister and pipeline tests.

Each stub records every request it receives (a copy of the submitted items)
in ``calls`` so tests can assert on request counts, sizes and contents.
"""

from __future__ import annotations

from collections.abc import Sequence

from ledger_pipeline.models import StoredTransaction


class RecordingStore:
    """Acknowledges every item."""

    def __init__(self) -> None:
        self.calls: list[list[StoredTransaction]] = []

    @property
    def written(self) -> list[StoredTransaction]:
        return [item for call in self.calls for item in call]

    def batch_write(self, items: Sequence[StoredTransaction]) -> list[StoredTransaction]:
        self.calls.append(list(items))
        return []


class ScriptedStore(RecordingStore):
    """Returns the last ``k`` submitted items as unprocessed, ``k`` taken from a script.

    ``script`` lists the unprocessed count per call; once exhausted,
    ``default`` is used for every further call.
    """

    def __init__(self, script: Sequence[int], *, default: int = 0) -> None:
        super().__init__()
        self._script = list(script)
        self._default = default

    def batch_write(self, items: Sequence[StoredTransaction]) -> list[StoredTransaction]:
        self.calls.append(list(items))
        k = self._script.pop(0) if self._script else self._default
        k = min(k, len(items))
        return list(items[len(items) - k :]) if k else []


class ExplodingStore(RecordingStore):
    """Raises ``error`` on the ``fail_on``-th request (1-based)."""

    def __init__(self, error: Exception, *, fail_on: int = 1) -> None:
        super().__init__()
        self._error = error
        self._fail_on = fail_on

    def batch_write(self, items: Sequence[StoredTransaction]) -> list[StoredTransaction]:
        self.calls.append(list(items))
        if len(self.calls) == self._fail_on:
            raise self._error
        return []
