"""Per-file outcome collection for a pipeline run."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from .models import (
    BatchEntry,
    BatchReport,
    Committed,
    RolledBack,
    TransformFailure,
    TransformOutcome,
    WriteOutcome,
)

logger = logging.getLogger(__name__)


class OutcomeReporter:
    r"""Append-only, thread-safe sink of per-file outcomes.

    ``observe`` logs one line per file and records a ``BatchEntry``. It never
    raises and has no influence on the pipeline's control flow: a logging
    failure is dropped rather than turned into a file failure.

    Examples
    --------
    >>> from pathlib import Path
    >>> from src.pipeline.doc_rewriter.models import FileContent, TransformSuccess, Committed
    >>> reporter = OutcomeReporter()
    >>> reporter.observe(Path("A.scala"), TransformSuccess(FileContent("x")), Committed())
    >>> reporter.report().committed
    1
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: list[BatchEntry] = []

    def observe(
        self,
        location: Path,
        transform: TransformOutcome,
        write: WriteOutcome | None = None,
    ) -> None:
        entry = BatchEntry(Path(location), transform, write)
        with self._lock:
            self._entries.append(entry)
        try:
            self._log(entry)
        except Exception:  # noqa: BLE001
            pass

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def report(self) -> BatchReport:
        """Return an immutable snapshot of everything observed so far."""
        with self._lock:
            return BatchReport(tuple(self._entries))

    @staticmethod
    def _log(entry: BatchEntry) -> None:
        name = entry.location
        if isinstance(entry.transform, TransformFailure):
            logger.warning(
                "Skipping file %s due to processing error: %s",
                name,
                entry.transform.reason,
            )
        elif isinstance(entry.write, RolledBack):
            logger.warning("Rolled back %s: %s", name, entry.write.reason)
        elif isinstance(entry.write, Committed):
            logger.info("Committed %s", name)
        else:
            logger.info("Transformed %s (no write requested)", name)


__all__ = ["OutcomeReporter"]
