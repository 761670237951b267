"""BoundedPipeline: concurrency-limited, failure-isolated transformation of files.

This module is the orchestration core of the documentation rewriter. It
takes a stream of file locations (or already-read ``FileRecord`` values),
applies the transformer to each file with a fixed upper bound on the number
of files in flight, and forwards successful results to the ``AtomicWriter``.
Every file ends with exactly one ``BatchEntry`` in the run's report.

Guarantees
----------
- Boundedness: an ``asyncio.Semaphore`` owned by the pipeline admits at most
  ``max_concurrency`` files at a time. A permit is taken before a file's
  read/transform/write triad starts and released exactly once when it ends,
  whatever the ending (success, failure or cancellation).
- Isolation: any ``Exception`` raised while handling one file becomes that
  file's failure outcome; it never cancels or fails sibling files.
- Streaming: locations are pulled from the source only when a permit is
  free, so at most ``max_concurrency`` file contents are held in memory.
- Ordering: none across files. Callers that combine several transformed
  fragments use :meth:`BoundedPipeline.transform_ordered`, which returns
  results indexed by submission order.

Examples
--------
>>> import asyncio
>>> from pathlib import Path
>>> class Upper:
...     async def transform(self, text: str) -> str:
...         return text.upper()
>>> pipeline = BoundedPipeline(Upper(), max_concurrency=2)  # doctest: +SKIP
>>> report = asyncio.run(pipeline.run([Path("A.scala")]))  # doctest: +SKIP
>>> report.committed  # doctest: +SKIP
1
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import (
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Callable,
    Iterable,
    Sequence,
)
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from src.config import MAX_CONCURRENT_TRANSFORMS, SOURCE_ENCODING
from src.exceptions import FileIOError, TransformationError

from .file_handler import read_source_file
from .models import (
    BatchEntry,
    BatchReport,
    FileContent,
    FileRecord,
    RolledBack,
    TransformFailure,
    TransformOutcome,
    TransformSuccess,
    WriteOutcome,
)
from .reporter import OutcomeReporter
from .writer import AtomicWriter

logger = logging.getLogger(__name__)


@runtime_checkable
class Transformer(Protocol):
    """Asynchronous, fallible text-to-text capability."""

    async def transform(self, text: str) -> str: ...


class AdmissionGate:
    """Counting semaphore that also knows how many permits are held.

    Several pipelines may share one gate so that their files count against
    a single concurrency ceiling.
    """

    def __init__(self, permits: int = MAX_CONCURRENT_TRANSFORMS) -> None:
        if permits < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.permits = permits
        self.in_flight = 0
        self._semaphore = asyncio.Semaphore(permits)

    async def acquire(self) -> None:
        await self._semaphore.acquire()
        self.in_flight += 1

    def release(self) -> None:
        self.in_flight -= 1
        self._semaphore.release()


class BoundedPipeline:
    r"""Apply a transformer to many files with a fixed concurrency ceiling.

    Parameters
    ----------
    transformer : Transformer
        Object exposing ``async transform(text) -> text``.
    writer : AtomicWriter | None, optional
        Commits successful results. Defaults to a new ``AtomicWriter``.
    max_concurrency : int, optional
        Maximum number of files (and therefore transformer calls) in flight.
    encoding : str, optional
        Encoding used to read source files.
    gate : AdmissionGate | None, optional
        Admission gate to share with other pipelines. A private gate of
        ``max_concurrency`` permits is created when omitted.

    Raises
    ------
    ValueError
        If ``max_concurrency`` is smaller than one.

    Notes
    -----
    The admission gate belongs to the event loop that first uses it; create
    one pipeline per ``asyncio.run``.
    """

    def __init__(
        self,
        transformer: Transformer,
        writer: AtomicWriter | None = None,
        *,
        max_concurrency: int = MAX_CONCURRENT_TRANSFORMS,
        encoding: str = SOURCE_ENCODING,
        gate: AdmissionGate | None = None,
    ) -> None:
        self._gate = gate if gate is not None else AdmissionGate(max_concurrency)
        self.transformer = transformer
        self.writer = writer or AtomicWriter(encoding=encoding)
        self.max_concurrency = self._gate.permits
        self.encoding = encoding

    @property
    def in_flight(self) -> int:
        """Number of admitted files that have not finished yet."""
        return self._gate.in_flight

    def with_transformer(self, transformer: Transformer) -> BoundedPipeline:
        """Return a pipeline driving ``transformer`` through this pipeline's gate and writer."""
        return BoundedPipeline(
            transformer, self.writer, encoding=self.encoding, gate=self._gate
        )

    async def _acquire(self) -> None:
        await self._gate.acquire()

    def _release(self) -> None:
        self._gate.release()

    @contextlib.asynccontextmanager
    async def admission(self) -> AsyncIterator[None]:
        """Hold one permit of the admission gate for the duration of the block."""
        await self._acquire()
        try:
            yield
        finally:
            self._release()

    async def transform_text(self, text: str) -> TransformOutcome:
        """Invoke the transformer once and convert its result to an outcome.

        Never raises except for ``asyncio.CancelledError``. An empty or
        whitespace-only result is a failure, since committing it would erase
        the file.
        """
        try:
            result = await self.transformer.transform(text)
        except TransformationError as exc:
            return TransformFailure(str(exc))
        except Exception as exc:
            logger.exception("Transformer raised an unexpected error")
            return TransformFailure(f"{type(exc).__name__}: {exc}")
        if not isinstance(result, str):
            return TransformFailure(
                f"transformer returned {type(result).__name__}, expected str"
            )
        if not result.strip():
            return TransformFailure("empty transformation result")
        return TransformSuccess(FileContent(result))

    async def process_record(
        self, record: FileRecord, reporter: OutcomeReporter | None = None
    ) -> BatchEntry:
        """Transform one record and commit the result if the transform succeeded.

        The write never starts before the transform has completed
        successfully. The caller is responsible for admission.

        Parameters
        ----------
        record : FileRecord
            Location and content to transform.
        reporter : OutcomeReporter | None, optional
            Sink notified with the file's outcomes.

        Returns
        -------
        BatchEntry
            The file's transform outcome and, on success, its write outcome.
        """
        outcome = await self.transform_text(record.content.value)
        write: WriteOutcome | None = None
        if isinstance(outcome, TransformSuccess):
            try:
                write = await self.writer.commit(record.location, outcome.content)
            except Exception as exc:
                logger.exception(f"Writer failed for {record.location}")
                write = RolledBack(f"{type(exc).__name__}: {exc}")
        if reporter is not None:
            reporter.observe(record.location, outcome, write)
        return BatchEntry(record.location, outcome, write)

    async def process_location(
        self, location: Path, reporter: OutcomeReporter | None = None
    ) -> BatchEntry:
        """Read, transform and commit one file, converting every error to an outcome."""
        logger.info(f"Processing file: {location}")
        try:
            content = await read_source_file(location, encoding=self.encoding)
        except FileIOError as exc:
            return self._read_failure(location, str(exc), reporter)
        except Exception as exc:
            logger.exception(f"Unexpected error while reading {location}")
            return self._read_failure(location, f"{type(exc).__name__}: {exc}", reporter)
        return await self.process_record(FileRecord(location, content), reporter)

    @staticmethod
    def _read_failure(
        location: Path, reason: str, reporter: OutcomeReporter | None
    ) -> BatchEntry:
        outcome = TransformFailure(reason)
        if reporter is not None:
            reporter.observe(location, outcome, None)
        return BatchEntry(location, outcome, None)

    async def run(
        self,
        locations: Iterable[Path] | AsyncIterable[Path],
        reporter: OutcomeReporter | None = None,
    ) -> BatchReport:
        r"""Process every location from ``locations`` under the admission gate.

        Parameters
        ----------
        locations : Iterable[Path] | AsyncIterable[Path]
            Lazy source of file locations, typically ``walk_source_files``.
            It is advanced only when a permit is available.
        reporter : OutcomeReporter | None, optional
            Sink for this run. A fresh reporter is used when omitted.

        Returns
        -------
        BatchReport
            One entry per location, in completion order.

        Raises
        ------
        asyncio.CancelledError
            If the run is cancelled. Pending files are cancelled, no new file
            is admitted, and every started write finishes its cleanup before
            the error propagates.
        """
        sink = reporter if reporter is not None else OutcomeReporter()
        await self._stream(
            locations, lambda location: self.process_location(Path(location), sink)
        )
        report = sink.report()
        logger.info(
            "Batch finished: %d files, %d committed, %d failed",
            report.total,
            report.committed,
            report.failed,
        )
        return report

    async def run_records(
        self,
        records: Iterable[FileRecord] | AsyncIterable[FileRecord],
        reporter: OutcomeReporter | None = None,
    ) -> BatchReport:
        """Like :meth:`run`, for records whose content has already been read.

        ``records`` is advanced only when a permit is free, so at most
        ``max_concurrency`` records are held at once.
        """
        sink = reporter if reporter is not None else OutcomeReporter()
        await self._stream(records, lambda record: self.process_record(record, sink))
        return sink.report()

    async def _stream(
        self,
        items: Iterable | AsyncIterable,
        handle: Callable[[Any], Awaitable[BatchEntry]],
    ) -> None:
        """Start ``handle(item)`` for each item, pulling the next one only after a permit is taken."""
        pending: set[asyncio.Task[BatchEntry]] = set()
        source = _iterate(items).__aiter__()
        try:
            while True:
                await self._acquire()
                try:
                    item = await source.__anext__()
                except StopAsyncIteration:
                    self._release()
                    break
                except BaseException:
                    self._release()
                    raise
                task = asyncio.ensure_future(handle(item))
                task.add_done_callback(lambda _task: self._release())
                pending.add(task)
                task.add_done_callback(pending.discard)
            while pending:
                await asyncio.wait(set(pending))
        except BaseException:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            raise

    async def transform_ordered(self, texts: Sequence[str]) -> list[TransformOutcome]:
        r"""Transform several fragments concurrently, keeping submission order.

        Results are stored by index as they arrive, so the returned list is
        aligned with ``texts`` no matter which transformation finishes first.
        Concatenating the successes therefore yields a deterministic result.

        Parameters
        ----------
        texts : Sequence[str]
            Fragments to transform.

        Returns
        -------
        list[TransformOutcome]
            ``result[i]`` is the outcome for ``texts[i]``.
        """
        results: list[TransformOutcome] = [TransformFailure("not started")] * len(texts)

        async def _one(index: int, text: str) -> None:
            async with self.admission():
                results[index] = await self.transform_text(text)

        await asyncio.gather(*(_one(i, t) for i, t in enumerate(texts)))
        return results


async def _iterate(items: Iterable | AsyncIterable) -> AsyncIterator:
    if isinstance(items, AsyncIterable):
        async for item in items:
            yield item
    else:
        for item in items:
            yield item


__all__ = ["AdmissionGate", "BoundedPipeline", "Transformer"]
