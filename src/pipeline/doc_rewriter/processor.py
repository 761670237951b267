"""DocRewriter: entry points of the documentation rewriter.

This module exposes the operations the command-line layer calls:
``process_one`` documents a single source file in place, ``process_all``
documents every source file below a directory, and ``generate_readme``
summarizes a whole project into a README. All three delegate concurrency,
failure isolation and atomic writes to :class:`BoundedPipeline`, so that a
failing file never affects its siblings and never loses its original
content.

Only input errors that make the call itself meaningless propagate: a single
path with the wrong suffix (``InvalidPathError``) or a root that is not a
directory (``DirectoryError``). Everything else ends up in the returned
outcome.

Examples
--------
>>> import asyncio
>>> from pathlib import Path
>>> from src.pipeline.doc_rewriter import AIAPIClient, DocRewriter, OpenAIConfig
>>> async def main():
...     async with AIAPIClient(OpenAIConfig()) as client:
...         rewriter = DocRewriter(client)
...         return await rewriter.process_all(Path("src/main/scala"))
>>> # report = asyncio.run(main())
"""

from __future__ import annotations

import logging
from pathlib import Path

from src.config import (
    MAX_CONCURRENT_TRANSFORMS,
    README_FILE_SEPARATOR,
    README_FRAGMENT_CHARS,
    SOURCE_ENCODING,
    SOURCE_FILE_SUFFIX,
)
from src.exceptions import FileIOError, InvalidPathError

from .file_handler import SuffixFilter, read_source_file, walk_source_files
from .models import (
    BatchReport,
    FileContent,
    FileRecord,
    RolledBack,
    TransformFailure,
    TransformSuccess,
    WriteOutcome,
)
from .pipeline import BoundedPipeline, Transformer
from .prompts import split_fragments
from .reporter import OutcomeReporter
from .writer import AtomicWriter

logger = logging.getLogger(__name__)


class DocRewriter:
    r"""Document source files in place through an external transformer.

    Parameters
    ----------
    transformer : Transformer
        Capability documenting one file's text.
    summary_transformer : Transformer | None, optional
        Capability summarizing project fragments for the README. Defaults to
        ``transformer``.
    suffix : str, optional
        Extension selecting source files (case-sensitive, e.g. ``.scala``).
    max_concurrency : int, optional
        Maximum number of files or README fragments in flight at once, shared
        by every entry point of this instance.
    writer : AtomicWriter | None, optional
        Writer used to commit results.
    encoding : str, optional
        Text encoding of the source files.
    """

    def __init__(
        self,
        transformer: Transformer,
        summary_transformer: Transformer | None = None,
        *,
        suffix: str = SOURCE_FILE_SUFFIX,
        max_concurrency: int = MAX_CONCURRENT_TRANSFORMS,
        writer: AtomicWriter | None = None,
        encoding: str = SOURCE_ENCODING,
    ) -> None:
        self.path_filter = SuffixFilter(suffix)
        self.encoding = encoding
        self.writer = writer or AtomicWriter(encoding=encoding)
        self.pipeline = BoundedPipeline(
            transformer,
            self.writer,
            max_concurrency=max_concurrency,
            encoding=encoding,
        )
        # README summaries count against the same ceiling as file rewrites.
        self.summary_pipeline = self.pipeline.with_transformer(
            summary_transformer or transformer
        )
        logger.info(
            f"Initialized DocRewriter for '*{suffix}' files with concurrency {max_concurrency}"
        )

    async def process_one(
        self, location: Path | str, reporter: OutcomeReporter | None = None
    ) -> WriteOutcome:
        r"""Document a single source file in place.

        Parameters
        ----------
        location : Path | str
            Source file to rewrite.
        reporter : OutcomeReporter | None, optional
            Sink notified with the file's outcome.

        Returns
        -------
        WriteOutcome
            ``Committed()`` when the file now holds the transformed text,
            ``RolledBack(reason)`` when it was left byte-for-byte unchanged.

        Raises
        ------
        InvalidPathError
            If ``location`` does not carry the configured suffix. Raised
            before the filesystem is touched.
        """
        path = Path(location)
        if not self.path_filter.accepts(path):
            raise InvalidPathError(path)
        async with self.pipeline.admission():
            try:
                content = await read_source_file(path, encoding=self.encoding)
            except FileIOError as exc:
                if reporter is not None:
                    reporter.observe(path, TransformFailure(str(exc)), None)
                return RolledBack(str(exc))
            entry = await self.pipeline.process_record(
                FileRecord(path, content), reporter
            )
        return entry.final_outcome

    async def process_all(
        self, root: Path | str, reporter: OutcomeReporter | None = None
    ) -> BatchReport:
        r"""Document every source file below ``root``.

        Parameters
        ----------
        root : Path | str
            Directory to traverse recursively.
        reporter : OutcomeReporter | None, optional
            Sink for this run; a fresh one is used when omitted.

        Returns
        -------
        BatchReport
            Exactly one entry per discovered source file.

        Raises
        ------
        DirectoryError
            If ``root`` is not a directory. Raised before traversal.
        """
        locations = walk_source_files(root, self.path_filter)
        logger.info(f"Processing all '*{self.path_filter.suffix}' files under {root}")
        return await self.pipeline.run(locations, reporter)

    async def generate_readme(
        self,
        root: Path | str,
        output_path: Path | str,
        *,
        fragment_chars: int = README_FRAGMENT_CHARS,
    ) -> WriteOutcome:
        r"""Summarize the project below ``root`` into a README at ``output_path``.

        Source files are read in sorted path order and joined with a file
        separator. The combined text is split into fragments of at most
        ``fragment_chars`` characters, the fragments are summarized
        concurrently, and the summaries are concatenated in submission
        order, so the README does not depend on which request finished
        first. Any failed read or fragment rolls back the whole README.

        Parameters
        ----------
        root : Path | str
            Project directory to summarize.
        output_path : Path | str
            README file to create or replace.
        fragment_chars : int, optional
            Maximum size of one summarized fragment.

        Returns
        -------
        WriteOutcome
            ``Committed()`` or ``RolledBack(reason)``.

        Raises
        ------
        DirectoryError
            If ``root`` is not a directory.
        """
        locations = sorted(walk_source_files(root, self.path_filter))
        if not locations:
            return RolledBack(f"no '*{self.path_filter.suffix}' files under {root}")

        contents: list[str] = []
        for location in locations:
            try:
                content = await read_source_file(location, encoding=self.encoding)
            except FileIOError as exc:
                logger.error(f"README generation aborted: {exc}")
                return RolledBack(str(exc))
            contents.append(content.value)

        if not any(text.strip() for text in contents):
            return RolledBack(f"no content to summarize under {root}")
        combined = README_FILE_SEPARATOR.join(contents)
        fragments = split_fragments(combined, fragment_chars, README_FILE_SEPARATOR)
        logger.info(
            f"Summarizing {len(locations)} files in {len(fragments)} fragment(s)"
        )
        outcomes = await self.summary_pipeline.transform_ordered(fragments)

        failures = [o for o in outcomes if isinstance(o, TransformFailure)]
        if failures:
            reason = f"{len(failures)} of {len(outcomes)} fragment(s) failed: {failures[0].reason}"
            logger.error(f"README generation failed: {reason}")
            return RolledBack(reason)

        readme = "\n\n".join(
            o.content.value.strip() for o in outcomes if isinstance(o, TransformSuccess)
        )
        return await self.writer.commit(Path(output_path), FileContent(readme + "\n"))


__all__ = ["DocRewriter"]
