"""File discovery and reading utilities for the documentation rewriter.

This module knows how to select source files, walk a directory tree for
them and load a file's text. It performs only file I/O and does not contact
external services.

Functions
---------
- ``SuffixFilter``: decide whether a path is a source file.
- ``walk_source_files``: lazily enumerate source files under a root.
- ``read_source_file``: load one file into a ``FileContent``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from src.config import SOURCE_ENCODING, SOURCE_FILE_SUFFIX
from src.exceptions import DirectoryError, FileIOError, InvalidPathError

from .models import FileContent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuffixFilter:
    r"""Accept paths whose trailing extension equals ``suffix`` exactly.

    The comparison is case-sensitive and only looks at the last extension
    segment, so ``a.scala.bak`` is rejected for ``.scala``. The filter is
    pure: it never touches the filesystem.

    Examples
    --------
    >>> f = SuffixFilter(".scala")
    >>> f.accepts(Path("a.scala")), f.accepts(Path("a.scala.bak")), f.accepts(Path("a.txt"))
    (True, False, False)
    """

    suffix: str = SOURCE_FILE_SUFFIX

    def accepts(self, path: Path | str) -> bool:
        return Path(path).suffix == self.suffix

    def __call__(self, path: Path | str) -> bool:
        return self.accepts(path)


def walk_source_files(
    root: Path | str, path_filter: SuffixFilter | None = None
) -> Iterator[Path]:
    r"""Enumerate source files below ``root`` at any depth.

    The directory check runs immediately when this function is called, so a
    bad root fails before any traversal happens. The returned iterator is
    lazy and single-pass; call the function again to restart. Ordering
    follows the filesystem and must not be relied upon.

    Parameters
    ----------
    root : Path | str
        Directory to traverse.
    path_filter : SuffixFilter | None, optional
        Inclusion policy. Defaults to the configured source suffix.

    Returns
    -------
    Iterator[Path]
        Paths of regular files accepted by ``path_filter``.

    Raises
    ------
    DirectoryError
        If ``root`` does not denote an existing directory.

    Examples
    --------
    >>> from pathlib import Path
    >>> files = walk_source_files(Path("src"))  # doctest: +SKIP
    >>> sorted(p.name for p in files)  # doctest: +SKIP
    ['Main.scala']
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise DirectoryError(root_path)
    accepts = path_filter or SuffixFilter()
    return _iter_matching(root_path, accepts)


def _iter_matching(root: Path, path_filter: SuffixFilter) -> Iterator[Path]:
    def _log_walk_error(err: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", err.filename, err)

    for dirpath, _dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        for name in filenames:
            candidate = Path(dirpath) / name
            if path_filter.accepts(candidate) and candidate.is_file():
                yield candidate


async def read_source_file(
    path: Path | str,
    path_filter: SuffixFilter | None = None,
    encoding: str = SOURCE_ENCODING,
) -> FileContent:
    r"""Load the full text of ``path``.

    When ``path_filter`` is given the path is validated against it first and
    rejected before any I/O is attempted. The blocking read runs in a worker
    thread so the event loop stays free for other files.

    Parameters
    ----------
    path : Path | str
        File to read.
    path_filter : SuffixFilter | None, optional
        Validation policy for single-file callers.
    encoding : str, optional
        Text encoding; decoding is strict.

    Returns
    -------
    FileContent
        The decoded text.

    Raises
    ------
    InvalidPathError
        If ``path_filter`` rejects ``path``.
    FileIOError
        If the file cannot be read or is not valid text in ``encoding``.
    """
    file_path = Path(path)
    if path_filter is not None and not path_filter.accepts(file_path):
        raise InvalidPathError(file_path)
    logger.info(f"Starting to read {file_path.name}")
    try:
        text = await asyncio.to_thread(_read_exact, file_path, encoding)
    except UnicodeDecodeError as exc:
        logger.error(f"Failed to extract content for {file_path.name}: {exc}")
        raise FileIOError(
            f"Cannot decode {file_path} as {encoding}: {exc.reason}",
            context={"path": str(file_path), "encoding": encoding},
        ) from exc
    except OSError as exc:
        logger.error(f"Failed to extract content for {file_path.name}: {exc}")
        raise FileIOError(
            f"Cannot read {file_path}: {exc.strerror or exc}",
            context={"path": str(file_path)},
        ) from exc
    logger.debug(f"Finished extracting content for {file_path.name}")
    return FileContent(text)


def _read_exact(path: Path, encoding: str) -> str:
    # newline="" keeps CRLF line endings byte-for-byte.
    with path.open("r", encoding=encoding, errors="strict", newline="") as fh:
        return fh.read()


__all__ = ["SuffixFilter", "read_source_file", "walk_source_files"]
