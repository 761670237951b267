"""Crash-safe in-place replacement of file content.

``AtomicWriter`` writes new content to a temporary sibling of the target,
flushes it to disk and then renames it over the original with
``os.replace``. The temporary file is owned by a context manager whose exit
removes it on every path out of the write, so the original file is either
fully replaced or byte-for-byte unchanged, and no temporary file outlives
the call.

The blocking work runs in a worker thread. Cancelling ``commit`` waits for
that thread to finish (and clean up) before the cancellation propagates.

Examples
--------
>>> import asyncio
>>> from pathlib import Path
>>> writer = AtomicWriter()
>>> outcome = asyncio.run(writer.commit(Path("A.scala"), FileContent("object A")))  # doctest: +SKIP
>>> outcome
Committed()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path

from src.config import SOURCE_ENCODING, TEMP_FILE_SUFFIX

from .models import Committed, FileContent, RolledBack, WriteOutcome

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def temporary_sibling(
    location: Path, temp_suffix: str = TEMP_FILE_SUFFIX
) -> Iterator[Path]:
    r"""Create a uniquely named temporary file next to ``location``.

    The file lives in the same directory so the final rename never crosses
    a filesystem boundary. It is removed when the block exits unless it has
    already been renamed away.

    Parameters
    ----------
    location : Path
        File that the temporary will eventually replace.
    temp_suffix : str, optional
        Suffix of the temporary file name.

    Yields
    ------
    Path
        Path of the (empty) temporary file.
    """
    fd, raw_path = tempfile.mkstemp(
        dir=location.parent, prefix=f".{location.name}.", suffix=temp_suffix
    )
    os.close(fd)
    temp_path = Path(raw_path)
    try:
        yield temp_path
    finally:
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error(f"Could not remove temporary file {temp_path}: {exc}")


class AtomicWriter:
    r"""Replace a file's content atomically or not at all.

    Parameters
    ----------
    temp_suffix : str, optional
        Suffix of the temporary sibling file.
    encoding : str, optional
        Encoding used to write the new text.
    fsync : bool, optional
        Whether to fsync the temporary file and the parent directory.

    Notes
    -----
    ``commit`` never raises for filesystem or encoding failures; they are
    reported as ``RolledBack``. Concurrent commits to the same location do
    not interfere: each uses its own temporary file and the last rename wins.
    """

    def __init__(
        self,
        temp_suffix: str = TEMP_FILE_SUFFIX,
        encoding: str = SOURCE_ENCODING,
        fsync: bool = True,
    ) -> None:
        self.temp_suffix = temp_suffix
        self.encoding = encoding
        self.fsync = fsync

    async def commit(self, location: Path, new_content: FileContent) -> WriteOutcome:
        """Replace ``location`` with ``new_content``.

        Parameters
        ----------
        location : Path
            File whose content is replaced.
        new_content : FileContent
            Text to store.

        Returns
        -------
        WriteOutcome
            ``Committed()`` when the original now holds ``new_content``,
            ``RolledBack(reason)`` when it was left untouched.
        """
        location = Path(location)
        job = asyncio.ensure_future(
            asyncio.to_thread(self.commit_sync, location, new_content)
        )
        try:
            return await asyncio.shield(job)
        except asyncio.CancelledError:
            # The worker thread cannot be interrupted; let its cleanup finish.
            await asyncio.wait({job})
            logger.warning(f"Write was canceled for {location.name}")
            raise

    def commit_sync(self, location: Path, new_content: FileContent) -> WriteOutcome:
        """Blocking implementation of :meth:`commit`."""
        try:
            with temporary_sibling(location, self.temp_suffix) as temp_path:
                self._write_temp(temp_path, location, new_content.value)
                os.replace(temp_path, location)
        except OSError as exc:
            logger.warning(f"Failed to finalize file for {location.name}: {exc}")
            return RolledBack(f"write failed for {location.name}: {exc}")
        except UnicodeEncodeError as exc:
            logger.warning(f"Failed to finalize file for {location.name}: {exc}")
            return RolledBack(
                f"cannot encode content for {location.name}: {exc.reason}"
            )
        if self.fsync:
            _fsync_directory(location.parent)
        logger.info(f"Successfully updated {location.name}")
        return Committed()

    def _write_temp(self, temp_path: Path, location: Path, text: str) -> None:
        with temp_path.open("w", encoding=self.encoding, newline="") as handle:
            handle.write(text)
            handle.flush()
            if self.fsync:
                os.fsync(handle.fileno())
        if location.exists():
            shutil.copymode(location, temp_path)
        else:
            # mkstemp creates 0o600; new files get the usual 0o644.
            os.chmod(temp_path, 0o644)


def _fsync_directory(directory: Path) -> None:
    try:
        dir_fd = os.open(directory, os.O_RDONLY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        # Not supported for directories on every platform.
        pass
    finally:
        os.close(dir_fd)


__all__ = ["AtomicWriter", "temporary_sibling"]
