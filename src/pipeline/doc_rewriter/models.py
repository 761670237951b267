"""Value types flowing through the documentation rewriter pipeline.

Every type in this module is immutable once constructed. ``FileContent``
wraps the full text of one file, ``FileRecord`` pairs it with the file's
location, and the outcome variants describe what happened to a file at the
transform and write stages. ``BatchReport`` is the terminal record of a
directory run.

Examples
--------
>>> from pathlib import Path
>>> content = FileContent("object A")
>>> content == FileContent("object A")
True
>>> str(content)
'object A'
>>> entry = BatchEntry(Path("A.scala"), TransformSuccess(content), Committed())
>>> entry.committed
True
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class FileContent:
    """Immutable full text of one file.

    Equality and display are structural: two instances are equal iff their
    text is equal, and ``str()`` returns the text itself.
    """

    value: str

    def __str__(self) -> str:
        return self.value

    def __len__(self) -> int:
        return len(self.value)


@dataclass(frozen=True)
class FileRecord:
    """A file location paired with the content read from it."""

    location: Path
    content: FileContent


@dataclass(frozen=True)
class TransformSuccess:
    """The transformer produced ``content`` for a file."""

    content: FileContent

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class TransformFailure:
    """The transformer (or the read feeding it) failed for a file."""

    reason: str

    @property
    def ok(self) -> bool:
        return False


TransformOutcome = Union[TransformSuccess, TransformFailure]


@dataclass(frozen=True)
class Committed:
    """The transformed content replaced the original file."""

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class RolledBack:
    """The write was abandoned; the original file is untouched."""

    reason: str

    @property
    def ok(self) -> bool:
        return False


WriteOutcome = Union[Committed, RolledBack]


@dataclass(frozen=True)
class BatchEntry:
    """Per-file record of a pipeline run.

    ``write`` is ``None`` when the transform failed and no write was
    attempted.
    """

    location: Path
    transform: TransformOutcome
    write: WriteOutcome | None = None

    @property
    def committed(self) -> bool:
        return isinstance(self.write, Committed)

    @property
    def reason(self) -> str | None:
        """Return the failure reason of the first failing stage, if any."""
        if isinstance(self.transform, TransformFailure):
            return self.transform.reason
        if isinstance(self.write, RolledBack):
            return self.write.reason
        return None

    @property
    def final_outcome(self) -> WriteOutcome:
        """Collapse the entry into the user-visible committed/rolled-back result."""
        if self.write is not None:
            return self.write
        return RolledBack(self.reason or "transformation failed")


@dataclass(frozen=True)
class BatchReport:
    """Immutable collection of ``BatchEntry`` values for one directory run.

    Entries are kept in arrival order, which carries no meaning; use
    :meth:`sorted` for a deterministic presentation.
    """

    entries: tuple[BatchEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def total(self) -> int:
        return len(self.entries)

    @property
    def committed(self) -> int:
        return sum(1 for entry in self.entries if entry.committed)

    @property
    def failed(self) -> int:
        return self.total - self.committed

    @property
    def locations(self) -> frozenset[Path]:
        return frozenset(entry.location for entry in self.entries)

    def get(self, location: Path) -> BatchEntry | None:
        """Return the entry recorded for ``location`` or ``None``."""
        for entry in self.entries:
            if entry.location == location:
                return entry
        return None

    def sorted(self) -> BatchReport:
        """Return a copy with entries ordered by location."""
        return BatchReport(tuple(sorted(self.entries, key=lambda e: str(e.location))))

    def to_stats(self) -> dict[str, int]:
        """Return run statistics in the shape used by the CLI summary.

        Returns
        -------
        dict[str, int]
            Counters keyed by ``total_files``, ``transform_failures``,
            ``write_rollbacks``, ``committed`` and ``failed``.
        """
        transform_failures = sum(
            1 for e in self.entries if isinstance(e.transform, TransformFailure)
        )
        write_rollbacks = sum(1 for e in self.entries if isinstance(e.write, RolledBack))
        return {
            "total_files": self.total,
            "transform_failures": transform_failures,
            "write_rollbacks": write_rollbacks,
            "committed": self.committed,
            "failed": self.failed,
        }
