"""The doc_rewriter package documents source files in place with an external AI service.

This package is the core of the project: it walks a source tree, reads every
file matching the configured suffix, sends each file's text to a transformer
with a fixed concurrency ceiling, and atomically replaces the file with the
result. A failure for one file is recorded as that file's outcome and never
stops, cancels or corrupts the others.

The package does not parse configuration on its own behalf; the transformer
(and its credentials) is injected by the caller, normally :mod:`.cli`.

Modules exported
----------------
DocRewriter
    Entry points ``process_one``, ``process_all`` and ``generate_readme``.
BoundedPipeline, Transformer
    Concurrency-limited, failure-isolated orchestration and the capability
    it drives.
AtomicWriter
    Temporary-file-then-rename replacement of file content.
OutcomeReporter
    Thread-safe sink producing the ``BatchReport`` of a run.
AIAPIClient, OpenAIConfig
    HTTP transformer for OpenAI-compatible chat-completion endpoints and its
    environment-driven configuration.
SuffixFilter, walk_source_files, read_source_file
    File selection, traversal and reading.

Examples
--------
>>> from src.pipeline.doc_rewriter import DocRewriter, SuffixFilter
>>> SuffixFilter(".scala").accepts("Main.scala")
True
"""

from __future__ import annotations

from .client import AIAPIClient
from .config import OpenAIConfig
from .file_handler import SuffixFilter, read_source_file, walk_source_files
from .models import (
    BatchEntry,
    BatchReport,
    Committed,
    FileContent,
    FileRecord,
    RolledBack,
    TransformFailure,
    TransformOutcome,
    TransformSuccess,
    WriteOutcome,
)
from .pipeline import AdmissionGate, BoundedPipeline, Transformer
from .processor import DocRewriter
from .reporter import OutcomeReporter
from .writer import AtomicWriter

__all__ = [
    "AIAPIClient",
    "AdmissionGate",
    "AtomicWriter",
    "BatchEntry",
    "BatchReport",
    "BoundedPipeline",
    "Committed",
    "DocRewriter",
    "FileContent",
    "FileRecord",
    "OpenAIConfig",
    "OutcomeReporter",
    "RolledBack",
    "SuffixFilter",
    "TransformFailure",
    "TransformOutcome",
    "TransformSuccess",
    "Transformer",
    "WriteOutcome",
    "read_source_file",
    "walk_source_files",
]
