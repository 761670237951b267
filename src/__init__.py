"""AI documentation rewriter package.

This module serves as the root of the documentation rewriter, which walks a
source tree, sends every matching file to an external AI service that adds
documentation comments, and writes the result back in place without ever
leaving a file half-written.

Package Structure
-----------------
- `pipeline/doc_rewriter/`:
    The core: file selection and traversal, bounded-concurrency
    orchestration, atomic replacement, outcome reporting, the HTTP
    transformer and the command-line entrypoint.
- `config.py`: All configuration constants (paths, limits, suffixes), as UPPER_SNAKE_CASE.
- `exceptions.py`: The project-specific exception hierarchy.

Examples
--------
Basic import pattern:

>>> import src
>>> # Run ``python -m src.pipeline.doc_rewriter.cli --help`` for the entrypoint.
"""
