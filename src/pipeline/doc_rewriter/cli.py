"""CLI entrypoint and logging/argument utilities for the documentation rewriter.

This module is the thin orchestration layer in front of :class:`DocRewriter`:
argument parsing, logging setup, configuration loading and a summary table
of the run. All processing is delegated to the core package.

Sub-commands
------------
file PATH
    Document one source file in place.
all ROOT
    Document every source file below ROOT.
readme ROOT
    Summarize the project below ROOT into a README file.

Exit codes
----------
0 when every file was committed, 1 when at least one file was rolled back,
2 for input or configuration errors, 130 when interrupted.

Examples
--------
>>> # In shell
>>> python -m src.pipeline.doc_rewriter.cli all src/main/scala --concurrency 5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from collections.abc import Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.config import (
    LOG_DIR,
    LOG_FILENAME_DOC_REWRITER,
    LOG_FORMAT,
    MAX_CONCURRENT_TRANSFORMS,
    README_FILENAME,
    SOURCE_FILE_SUFFIX,
)
from src.exceptions import DirectoryError, InvalidPathError

from .client import AIAPIClient
from .config import OpenAIConfig
from .models import BatchReport, Committed, RolledBack, TransformFailure
from .processor import DocRewriter
from .prompts import build_readme_prompt
from .reporter import OutcomeReporter

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PARTIAL_FAILURE = 1
EXIT_USAGE_ERROR = 2
EXIT_INTERRUPTED = 130


def configure_logging(level: str = "INFO", enable_file: bool = True) -> None:
    r"""Configure logging output for the CLI.

    Sets up a console handler and, optionally, a file handler in ``LOG_DIR``
    using the project log format. A file handler that cannot be created
    (permissions, read-only checkout) is skipped so the run still proceeds.

    Parameters
    ----------
    level : str, optional
        Logging level name, e.g. "DEBUG" or "INFO". Defaults to "INFO".
    enable_file : bool, optional
        Whether to also log to ``LOG_DIR / LOG_FILENAME_DOC_REWRITER``.

    Examples
    --------
    >>> from src.pipeline.doc_rewriter.cli import configure_logging
    >>> configure_logging("DEBUG", enable_file=False)
    """
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if enable_file:
        try:
            LOG_DIR.mkdir(exist_ok=True)
            handlers.insert(
                0, logging.FileHandler(LOG_DIR / LOG_FILENAME_DOC_REWRITER, mode="a")
            )
        except OSError:
            logger.warning("File logging disabled: cannot write to %s", LOG_DIR)
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments.

    Returns
    -------
    argparse.Namespace
        Parsed arguments with attributes ``command``, ``path``, ``suffix``,
        ``concurrency``, ``output`` and ``log_level``.
    """
    parser = argparse.ArgumentParser(
        description="Add AI-generated documentation to source files in place."
    )
    parser.add_argument("--suffix", type=str, default=SOURCE_FILE_SUFFIX)
    parser.add_argument(
        "-c", "--concurrency", type=int, default=MAX_CONCURRENT_TRANSFORMS
    )
    parser.add_argument(
        "--log-level", type=str, default=os.environ.get("LOG_LEVEL", "INFO")
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("file", help="Document a single source file").add_argument(
        "path", type=Path
    )
    sub.add_parser("all", help="Document every source file below a directory").add_argument(
        "path", type=Path
    )
    readme = sub.add_parser("readme", help="Summarize a project into a README")
    readme.add_argument("path", type=Path)
    readme.add_argument("-o", "--output", type=Path, default=Path(README_FILENAME))
    args = parser.parse_args(argv)
    if args.concurrency < 1:
        parser.error("--concurrency must be at least 1")
    return args


def render_summary(report: BatchReport, console: Console | None = None) -> Table:
    """Print a table with one row per file of ``report`` and return it."""
    table = Table(title="Documentation run", show_header=True, header_style="bold blue")
    table.add_column("File")
    table.add_column("Result")
    table.add_column("Reason", overflow="fold")
    for entry in report.sorted():
        if entry.committed:
            table.add_row(str(entry.location), "[green]committed[/green]", "")
        else:
            stage = "transform" if isinstance(entry.transform, TransformFailure) else "write"
            table.add_row(
                str(entry.location),
                f"[red]rolled back ({stage})[/red]",
                entry.reason or "",
            )
    (console or Console()).print(table)
    return table


async def run_command(args: argparse.Namespace, config: OpenAIConfig) -> int:
    """Execute the parsed sub-command and return the process exit code."""
    async with AIAPIClient(config) as client:
        rewriter = DocRewriter(
            client,
            client.with_prompt(build_readme_prompt),
            suffix=args.suffix,
            max_concurrency=args.concurrency,
        )
        reporter = OutcomeReporter()
        if args.command == "file":
            outcome = await rewriter.process_one(args.path, reporter)
            render_summary(reporter.report())
            return EXIT_OK if isinstance(outcome, Committed) else EXIT_PARTIAL_FAILURE
        if args.command == "all":
            report = await rewriter.process_all(args.path, reporter)
            render_summary(report)
            logger.info(f"Processing finished. Stats: {report.to_stats()}")
            return EXIT_OK if report.failed == 0 else EXIT_PARTIAL_FAILURE
        outcome = await rewriter.generate_readme(args.path, args.output)
        if isinstance(outcome, RolledBack):
            logger.error(f"README not written: {outcome.reason}")
            return EXIT_PARTIAL_FAILURE
        logger.info(f"README written to {args.output}")
        return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run the CLI and return its exit code."""
    args = parse_arguments(argv)
    disable_file = bool(
        os.environ.get("DISABLE_FILE_LOGS") or os.environ.get("PYTEST_CURRENT_TEST")
    )
    configure_logging(args.log_level, enable_file=not disable_file)
    logger.info("Starting Program")
    try:
        config = OpenAIConfig()
    except ValueError:
        logger.exception("Configuration error while initializing OpenAIConfig")
        return EXIT_USAGE_ERROR
    try:
        return asyncio.run(run_command(args, config))
    except (InvalidPathError, DirectoryError) as exc:
        logger.error(str(exc))
        return EXIT_USAGE_ERROR
    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user (KeyboardInterrupt).")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())
