"""Global configuration constants for the project.

Defines paths, filenames and pipeline policy constants used across the
documentation rewriter and its command-line entrypoint.
"""

from __future__ import annotations

from pathlib import Path

# Project directories
PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
LOG_DIR: Path = PROJECT_ROOT / "logs"

# Source selection
SOURCE_FILE_SUFFIX: str = ".scala"
SOURCE_ENCODING: str = "utf-8"

# Concurrency policy: maximum number of files in flight at once
MAX_CONCURRENT_TRANSFORMS: int = 5

# Atomic replace: sibling temporary file suffix
TEMP_FILE_SUFFIX: str = ".tmp"

# Project summary (README) generation
README_FILENAME: str = "README.md"
README_FILE_SEPARATOR: str = "\n--- New file---\n"
README_FRAGMENT_CHARS: int = 60_000

# AI service defaults
DEFAULT_OPENAI_BASE_URL: str = "https://api.openai.com/v1"
DEFAULT_MODEL_NAME: str = "gpt-4o"
AI_PAYLOAD_MAX_TOKENS: int = 16_384
AI_GENERATED_MARKER: str = (
    "//The documentation in this file has been generated via Generative AI"
)

# CLI defaults and logging
LOG_FILENAME_DOC_REWRITER: str = "doc_rewriter.log"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
