"""Pytest configuration for test environment setup.

- Forces ``DISABLE_FILE_LOGS=1`` to avoid writing log files during tests.
- Ensures the project root is available on ``sys.path`` for imports.
- Provides small fakes shared by the doc_rewriter tests.
"""

import asyncio
import os
import sys

os.environ.setdefault("DISABLE_FILE_LOGS", "1")  # Avoid creating log files during tests
from pathlib import Path

import pytest

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

from src.exceptions import TransformationError  # noqa: E402


class FakeTransformer:
    """Transformer double recording calls and peak concurrency.

    ``fail_on`` holds substrings; input containing one of them fails with
    ``TransformationError``. ``delay`` may be a number or a callable taking
    the input text.
    """

    def __init__(self, suffix="\n// documented", fail_on=(), delay=0.0, result=None):
        self.suffix = suffix
        self.fail_on = tuple(fail_on)
        self.delay = delay
        self.result = result
        self.calls: list[str] = []
        self.active = 0
        self.peak = 0

    async def transform(self, text: str) -> str:
        self.calls.append(text)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            delay = self.delay(text) if callable(self.delay) else self.delay
            await asyncio.sleep(delay)
            if any(marker in text for marker in self.fail_on):
                raise TransformationError(f"injected failure for {text[:20]!r}")
            if self.result is not None:
                return self.result
            return text + self.suffix
        finally:
            self.active -= 1


@pytest.fixture
def fake_transformer() -> FakeTransformer:
    return FakeTransformer()


@pytest.fixture
def scala_tree(tmp_path: Path) -> Path:
    """Create a small project with nested ``.scala`` files and distractors."""
    root = tmp_path / "project"
    (root / "core" / "deep" / "deeper").mkdir(parents=True)
    (root / "empty").mkdir()
    (root / "A.scala").write_text("object A\n", encoding="utf-8")
    (root / "core" / "B.scala").write_text("object B\n", encoding="utf-8")
    (root / "core" / "deep" / "C.scala").write_text("object C\n", encoding="utf-8")
    (root / "core" / "deep" / "deeper" / "D.scala").write_text(
        "object D\n", encoding="utf-8"
    )
    (root / "notes.txt").write_text("not scala\n", encoding="utf-8")
    (root / "core" / "B.scala.bak").write_text("backup\n", encoding="utf-8")
    return root


def snapshot(root: Path) -> dict[str, bytes]:
    """Return ``{relative path: bytes}`` for every file under ``root``."""
    return {
        str(p.relative_to(root)): p.read_bytes() for p in root.rglob("*") if p.is_file()
    }


def temp_artifacts(root: Path) -> list[Path]:
    return [p for p in root.rglob("*.tmp")]


@pytest.fixture
def make_transformer():
    """Factory fixture building ``FakeTransformer`` instances."""
    return FakeTransformer


@pytest.fixture(name="snapshot")
def snapshot_fixture():
    return snapshot


@pytest.fixture(name="temp_artifacts")
def temp_artifacts_fixture():
    return temp_artifacts
