"""Tests for the DocRewriter entry points: single file, whole tree and README."""

import asyncio
from pathlib import Path

import pytest

from src.config import README_FILE_SEPARATOR
from src.exceptions import DirectoryError, InvalidPathError
from src.pipeline.doc_rewriter.models import Committed, RolledBack
from src.pipeline.doc_rewriter.processor import DocRewriter
from src.pipeline.doc_rewriter.reporter import OutcomeReporter


@pytest.mark.asyncio
async def test_process_all_reports_only_matching_files(tmp_path: Path, fake_transformer):
    (tmp_path / "X.scala").write_text("object X\n", encoding="utf-8")
    (tmp_path / "Y.txt").write_text("plain\n", encoding="utf-8")

    report = await DocRewriter(fake_transformer).process_all(tmp_path)

    assert report.locations == frozenset({tmp_path / "X.scala"})
    assert report.get(tmp_path / "X.scala").committed
    assert (tmp_path / "Y.txt").read_text(encoding="utf-8") == "plain\n"


@pytest.mark.asyncio
async def test_process_one_rejects_wrong_suffix_without_io(monkeypatch, tmp_path: Path, fake_transformer):
    def boom(*args, **kwargs):
        raise AssertionError("filesystem must not be touched")

    monkeypatch.setattr(Path, "open", boom)
    with pytest.raises(InvalidPathError):
        await DocRewriter(fake_transformer).process_one(tmp_path / "Y.txt")
    assert fake_transformer.calls == []


@pytest.mark.asyncio
async def test_process_one_failed_transform_keeps_bytes(tmp_path: Path, make_transformer):
    target = tmp_path / "A.scala"
    original = b"object A {\r\n  def f = 1\r\n}\r\n"
    target.write_bytes(original)

    outcome = await DocRewriter(make_transformer(fail_on=("object",))).process_one(target)

    assert isinstance(outcome, RolledBack)
    assert "injected failure" in outcome.reason
    assert target.read_bytes() == original


@pytest.mark.asyncio
async def test_process_all_on_non_directory(tmp_path: Path, fake_transformer):
    reporter = OutcomeReporter()
    with pytest.raises(DirectoryError):
        await DocRewriter(fake_transformer).process_all(tmp_path / "missing", reporter)
    assert reporter.report().total == 0
    assert fake_transformer.calls == []


@pytest.mark.asyncio
async def test_process_one_commits(tmp_path: Path, fake_transformer, temp_artifacts):
    target = tmp_path / "A.scala"
    target.write_text("object A\n", encoding="utf-8")
    reporter = OutcomeReporter()

    outcome = await DocRewriter(fake_transformer).process_one(str(target), reporter)

    assert outcome == Committed()
    assert target.read_text(encoding="utf-8") == "object A\n\n// documented"
    assert reporter.report().committed == 1
    assert temp_artifacts(tmp_path) == []


@pytest.mark.asyncio
async def test_process_one_missing_file_is_rolled_back(tmp_path: Path, fake_transformer):
    reporter = OutcomeReporter()
    outcome = await DocRewriter(fake_transformer).process_one(tmp_path / "Gone.scala", reporter)
    assert isinstance(outcome, RolledBack)
    assert reporter.report().failed == 1
    assert not (tmp_path / "Gone.scala").exists()


@pytest.mark.asyncio
async def test_process_one_honours_custom_suffix(tmp_path: Path, fake_transformer):
    target = tmp_path / "tool.py"
    target.write_text("x = 1\n", encoding="utf-8")
    rewriter = DocRewriter(fake_transformer, suffix=".py")
    assert await rewriter.process_one(target) == Committed()
    with pytest.raises(InvalidPathError):
        await rewriter.process_one(tmp_path / "A.scala")


@pytest.mark.asyncio
async def test_process_all_mixed_outcomes(scala_tree: Path, make_transformer, snapshot):
    before = snapshot(scala_tree)
    transformer = make_transformer(fail_on=("object C",), delay=0.01)

    report = await DocRewriter(transformer, max_concurrency=2).process_all(scala_tree)

    assert report.total == 4
    assert report.failed == 1
    assert transformer.peak <= 2
    after = snapshot(scala_tree)
    assert after["core/deep/C.scala"] == before["core/deep/C.scala"]
    assert after["notes.txt"] == before["notes.txt"]
    assert after["core/B.scala.bak"] == before["core/B.scala.bak"]


@pytest.mark.asyncio
async def test_process_one_respects_gate_shared_with_process_all(scala_tree: Path, make_transformer):
    transformer = make_transformer(delay=0.02)
    rewriter = DocRewriter(transformer, max_concurrency=2)
    extra = scala_tree / "Extra.scala"
    extra.write_text("object Extra\n", encoding="utf-8")

    await asyncio.gather(
        rewriter.process_all(scala_tree / "core"),
        rewriter.process_one(extra),
        rewriter.process_one(scala_tree / "A.scala"),
    )

    assert transformer.peak <= 2
    assert rewriter.pipeline.in_flight == 0


@pytest.mark.asyncio
async def test_generate_readme_in_submission_order(tmp_path: Path, make_transformer):
    root = tmp_path / "proj"
    root.mkdir()
    for name in ("A", "B", "C"):
        (root / f"{name}.scala").write_text(f"object {name}\n" * 3, encoding="utf-8")
    delays = {"A": 0.06, "B": 0.03, "C": 0.0}

    class Summarizer:
        async def transform(self, text: str) -> str:
            first = text.replace(README_FILE_SEPARATOR, "").split()[1]
            await asyncio.sleep(delays[first])
            return f"  summary of {first}  \n"

    output = tmp_path / "README.md"
    rewriter = DocRewriter(make_transformer(), Summarizer(), max_concurrency=3)
    outcome = await rewriter.generate_readme(root, output, fragment_chars=50)

    assert outcome == Committed()
    assert output.read_text(encoding="utf-8") == (
        "summary of A\n\nsummary of B\n\nsummary of C\n"
    )


@pytest.mark.asyncio
async def test_generate_readme_single_fragment(scala_tree: Path, tmp_path: Path, make_transformer):
    summarizer = make_transformer(result="# Project\n")
    output = tmp_path / "README.md"

    outcome = await DocRewriter(make_transformer(), summarizer).generate_readme(scala_tree, output)

    assert outcome == Committed()
    assert output.read_text(encoding="utf-8") == "# Project\n"
    assert len(summarizer.calls) == 1
    combined = summarizer.calls[0]
    assert combined.index("object A") < combined.index("object B") < combined.index("object C")
    assert combined.count(README_FILE_SEPARATOR) == 3


@pytest.mark.asyncio
async def test_generate_readme_failure_keeps_existing_readme(scala_tree: Path, tmp_path: Path, make_transformer):
    output = tmp_path / "README.md"
    output.write_text("old readme\n", encoding="utf-8")
    summarizer = make_transformer(fail_on=("object",))

    outcome = await DocRewriter(make_transformer(), summarizer).generate_readme(scala_tree, output)

    assert isinstance(outcome, RolledBack)
    assert output.read_text(encoding="utf-8") == "old readme\n"


@pytest.mark.asyncio
async def test_generate_readme_without_sources(tmp_path: Path, fake_transformer):
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
    output = tmp_path / "README.md"
    outcome = await DocRewriter(fake_transformer).generate_readme(tmp_path, output)
    assert isinstance(outcome, RolledBack)
    assert not output.exists()
    assert fake_transformer.calls == []


@pytest.mark.asyncio
async def test_generate_readme_rejects_non_directory(tmp_path: Path, fake_transformer):
    with pytest.raises(DirectoryError):
        await DocRewriter(fake_transformer).generate_readme(tmp_path / "nope", tmp_path / "R.md")


@pytest.mark.asyncio
async def test_process_one_keeps_crlf_line_endings(tmp_path: Path, make_transformer):
    target = tmp_path / "Win.scala"
    target.write_bytes(b"object Win {\r\n}\r\n")

    outcome = await DocRewriter(make_transformer(suffix="// doc\r\n")).process_one(target)

    assert outcome == Committed()
    assert target.read_bytes() == b"object Win {\r\n}\r\n// doc\r\n"


@pytest.mark.asyncio
async def test_generate_readme_with_only_empty_sources(tmp_path: Path, fake_transformer):
    root = tmp_path / "proj"
    root.mkdir()
    (root / "A.scala").write_bytes(b"")
    (root / "B.scala").write_text("  \n", encoding="utf-8")
    output = tmp_path / "README.md"
    output.write_text("old readme\n", encoding="utf-8")

    outcome = await DocRewriter(fake_transformer).generate_readme(root, output)

    assert isinstance(outcome, RolledBack)
    assert "no content" in outcome.reason
    assert fake_transformer.calls == []
    assert output.read_text(encoding="utf-8") == "old readme\n"


@pytest.mark.asyncio
async def test_process_one_rejects_wrong_suffix_while_gate_is_full(tmp_path: Path, make_transformer):
    rewriter = DocRewriter(make_transformer(), max_concurrency=1)
    async with rewriter.pipeline.admission():
        with pytest.raises(InvalidPathError):
            await asyncio.wait_for(rewriter.process_one(tmp_path / "Y.txt"), timeout=1)


@pytest.mark.asyncio
async def test_readme_and_rewrites_share_one_ceiling(scala_tree: Path, tmp_path: Path, make_transformer):
    documenter = make_transformer(delay=0.02)
    summarizer = make_transformer(result="# Project\n", delay=0.02)
    active_total = []

    class Tracking:
        def __init__(self, inner):
            self.inner = inner

        async def transform(self, text):
            active_total.append(documenter.active + summarizer.active + 1)
            return await self.inner.transform(text)

    rewriter = DocRewriter(Tracking(documenter), Tracking(summarizer), max_concurrency=2)
    await asyncio.gather(
        rewriter.process_all(scala_tree),
        rewriter.generate_readme(scala_tree, tmp_path / "README.md", fragment_chars=20),
    )

    assert max(active_total) <= 2
    assert rewriter.summary_pipeline.in_flight == 0
