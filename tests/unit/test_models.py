"""Unit tests for data models."""

import json
import threading
from pathlib import Path

import pytest

from argus.models import (
    Analysis,
    Convention,
    ConventionCategory,
    FileEntry,
    Framework,
    Language,
    Repository,
    TechStack,
)
from argus.utils.rwlock import ReadWriteLock


class TestRepository:
    """Tests for Repository model."""

    def test_from_path_uses_basename(self, tmp_path: Path) -> None:
        """Test that the name defaults to the directory basename."""
        target = tmp_path / "shop"
        target.mkdir()

        repo = Repository.from_path(target)

        assert repo.name == "shop"
        assert repo.path == target.resolve()

    def test_validate_warns_without_git(self, tmp_path: Path) -> None:
        """Test that a directory without .git only warns."""
        warnings = Repository.from_path(tmp_path).validate()

        assert len(warnings) == 1
        assert "Not a git repository" in warnings[0]

    def test_validate_missing_path(self, tmp_path: Path) -> None:
        """Test that a missing root raises ValueError."""
        with pytest.raises(ValueError, match="does not exist"):
            Repository.from_path(tmp_path / "missing").validate()

    def test_validate_file(self, tmp_path: Path) -> None:
        """Test that a file root raises ValueError."""
        target = tmp_path / "file.txt"
        target.write_text("x")

        with pytest.raises(ValueError, match="not a directory"):
            Repository.from_path(target).validate()


class TestFileEntry:
    """Tests for FileEntry."""

    def test_for_file(self) -> None:
        entry = FileEntry.for_file("src/components/Button.TSX", size=12)

        assert entry.name == "Button.TSX"
        assert entry.ext == ".tsx"
        assert entry.parent == "src/components"
        assert entry.parts == ("src", "components", "Button.TSX")

    def test_for_dir_at_root(self) -> None:
        entry = FileEntry.for_dir("cmd")

        assert entry.is_dir is True
        assert entry.ext == ""
        assert entry.parent == ""


class TestAnalysis:
    """Tests for the Analysis aggregate."""

    def test_to_dict_is_json_serializable(self, sample_analysis: Analysis) -> None:
        data = sample_analysis.to_dict()

        assert json.loads(json.dumps(data)) == data
        assert data["conventions"][-1] == {
            "category": "custom",
            "description": "Always wrap errors with context",
            "example": "",
        }
        assert data["tech_stack"]["frameworks"][0] == {
            "name": "Gin",
            "version": "v1.9.1",
            "category": "backend",
        }
        assert data["ai_enrichment"] is None

    def test_reset_field(self, sample_analysis: Analysis) -> None:
        sample_analysis.reset_field("commands")
        sample_analysis.reset_field("architecture_info")
        sample_analysis.reset_field("tech_stack")

        assert sample_analysis.commands == []
        assert sample_analysis.architecture_info is None
        assert sample_analysis.tech_stack == TechStack()

    def test_reset_unknown_field(self, sample_analysis: Analysis) -> None:
        with pytest.raises(KeyError, match="Unknown analysis field"):
            sample_analysis.reset_field("nonsense")

    def test_reset_required_field(self, sample_analysis: Analysis) -> None:
        with pytest.raises(KeyError, match="cannot be reset"):
            sample_analysis.reset_field("project_name")

    def test_tech_stack_helpers(self) -> None:
        stack = TechStack(
            languages=[Language("Go", "1.21", 70.0), Language("Python", "", 30.0)],
            frameworks=[Framework("Gin")],
        )

        assert stack.primary_language == "Go"
        assert stack.has_language("Python")
        assert stack.has_framework("Gin")
        assert not stack.has_framework("Echo")
        assert TechStack().primary_language == ""

    def test_convention_equality(self) -> None:
        assert Convention(ConventionCategory.NAMING, "a") == Convention(ConventionCategory.NAMING, "a")
        assert Convention(ConventionCategory.NAMING, "a") != Convention(ConventionCategory.CUSTOM, "a")


class TestReadWriteLock:
    """Tests for the reader/writer lock guarding the incremental cache."""

    def test_readers_share_the_lock(self) -> None:
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=2)
        passed: list[int] = []

        def reader() -> None:
            with lock.read_locked():
                passed.append(inside.wait())

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert sorted(passed) == [0, 1]

    def test_writer_waits_for_reader(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []
        writer_started = threading.Event()

        def writer() -> None:
            writer_started.set()
            with lock.write_locked():
                order.append("write")

        with lock.read_locked():
            thread = threading.Thread(target=writer)
            thread.start()
            writer_started.wait(timeout=2)
            order.append("read")
        thread.join(timeout=5)

        assert order == ["read", "write"]
