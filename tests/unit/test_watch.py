"""Unit tests for watch-mode regeneration."""

from pathlib import Path

import pytest
from watchfiles import Change

from argus.incremental import IncrementalEngine
from argus.models.analysis import Analysis
from argus.pipeline import PipelineOptions
from argus.watch import ChangeFilter, Watcher, is_generated_file, is_relevant_change


class Recorder:
    """Collects regenerated analyses and report lines."""

    def __init__(self) -> None:
        self.analyses: list[Analysis] = []
        self.lines: list[str] = []

    def regenerate(self, analysis: Analysis) -> None:
        self.analyses.append(analysis)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def watcher(go_repo: Path, options: PipelineOptions, recorder: Recorder) -> Watcher:
    engine = IncrementalEngine(go_repo, options)
    watcher = Watcher(engine, recorder.regenerate, report=recorder.lines.append)
    watcher.initial()
    return watcher


class TestChangeRelevance:
    """Tests for is_relevant_change() and is_generated_file()."""

    @pytest.mark.parametrize(
        ("path", "relevant"),
        [
            ("main.go", True),
            ("web/src/App.tsx", True),
            ("go.mod", True),
            ("Makefile", True),
            (".argus.yaml", True),
            ("docs/guide.md", True),
            ("assets/logo.png", False),
            ("CLAUDE.md", False),
            ("services/api/CLAUDE.md", False),
            (".cursorrules", False),
            (".github/copilot-instructions.md", False),
            (".claude/rules/testing.md", False),
            (".continue/config.yaml", False),
            (".mcp.json", False),
        ],
    )
    def test_relevance(self, path: str, relevant: bool) -> None:
        assert is_relevant_change(path) is relevant

    def test_generated_files(self) -> None:
        assert is_generated_file(".claude/settings.json")
        assert not is_generated_file("docs/claude.md")

    def test_filter_applies_default_ignores(self, tmp_path: Path) -> None:
        change_filter = ChangeFilter(tmp_path)

        assert change_filter(Change.modified, str(tmp_path / "main.go"))
        assert not change_filter(Change.modified, str(tmp_path / "node_modules" / "x" / "index.js"))
        assert not change_filter(Change.modified, str(tmp_path / "CLAUDE.md"))
        assert not change_filter(Change.modified, str(tmp_path.parent / "elsewhere.go"))


class TestWatcher:
    """Tests for Watcher.handle_changes()."""

    def test_initial_runs_full_analysis(self, watcher: Watcher, recorder: Recorder) -> None:
        assert len(recorder.analyses) == 1
        assert watcher.engine.analysis is recorder.analyses[0]

    def test_source_change_regenerates_once_per_batch(
        self, watcher: Watcher, recorder: Recorder, go_repo: Path
    ) -> None:
        (go_repo / "handlers.go").write_text("package main\n")
        (go_repo / "routes.go").write_text("package main\n")

        regenerated = watcher.handle_changes(
            {
                (Change.added, str(go_repo / "handlers.go")),
                (Change.added, str(go_repo / "routes.go")),
            }
        )

        assert regenerated is True
        assert len(recorder.analyses) == 2
        assert recorder.lines == [
            "handlers.go -> updated: reanalyzing conventions and code patterns, API endpoints",
            "routes.go -> updated: reanalyzing conventions and code patterns, API endpoints",
        ]

    def test_generated_and_irrelevant_changes_are_ignored(
        self, watcher: Watcher, recorder: Recorder, go_repo: Path
    ) -> None:
        changes = {
            (Change.modified, str(go_repo / "CLAUDE.md")),
            (Change.added, str(go_repo / "logo.png")),
            (Change.modified, str(go_repo.parent / "other.go")),
        }

        assert watcher.handle_changes(changes) is False
        assert len(recorder.analyses) == 1
        assert recorder.lines == []

    def test_config_change_reloads_options(
        self, go_repo: Path, options: PipelineOptions, recorder: Recorder
    ) -> None:
        reloaded = PipelineOptions(skip_git=True, custom_conventions=["Wrap every error"])
        engine = IncrementalEngine(go_repo, options)
        watcher = Watcher(
            engine,
            recorder.regenerate,
            reload_options=lambda: reloaded,
            report=recorder.lines.append,
        )
        watcher.initial()
        (go_repo / ".argus.yaml").write_text("custom_conventions: [Wrap every error]\n")

        watcher.handle_changes({(Change.modified, str(go_repo / ".argus.yaml"))})

        assert engine.options is reloaded
        assert "Wrap every error" in [c.description for c in recorder.analyses[-1].conventions]
        assert recorder.lines == [".argus.yaml -> updated: full reanalysis"]

    def test_regeneration_errors_keep_watching(
        self, watcher: Watcher, recorder: Recorder, go_repo: Path
    ) -> None:
        def fail(analysis: Analysis) -> None:
            raise OSError("disk full")

        watcher.regenerate = fail
        assert watcher.handle_changes({(Change.modified, str(go_repo / "main.go"))}) is False

        watcher.regenerate = recorder.regenerate
        assert watcher.handle_changes({(Change.modified, str(go_repo / "main.go"))}) is True
        assert len(recorder.analyses) == 2
