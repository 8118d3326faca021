"""Unit tests for per-workspace monorepo analysis."""

import json
import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from argus.analyzers.base import AnalysisCancelledError
from argus.models.analysis import MonorepoInfo, WorkspacePackage
from argus.monorepo import MonorepoAnalyzer, resolve_workspaces, workspace_name
from argus.pipeline import PipelineOptions

RepoFactory = Callable[[dict[str, str]], Path]


@pytest.fixture
def four_workspaces(make_repo: RepoFactory) -> Path:
    return make_repo(
        {
            "packages/a/index.js": "",
            "packages/b/index.js": "",
            "apps/web/index.js": "",
            "apps/api/main.go": "package main\n",
            "apps/README.md": "# Apps\n",
        }
    )


# =============================================================================
# Workspace resolution
# =============================================================================


class TestResolveWorkspaces:
    """Tests for resolve_workspaces()."""

    def test_globs_expand_to_directories(self, four_workspaces: Path) -> None:
        info = MonorepoInfo(is_monorepo=True, workspace_paths=["packages/*", "apps/*"])

        paths = resolve_workspaces(four_workspaces, info)

        assert paths == ["packages/a", "packages/b", "apps/api", "apps/web"]

    def test_package_sub_directories_are_deduplicated(self, four_workspaces: Path) -> None:
        info = MonorepoInfo(
            is_monorepo=True,
            workspace_paths=["packages/*"],
            packages=[
                WorkspacePackage(name="packages", path="packages", sub_packages=["a", "b"]),
                WorkspacePackage(name="apps", path="apps", sub_packages=["api", "web"]),
            ],
        )

        paths = resolve_workspaces(four_workspaces, info)

        assert paths == ["packages/a", "packages/b", "apps/api", "apps/web"]
        assert len(paths) == len(set(paths))

    def test_literal_and_negated_patterns(self, four_workspaces: Path) -> None:
        info = MonorepoInfo(workspace_paths=["apps/web", "!packages/b", "missing/dir"])

        assert resolve_workspaces(four_workspaces, info) == ["apps/web"]

    def test_nothing_declared(self, four_workspaces: Path) -> None:
        assert resolve_workspaces(four_workspaces, MonorepoInfo()) == []


class TestWorkspaceName:
    """Tests for workspace_name()."""

    def test_package_json_name(self, tmp_path: Path) -> None:
        (tmp_path / "package.json").write_text(json.dumps({"name": "@mono/ui"}))

        assert workspace_name(tmp_path) == "@mono/ui"

    def test_pyproject_name(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "billing"\n')

        assert workspace_name(tmp_path) == "billing"

    def test_cargo_name(self, tmp_path: Path) -> None:
        (tmp_path / "Cargo.toml").write_text('[package]\nname = "engine"\nversion = "0.1.0"\n')

        assert workspace_name(tmp_path) == "engine"

    def test_falls_back_to_basename(self, tmp_path: Path) -> None:
        target = tmp_path / "worker"
        target.mkdir()
        (target / "package.json").write_text("{not json")

        assert workspace_name(target) == "worker"


# =============================================================================
# MonorepoAnalyzer
# =============================================================================


class TestMonorepoAnalyzer:
    """Tests for MonorepoAnalyzer.analyze()."""

    @pytest.fixture
    def info(self) -> MonorepoInfo:
        return MonorepoInfo(is_monorepo=True, workspace_paths=["apps/*", "packages/*"])

    def test_every_workspace_is_analyzed(
        self, monorepo_repo: Path, options: PipelineOptions, info: MonorepoInfo
    ) -> None:
        results = MonorepoAnalyzer(monorepo_repo, options).analyze(info)

        assert [r.path for r in results] == ["apps/admin", "apps/web", "packages/ui", "packages/utils"]
        assert [r.name for r in results] == ["@mono/admin", "@mono/web", "@mono/ui", "@mono/utils"]
        assert all(r.ok for r in results)
        assert results[0].analysis is not None
        assert results[0].analysis.project_name == "admin"

    def test_serial_matches_parallel(
        self, monorepo_repo: Path, options: PipelineOptions, info: MonorepoInfo
    ) -> None:
        analyzer = MonorepoAnalyzer(monorepo_repo, options)

        parallel = analyzer.analyze(info, parallel=True, max_concurrency=2)
        serial = analyzer.analyze(info, parallel=False)

        assert [r.analysis.to_dict() for r in parallel if r.analysis] == [
            r.analysis.to_dict() for r in serial if r.analysis
        ]

    def test_invalid_concurrency(
        self, monorepo_repo: Path, options: PipelineOptions, info: MonorepoInfo
    ) -> None:
        with pytest.raises(ValueError, match="at least 1"):
            MonorepoAnalyzer(monorepo_repo, options).analyze(info, max_concurrency=0)

    def test_cancelled_workspaces_report_cancellation(
        self, monorepo_repo: Path, options: PipelineOptions, info: MonorepoInfo
    ) -> None:
        event = threading.Event()
        event.set()

        results = MonorepoAnalyzer(monorepo_repo, options).analyze(info, cancel_event=event)

        assert len(results) == 4
        assert all(isinstance(r.error, AnalysisCancelledError) for r in results)
        assert not any(r.ok for r in results)
