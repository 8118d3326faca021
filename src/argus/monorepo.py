"""Per-workspace analysis of monorepos.

Workspace directories are resolved from the detected MonorepoInfo (glob
patterns expanded against the root, plus declared package sub-directories)
and the full pipeline runs once per workspace.
"""

import dataclasses
import json
import logging
import threading
import tomllib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from argus.analyzers.base import AnalysisCancelledError
from argus.models.analysis import Analysis, MonorepoInfo
from argus.pipeline import AnalysisPipeline, PipelineOptions

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 4


@dataclass
class WorkspaceResult:
    """Outcome of analyzing one workspace.

    Attributes:
        path: Root-relative workspace path
        name: Manifest name, or the directory basename
        analysis: Analysis on success
        error: Failure (including cancellation) otherwise
    """

    path: str
    name: str
    analysis: Analysis | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.analysis is not None


def resolve_workspaces(root: Path | str, info: MonorepoInfo) -> list[str]:
    """Workspace directories relative to root, deduplicated, in discovery order.

    Glob patterns are expanded first (directories only, sorted per pattern),
    then the sub-packages of each declared package directory.
    """
    root = Path(root)
    resolved: list[str] = []

    def add(rel: str) -> None:
        rel = rel.strip("/")
        if rel and rel not in resolved and (root / rel).is_dir():
            resolved.append(rel)

    for pattern in info.workspace_paths:
        pattern = pattern.strip().rstrip("/")
        if not pattern or pattern.startswith("!"):
            continue
        if not any(ch in pattern for ch in "*?["):
            add(pattern)
            continue
        matches = sorted(p for p in root.glob(pattern) if p.is_dir())
        for match in matches:
            add(match.relative_to(root).as_posix())

    for package in info.packages:
        for sub in package.sub_packages:
            add(f"{package.path}/{sub}")

    return resolved


def workspace_name(directory: Path) -> str:
    """Name from package.json, pyproject.toml or Cargo.toml; else the basename."""
    try:
        data = json.loads((directory / "package.json").read_text(encoding="utf-8"))
        if isinstance(data, dict) and isinstance(data.get("name"), str) and data["name"]:
            return data["name"]
    except (OSError, json.JSONDecodeError):
        pass

    for manifest, table in (("pyproject.toml", "project"), ("Cargo.toml", "package")):
        try:
            data = tomllib.loads((directory / manifest).read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError):
            continue
        name = data.get(table, {}).get("name") if isinstance(data.get(table), dict) else None
        if isinstance(name, str) and name:
            return name

    return directory.name


class MonorepoAnalyzer:
    """Runs the pipeline once per workspace of a monorepo."""

    def __init__(
        self,
        root: Path | str,
        options: PipelineOptions | None = None,
        pipeline: AnalysisPipeline | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.options = options or PipelineOptions()
        self.pipeline = pipeline or AnalysisPipeline()

    def analyze(
        self,
        info: MonorepoInfo,
        parallel: bool = True,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        cancel_event: threading.Event | None = None,
    ) -> list[WorkspaceResult]:
        """Analyze every resolved workspace.

        Args:
            info: Monorepo layout from the root analysis
            parallel: Run workspaces concurrently
            max_concurrency: Upper bound on concurrent workspace runs
            cancel_event: Cancellation token; workspaces not yet started
                report AnalysisCancelledError

        Returns:
            One result per workspace, in workspace order

        Raises:
            ValueError: If max_concurrency is below 1
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

        paths = resolve_workspaces(self.root, info)
        results = [WorkspaceResult(path=p, name=workspace_name(self.root / p)) for p in paths]
        logger.info("Analyzing %d workspaces", len(results))

        options = dataclasses.replace(
            self.options, cancel_event=cancel_event or self.options.cancel_event
        )

        def run_one(result: WorkspaceResult) -> None:
            if options.cancel_event is not None and options.cancel_event.is_set():
                result.error = AnalysisCancelledError()
                return
            try:
                result.analysis = self.pipeline.run(self.root / result.path, options)
            except Exception as e:
                logger.warning("Workspace %s failed: %s", result.path, e)
                result.error = e

        if parallel and len(results) > 1:
            with ThreadPoolExecutor(max_workers=max_concurrency, thread_name_prefix="argus-ws") as pool:
                list(pool.map(run_one, results))
        else:
            for result in results:
                run_one(result)

        return results
