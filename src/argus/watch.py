"""Regenerate context files while a repository changes.

Watcher runs one full analysis, then listens for file system changes
through watchfiles. Each debounced batch of relevant changes goes through
the IncrementalEngine, and outputs are regenerated once per batch.

Changes to the generated files themselves are never relevant, otherwise
every regeneration would trigger the next one.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from pathlib import Path, PurePosixPath

from watchfiles import Change, DefaultFilter, watch

from argus.analyzers.base import AnalysisCancelledError
from argus.incremental import CONFIG_FILE_NAME, IncrementalEngine, describe_impact
from argus.models.analysis import Analysis
from argus.pipeline import PipelineError, PipelineOptions

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500

WATCH_EXTENSIONS = frozenset(
    {
        ".go", ".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".kt", ".rs", ".rb", ".cs",
        ".cpp", ".c", ".h", ".hpp", ".swift", ".php", ".vue", ".svelte",
        ".json", ".yaml", ".yml", ".toml", ".md", ".txt",
    }
)

CONFIG_NAMES = frozenset(
    {
        "package.json",
        "go.mod",
        "Cargo.toml",
        "pyproject.toml",
        "requirements.txt",
        "pom.xml",
        "build.gradle",
        "Makefile",
        CONFIG_FILE_NAME,
    }
)

GENERATED_NAMES = frozenset({"CLAUDE.md", ".cursorrules", "copilot-instructions.md", ".mcp.json"})
GENERATED_DIRS = (".claude", ".continue")


def is_generated_file(rel_path: str) -> bool:
    """Whether a root-relative path is one of argus's own outputs."""
    path = PurePosixPath(rel_path)
    if path.parts and path.parts[0] in GENERATED_DIRS:
        return True
    return path.name in GENERATED_NAMES


def is_relevant_change(rel_path: str) -> bool:
    """Whether a change to this path can alter the analysis."""
    if is_generated_file(rel_path):
        return False
    path = PurePosixPath(rel_path)
    return path.name in CONFIG_NAMES or path.suffix.lower() in WATCH_EXTENSIONS


class ChangeFilter(DefaultFilter):
    """watchfiles filter: the default ignores plus is_relevant_change()."""

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root = root

    def __call__(self, change: Change, path: str) -> bool:
        if not super().__call__(change, path):
            return False
        try:
            rel_path = Path(path).resolve().relative_to(self.root).as_posix()
        except ValueError:
            return False
        return is_relevant_change(rel_path)


class Watcher:
    """Keeps generated context files in step with the working tree.

    Args:
        engine: Incremental engine for the watched repository
        regenerate: Writes outputs for a fresh Analysis
        reload_options: Rebuilds pipeline options after .argus.yaml changes
        report: Receives one line per processed change
        debounce_ms: Quiet period before a batch is processed
    """

    def __init__(
        self,
        engine: IncrementalEngine,
        regenerate: Callable[[Analysis], None],
        reload_options: Callable[[], PipelineOptions] | None = None,
        report: Callable[[str], None] | None = None,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
    ) -> None:
        self.engine = engine
        self.regenerate = regenerate
        self.reload_options = reload_options
        self.report = report or logger.info
        self.debounce_ms = debounce_ms

    @property
    def root(self) -> Path:
        return self.engine.root

    def initial(self) -> Analysis:
        """Full analysis and regeneration before watching starts."""
        analysis = self.engine.analyze_full()
        self.regenerate(analysis)
        return analysis

    def handle_changes(self, changes: Iterable[tuple[Change, str]]) -> bool:
        """Process one debounced batch of changes.

        Args:
            changes: (change, absolute path) pairs as yielded by watchfiles

        Returns:
            True if outputs were regenerated
        """
        rel_paths: list[str] = []
        for _change, path in changes:
            try:
                rel_path = Path(path).resolve().relative_to(self.root).as_posix()
            except ValueError:
                continue
            if is_relevant_change(rel_path) and rel_path not in rel_paths:
                rel_paths.append(rel_path)

        analysis: Analysis | None = None
        for rel_path in sorted(rel_paths):
            if PurePosixPath(rel_path).name == CONFIG_FILE_NAME and self.reload_options:
                try:
                    self.engine.options = self.reload_options()
                except ValueError as e:
                    logger.error("Keeping previous configuration: %s", e)
            try:
                updated, impact = self.engine.analyze_incremental(rel_path)
            except (PipelineError, AnalysisCancelledError) as e:
                logger.error("Reanalysis after %s failed: %s", rel_path, e)
                continue
            if not impact:
                continue
            analysis = updated
            self.report(f"{PurePosixPath(rel_path).name} -> updated: {describe_impact(impact)}")

        if analysis is None:
            return False
        try:
            self.regenerate(analysis)
        except (ValueError, OSError) as e:
            logger.error("Failed to regenerate outputs: %s", e)
            return False
        return True

    def run(self, stop_event: threading.Event | None = None) -> None:
        """Analyze once, then process changes until stop_event is set.

        Raises:
            PipelineError: If the initial analysis fails
        """
        self.initial()
        logger.info("Watching %s for changes", self.root)
        for changes in watch(
            self.root,
            watch_filter=ChangeFilter(self.root),
            debounce=self.debounce_ms,
            stop_event=stop_event,
        ):
            self.handle_changes(changes)
