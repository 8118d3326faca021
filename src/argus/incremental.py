"""Incremental reanalysis.

A single changed path is classified into impact tags; only the detectors
mapped to those tags are re-run, against a fresh file inventory and a copy
of the cached Analysis. The copy replaces the cache only when every
detector succeeded, otherwise the engine falls back to a full analysis.

Copy semantics (clone_analysis): top-level lists are duplicated, nested
sub-records (TechStack, CodePatterns, GitConventions, ...) are shared with
the cached Analysis. This is safe because re-run detectors always replace
their fields wholesale and overrides replace sub-records instead of editing
them. Any code that starts editing a shared sub-record in place must switch
this to a full deep copy.
"""

import dataclasses
import logging
from enum import Enum
from pathlib import Path, PurePosixPath

from argus.analyzers.base import SOURCE_EXTENSIONS, AnalysisCancelledError
from argus.analyzers.config_files import is_tooling_config
from argus.models.analysis import Analysis
from argus.pipeline import AnalysisPipeline, PipelineOptions
from argus.utils.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".argus.yaml"


class ImpactTag(str, Enum):
    """Facet group affected by a file change."""

    TECHSTACK = "techstack"
    STRUCTURE = "structure"
    COMMANDS = "commands"
    CONVENTIONS = "conventions"
    ENDPOINTS = "endpoints"
    CONFIG = "config"
    DEVELOPMENT = "development"
    README = "readme"
    GIT = "git"
    ALL = "all"


# Fixed order in which tags are expanded into detectors
TAG_DETECTORS: dict[ImpactTag, tuple[str, ...]] = {
    ImpactTag.TECHSTACK: ("techstack", "dependencies"),
    ImpactTag.STRUCTURE: ("structure", "monorepo", "architecture"),
    ImpactTag.COMMANDS: ("commands",),
    ImpactTag.CONVENTIONS: ("conventions", "patterns", "frameworks", "codepatterns"),
    ImpactTag.ENDPOINTS: ("endpoints",),
    ImpactTag.CONFIG: ("config_files",),
    ImpactTag.DEVELOPMENT: ("development", "cli"),
    ImpactTag.README: ("readme",),
    ImpactTag.GIT: ("git",),
}

TAG_DESCRIPTIONS = {
    ImpactTag.TECHSTACK: "tech stack and dependencies",
    ImpactTag.STRUCTURE: "project structure",
    ImpactTag.COMMANDS: "commands",
    ImpactTag.CONVENTIONS: "conventions and code patterns",
    ImpactTag.ENDPOINTS: "API endpoints",
    ImpactTag.CONFIG: "configuration files",
    ImpactTag.DEVELOPMENT: "development setup",
    ImpactTag.README: "README content",
    ImpactTag.GIT: "git conventions",
}

MANIFEST_FILES = frozenset(
    {
        "package.json",
        "go.mod",
        "go.sum",
        "requirements.txt",
        "requirements-dev.txt",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "Pipfile",
        "poetry.lock",
        "Cargo.toml",
        "Cargo.lock",
        "Gemfile",
        "Gemfile.lock",
        "pom.xml",
        "build.gradle",
        "build.gradle.kts",
        "composer.json",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
    }
)
MAKEFILES = frozenset({"Makefile", "makefile", "GNUmakefile"})
HOOK_DIRS = (".githooks", ".husky")
HOOK_FILES = frozenset({"lefthook.yml", ".lefthook.yml", ".pre-commit-config.yaml"})


def determine_impact(changed_path: str) -> set[ImpactTag]:
    """Classify a changed path into impact tags.

    Pure function of the path: basename, extension and directory segments.
    The file system is never consulted.
    """
    path = PurePosixPath(changed_path.replace("\\", "/"))
    name = path.name
    parts = path.parts

    if name == CONFIG_FILE_NAME:
        return {ImpactTag.ALL}
    if name in MANIFEST_FILES:
        return {ImpactTag.TECHSTACK, ImpactTag.DEVELOPMENT}
    if name in MAKEFILES:
        return {ImpactTag.COMMANDS, ImpactTag.DEVELOPMENT}
    if name.lower().startswith("readme"):
        return {ImpactTag.README}
    if any(d in parts for d in HOOK_DIRS) or name in HOOK_FILES:
        return {ImpactTag.DEVELOPMENT}
    if ".github" in parts:
        return {ImpactTag.CONFIG}
    if is_tooling_config(name):
        return {ImpactTag.CONFIG, ImpactTag.DEVELOPMENT}

    ext = path.suffix.lower()
    if ext in SOURCE_EXTENSIONS:
        return {ImpactTag.CONVENTIONS, ImpactTag.ENDPOINTS}
    if not ext:
        return {ImpactTag.STRUCTURE}
    return set()


def describe_impact(tags: set[ImpactTag]) -> str:
    """Human-readable summary of an impact set."""
    if ImpactTag.ALL in tags:
        return "full reanalysis"
    if not tags:
        return "no reanalysis needed"
    described = [TAG_DESCRIPTIONS[tag] for tag in TAG_DETECTORS if tag in tags]
    return "reanalyzing " + ", ".join(described)


def detectors_for(tags: set[ImpactTag]) -> list[str]:
    """Detector names mapped to the tags, in fixed tag order, deduplicated."""
    names: list[str] = []
    for tag, detectors in TAG_DETECTORS.items():
        if tag in tags:
            names.extend(d for d in detectors if d not in names)
    return names


def clone_analysis(analysis: Analysis) -> Analysis:
    """Copy an Analysis: top-level lists duplicated, sub-records shared."""
    clone = dataclasses.replace(analysis)
    for f in dataclasses.fields(clone):
        value = getattr(clone, f.name)
        if isinstance(value, list):
            setattr(clone, f.name, list(value))
    return clone


class IncrementalEngine:
    """Caches the last Analysis of one repository and updates it per change.

    The cache is guarded by a reader/writer lock: reanalysis holds only the
    read lock while copying and the write lock for the final swap.

    Attributes:
        root: Repository root
        options: Pipeline options used for every run
        last_detectors: Detectors run by the most recent call
    """

    def __init__(
        self,
        root: Path | str,
        options: PipelineOptions | None = None,
        pipeline: AnalysisPipeline | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.options = options or PipelineOptions()
        self.pipeline = pipeline or AnalysisPipeline()
        self.last_detectors: list[str] = []
        self._lock = ReadWriteLock()
        self._cached: Analysis | None = None

    @property
    def analysis(self) -> Analysis | None:
        """Current cached Analysis (read-only for callers)."""
        with self._lock.read_locked():
            return self._cached

    def invalidate(self) -> None:
        with self._lock.write_locked():
            self._cached = None

    def analyze_full(self) -> Analysis:
        """Run the full pipeline and replace the cache."""
        analysis = self.pipeline.run(self.root, self.options)
        self.last_detectors = sorted(self.pipeline.detector_names(self.options))
        with self._lock.write_locked():
            self._cached = analysis
        return analysis

    def analyze_incremental(self, changed_path: str) -> tuple[Analysis, set[ImpactTag]]:
        """Reanalyze the facets affected by one changed path.

        Returns:
            The new Analysis and the impact set actually applied

        Raises:
            AnalysisCancelledError: If cancelled
            PipelineError: If the fallback full analysis fails
        """
        with self._lock.read_locked():
            cached = self._cached
        if cached is None:
            logger.info("No cached analysis, running full analysis")
            return self.analyze_full(), {ImpactTag.ALL}

        impact = determine_impact(changed_path)
        logger.info("Change to %s: %s", changed_path, describe_impact(impact))
        if ImpactTag.ALL in impact:
            return self.analyze_full(), {ImpactTag.ALL}
        if not impact:
            self.last_detectors = []
            return cached, impact

        enabled = self.pipeline.detector_names(self.options)
        names = [name for name in detectors_for(impact) if name in enabled]

        try:
            ctx = self.pipeline.build_context(self.root, self.options)
            with self._lock.read_locked():
                working = clone_analysis(self._cached or cached)
            self.pipeline.execute(ctx, working, set(names), self.options)
        except AnalysisCancelledError:
            raise
        except Exception as e:
            logger.warning("Incremental reanalysis failed, running full analysis: %s", e)
            return self.analyze_full(), {ImpactTag.ALL}

        self.last_detectors = names
        with self._lock.write_locked():
            self._cached = working
        return working, impact
