"""Analysis pipeline orchestrator.

Runs the registered detectors over one file inventory in three stages:

1. TechStack and Structure (fatal on failure; everything else needs them)
2. Independent detectors, including the shared-append convention sources
3. Detectors that read earlier results (CLI, ProjectTools), in order

Stages 1 and 2 fan out on a thread pool. Detectors return their fields
instead of writing them, and results are applied after the stage barrier in
registration order, so the parallel scheduler and the serial reference
scheduler produce the same Analysis.
"""

import dataclasses
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from argus.analyzers import setup_default_detectors
from argus.analyzers.base import (
    AnalysisCancelledError,
    DetectionContext,
    Detector,
    DetectorResult,
    WriteDiscipline,
)
from argus.analyzers.registry import DetectorRegistry
from argus.analyzers.walker import FileWalker
from argus.models.analysis import (
    Analysis,
    Convention,
    ConventionCategory,
    Framework,
    Language,
    ReadmeContent,
)
from argus.models.repository import Repository

logger = logging.getLogger(__name__)

STAGES = (1, 2, 3)

# Shared-append sources, merged in this order
CONVENTION_SOURCES = ("conventions", "patterns", "frameworks")


class PipelineError(Exception):
    """A detector failed and the run was aborted.

    Attributes:
        stage: Stage the detector ran in
        detector: Failing detector name
        cause: Underlying exception
    """

    def __init__(self, stage: int, detector: str, cause: BaseException) -> None:
        self.stage = stage
        self.detector = detector
        self.cause = cause
        super().__init__(f"Stage {stage} failed in {detector}: {cause}")


@dataclass
class PipelineOptions:
    """Options for controlling pipeline execution.

    Attributes:
        parallel: Fan stages 1 and 2 out on a thread pool (False runs serially)
        max_workers: Thread pool size per stage (defaults to the stage size)
        cancel_event: Cancellation token shared with every detector
        ignore_patterns: Extra gitignore-style patterns for the walker
        custom_conventions: Free-form conventions appended as "custom"
        overrides: project_name, framework, language, description
        skip_git: Leave git conventions empty (tests and CI)
    """

    parallel: bool = True
    max_workers: int | None = None
    cancel_event: threading.Event | None = None
    ignore_patterns: list[str] = field(default_factory=list)
    custom_conventions: list[str] = field(default_factory=list)
    overrides: dict[str, str] = field(default_factory=dict)
    skip_git: bool = False


def merge_conventions(
    shared: dict[str, list[Convention]], custom: list[str]
) -> list[Convention]:
    """Concatenate shared-append results in the fixed order, then custom ones."""
    merged: list[Convention] = []
    for source in CONVENTION_SOURCES:
        merged.extend(shared.get(source, []))
    for source, conventions in shared.items():
        if source not in CONVENTION_SOURCES:
            merged.extend(conventions)
    merged.extend(
        Convention(category=ConventionCategory.CUSTOM, description=text) for text in custom
    )
    return merged


def apply_overrides(analysis: Analysis, overrides: dict[str, str]) -> None:
    """Apply config overrides.

    Sub-records may be shared with a cached Analysis, so they are replaced
    rather than mutated.
    """
    if name := overrides.get("project_name"):
        analysis.project_name = name

    if description := overrides.get("description"):
        readme = analysis.readme_content
        if readme is None:
            analysis.readme_content = ReadmeContent(description=description)
        elif readme.description != description:
            analysis.readme_content = dataclasses.replace(readme, description=description)

    stack = analysis.tech_stack
    frameworks, languages = stack.frameworks, stack.languages
    framework = overrides.get("framework")
    if framework and not stack.has_framework(framework):
        frameworks = [Framework(name=framework), *frameworks]
    language = overrides.get("language")
    if language and not stack.has_language(language):
        languages = [Language(name=language), *languages]
    if frameworks is not stack.frameworks or languages is not stack.languages:
        analysis.tech_stack = dataclasses.replace(stack, frameworks=frameworks, languages=languages)


class AnalysisPipeline:
    """Schedules detectors over a repository.

    The pipeline sequence:
    1. Validate the root and walk the file inventory
    2. Stage 1, stage 2, stage 3
    3. Merge conventions and apply config overrides
    """

    def __init__(self, registry: DetectorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else setup_default_detectors(DetectorRegistry())

    @property
    def registry(self) -> DetectorRegistry:
        return self._registry

    def detector_names(self, options: PipelineOptions) -> set[str]:
        names = set(self._registry.list_detectors())
        if options.skip_git:
            names.discard("git")
        return names

    def build_context(self, root: Path, options: PipelineOptions) -> DetectionContext:
        """Walk the inventory and wrap it in a detection context.

        Raises:
            WalkerError: If the root cannot be enumerated
        """
        files = FileWalker(root, extra_patterns=options.ignore_patterns).walk()
        return DetectionContext(root, files, options.cancel_event)

    def run(self, root: Path | str, options: PipelineOptions | None = None) -> Analysis:
        """Execute the full analysis pipeline.

        Args:
            root: Repository root
            options: Pipeline execution options

        Returns:
            A fresh Analysis

        Raises:
            ValueError: If the root does not exist or is not a directory
            PipelineError: If a detector failed
            AnalysisCancelledError: If cancelled
        """
        options = options or PipelineOptions()

        repository = Repository.from_path(root)
        for warning in repository.validate():
            logger.debug("Repository warning: %s", warning)

        logger.info("Starting analysis of %s", repository.name)
        ctx = self.build_context(repository.path, options)
        ctx.check_cancelled()

        analysis = Analysis(project_name=repository.name, root_path=str(repository.path))
        if name := options.overrides.get("project_name"):
            analysis.project_name = name

        try:
            self.execute(ctx, analysis, self.detector_names(options), options)
        except PipelineError as e:
            logger.error("Pipeline failed: %s", e)
            raise

        logger.info(
            "Analysis complete: %d languages, %d conventions, %d endpoints",
            len(analysis.tech_stack.languages),
            len(analysis.conventions),
            len(analysis.endpoints),
        )
        return analysis

    def execute(
        self,
        ctx: DetectionContext,
        analysis: Analysis,
        names: set[str],
        options: PipelineOptions,
    ) -> None:
        """Run the named detectors stage by stage into analysis.

        Used for full runs and for incremental partial re-runs. Conventions
        are rebuilt only when a convention source is among the names.
        """
        shared: dict[str, list[Convention]] = {}
        selected = self._registry.select(names)

        for stage in STAGES:
            detectors = [d for d in selected if d.stage == stage]
            if not detectors:
                continue
            ctx.check_cancelled()
            logger.info(
                "Stage %d: %s", stage, ", ".join(d.name for d in detectors)
            )
            if stage == 3 or not options.parallel:
                self._run_serial(stage, detectors, ctx, analysis, shared)
            else:
                self._run_parallel(stage, detectors, ctx, analysis, shared, options.max_workers)

        ctx.check_cancelled()
        if any(d.discipline == WriteDiscipline.SHARED_APPEND for d in selected):
            analysis.conventions = merge_conventions(shared, options.custom_conventions)
        apply_overrides(analysis, options.overrides)

    # =========================================================================
    # Schedulers
    # =========================================================================

    def _run_serial(
        self,
        stage: int,
        detectors: list[Detector],
        ctx: DetectionContext,
        analysis: Analysis,
        shared: dict[str, list[Convention]],
    ) -> None:
        for detector in detectors:
            try:
                result = detector.run(ctx, analysis)
            except AnalysisCancelledError:
                raise
            except Exception as e:
                raise PipelineError(stage, detector.name, e) from e
            self._apply(detector, result, analysis, shared)

    def _run_parallel(
        self,
        stage: int,
        detectors: list[Detector],
        ctx: DetectionContext,
        analysis: Analysis,
        shared: dict[str, list[Convention]],
        max_workers: int | None,
    ) -> None:
        results: list[DetectorResult | None] = [None] * len(detectors)
        errors: dict[int, BaseException] = {}

        workers = max(1, min(max_workers or len(detectors), len(detectors)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"argus-stage{stage}") as pool:
            futures = {pool.submit(d.run, ctx, analysis): i for i, d in enumerate(detectors)}
            for future in as_completed(futures):
                idx = futures[future]
                try:
                    results[idx] = future.result()
                except Exception as e:
                    errors[idx] = e

        if errors:
            for error in errors.values():
                if isinstance(error, AnalysisCancelledError):
                    raise error
            first = min(errors)
            raise PipelineError(stage, detectors[first].name, errors[first]) from errors[first]

        for detector, result in zip(detectors, results, strict=True):
            self._apply(detector, result or {}, analysis, shared)

    def _apply(
        self,
        detector: Detector,
        result: DetectorResult,
        analysis: Analysis,
        shared: dict[str, list[Convention]],
    ) -> None:
        if detector.discipline == WriteDiscipline.SHARED_APPEND:
            shared[detector.name] = list(result.get("conventions", []))
            return
        for name, value in result.items():
            setattr(analysis, name, value)


def analyze(root: Path | str, options: PipelineOptions | None = None) -> Analysis:
    """Run a full analysis with the default detectors."""
    return AnalysisPipeline().run(root, options)
