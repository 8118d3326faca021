"""Unit tests for the analysis pipeline."""

import threading
from pathlib import Path

import pytest

from argus.analyzers import setup_default_detectors
from argus.analyzers.base import (
    AnalysisCancelledError,
    DetectionContext,
    Detector,
    DetectorError,
    DetectorResult,
    WriteDiscipline,
)
from argus.analyzers.registry import DetectorRegistry
from argus.analyzers.structure import StructureDetector
from argus.analyzers.techstack import TechStackDetector
from argus.models.analysis import (
    Analysis,
    Convention,
    ConventionCategory,
    Framework,
    Language,
    ReadmeContent,
    TechStack,
)
from argus.pipeline import (
    AnalysisPipeline,
    PipelineError,
    PipelineOptions,
    apply_overrides,
    merge_conventions,
)

# =============================================================================
# Test detectors
# =============================================================================


class ExplodingStageOne(Detector):
    name = "exploding"
    fields = ("tech_stack",)
    stage = 1
    fatal = True

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        raise DetectorError(self.name, "manifest unreadable")


class SoftFailing(Detector):
    name = "soft"
    fields = ("commands",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        raise DetectorError(self.name, "bad Makefile")


class Trespassing(Detector):
    name = "trespassing"
    fields = ("commands",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        return {"endpoints": []}


class ReadsStack(Detector):
    """Stage 3 detector that records what stage 1 produced."""

    name = "reads_stack"
    discipline = WriteDiscipline.DEPENDENT_READ
    fields = ("project_tools",)
    stage = 3
    seen: list[str] = []

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        ReadsStack.seen = [lang.name for lang in analysis.tech_stack.languages]
        return {"project_tools": []}


def registry_with(*detectors: type[Detector]) -> DetectorRegistry:
    registry = DetectorRegistry()
    for detector in detectors:
        registry.register(detector)
    return registry


# =============================================================================
# Options and helpers
# =============================================================================


class TestPipelineOptions:
    """Tests for PipelineOptions."""

    def test_default_options(self) -> None:
        options = PipelineOptions()

        assert options.parallel is True
        assert options.max_workers is None
        assert options.cancel_event is None
        assert options.ignore_patterns == []
        assert options.custom_conventions == []
        assert options.overrides == {}
        assert options.skip_git is False


class TestMergeConventions:
    """Tests for the fixed convention merge order."""

    def test_sources_then_custom(self) -> None:
        shared = {
            "frameworks": [Convention(ConventionCategory.FRAMEWORK, "c")],
            "conventions": [Convention(ConventionCategory.NAMING, "a")],
            "patterns": [Convention(ConventionCategory.LOGGING, "b")],
        }

        merged = merge_conventions(shared, ["Always wrap errors"])

        assert [c.description for c in merged] == ["a", "b", "c", "Always wrap errors"]
        assert merged[-1].category == ConventionCategory.CUSTOM

    def test_duplicates_are_kept(self) -> None:
        shared = {
            "conventions": [Convention(ConventionCategory.NAMING, "same")],
            "patterns": [Convention(ConventionCategory.NAMING, "same")],
        }

        assert len(merge_conventions(shared, [])) == 2


class TestApplyOverrides:
    """Tests for config overrides."""

    def test_project_name_and_description(self) -> None:
        analysis = Analysis(project_name="dir", root_path="/x")

        apply_overrides(analysis, {"project_name": "shop", "description": "A storefront"})

        assert analysis.project_name == "shop"
        assert analysis.readme_content == ReadmeContent(description="A storefront")

    def test_framework_and_language_are_prepended(self) -> None:
        stack = TechStack(languages=[Language(name="Go")], frameworks=[Framework(name="Gin")])
        analysis = Analysis(project_name="x", root_path="/x", tech_stack=stack)

        apply_overrides(analysis, {"framework": "Echo", "language": "Go"})

        assert [fw.name for fw in analysis.tech_stack.frameworks] == ["Echo", "Gin"]
        assert [lang.name for lang in analysis.tech_stack.languages] == ["Go"]

    def test_shared_sub_records_are_replaced_not_edited(self) -> None:
        stack = TechStack(frameworks=[Framework(name="Gin")])
        readme = ReadmeContent(description="old")
        analysis = Analysis(project_name="x", root_path="/x", tech_stack=stack, readme_content=readme)

        apply_overrides(analysis, {"framework": "Echo", "description": "new"})

        assert analysis.tech_stack is not stack
        assert [fw.name for fw in stack.frameworks] == ["Gin"]
        assert readme.description == "old"
        assert analysis.readme_content.description == "new"


# =============================================================================
# Pipeline
# =============================================================================


class TestAnalysisPipeline:
    """Tests for AnalysisPipeline.run()."""

    @pytest.fixture
    def pipeline(self) -> AnalysisPipeline:
        return AnalysisPipeline()

    def test_go_module(self, pipeline: AnalysisPipeline, go_repo: Path, options: PipelineOptions) -> None:
        analysis = pipeline.run(go_repo, options)

        assert analysis.project_name == "repo"
        assert analysis.root_path == str(go_repo.resolve())
        assert [(lang.name, lang.version, lang.percentage) for lang in analysis.tech_stack.languages] == [
            ("Go", "1.21", 100.0)
        ]
        assert analysis.architecture_info is not None
        assert analysis.architecture_info.entry_point == "main.go"
        assert analysis.git_conventions is None

    def test_serial_and_parallel_agree(
        self,
        pipeline: AnalysisPipeline,
        node_repo: Path,
        options: PipelineOptions,
        serial_options: PipelineOptions,
    ) -> None:
        parallel = pipeline.run(node_repo, options)
        serial = pipeline.run(node_repo, serial_options)

        assert parallel.to_dict() == serial.to_dict()

    def test_repeated_runs_are_identical(
        self, pipeline: AnalysisPipeline, node_repo: Path, options: PipelineOptions
    ) -> None:
        assert pipeline.run(node_repo, options).to_dict() == pipeline.run(node_repo, options).to_dict()

    def test_custom_conventions_come_last(
        self, pipeline: AnalysisPipeline, go_repo: Path
    ) -> None:
        options = PipelineOptions(skip_git=True, custom_conventions=["Use table-driven tests"])

        analysis = pipeline.run(go_repo, options)

        assert analysis.conventions[-1] == Convention(
            ConventionCategory.CUSTOM, "Use table-driven tests"
        )

    def test_project_name_override(self, pipeline: AnalysisPipeline, go_repo: Path) -> None:
        options = PipelineOptions(skip_git=True, overrides={"project_name": "billing"})

        assert pipeline.run(go_repo, options).project_name == "billing"

    def test_missing_root_raises_value_error(self, pipeline: AnalysisPipeline, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="does not exist"):
            pipeline.run(tmp_path / "missing")

    def test_file_root_raises_value_error(self, pipeline: AnalysisPipeline, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("x")

        with pytest.raises(ValueError, match="not a directory"):
            pipeline.run(target)

    def test_empty_repository(self, pipeline: AnalysisPipeline, tmp_path: Path, options: PipelineOptions) -> None:
        analysis = pipeline.run(tmp_path, options)

        assert analysis.tech_stack.languages == []
        assert analysis.conventions == []
        assert analysis.endpoints == []
        assert analysis.architecture_info is None

    def test_cancelled_before_start(self, pipeline: AnalysisPipeline, go_repo: Path) -> None:
        event = threading.Event()
        event.set()

        with pytest.raises(AnalysisCancelledError):
            pipeline.run(go_repo, PipelineOptions(skip_git=True, cancel_event=event))

    def test_skip_git_drops_git_detector(self, pipeline: AnalysisPipeline, options: PipelineOptions) -> None:
        assert "git" not in pipeline.detector_names(options)
        assert "git" in pipeline.detector_names(PipelineOptions())


class TestPipelineErrors:
    """Tests for the detector error policy."""

    def test_fatal_stage_one_failure_aborts(self, go_repo: Path, options: PipelineOptions) -> None:
        pipeline = AnalysisPipeline(registry_with(ExplodingStageOne, ReadsStack))
        ReadsStack.seen = ["untouched"]

        with pytest.raises(PipelineError) as exc_info:
            pipeline.run(go_repo, options)

        assert exc_info.value.stage == 1
        assert exc_info.value.detector == "exploding"
        assert ReadsStack.seen == ["untouched"]

    def test_soft_failure_yields_empty_facet(self, go_repo: Path, options: PipelineOptions) -> None:
        pipeline = AnalysisPipeline(registry_with(TechStackDetector, SoftFailing))

        analysis = pipeline.run(go_repo, options)

        assert analysis.commands == []
        assert analysis.tech_stack.languages[0].name == "Go"

    def test_writing_unowned_field_fails(self, go_repo: Path, options: PipelineOptions) -> None:
        pipeline = AnalysisPipeline(registry_with(Trespassing))

        with pytest.raises(PipelineError, match="does not own"):
            pipeline.run(go_repo, options)

    def test_stage_three_sees_stage_one_results(self, go_repo: Path, options: PipelineOptions) -> None:
        pipeline = AnalysisPipeline(registry_with(TechStackDetector, StructureDetector, ReadsStack))

        pipeline.run(go_repo, options)

        assert ReadsStack.seen == ["Go"]


class TestDetectorRegistry:
    """Tests for detector registration."""

    def test_default_detectors_in_stage_order(self) -> None:
        registry = setup_default_detectors(DetectorRegistry())

        assert [d.name for d in registry.for_stage(1)] == ["techstack", "structure"]
        assert [d.name for d in registry.for_stage(3)] == ["cli", "project_tools"]
        assert len(registry.list_detectors()) == 17

    def test_duplicate_registration_rejected(self) -> None:
        registry = registry_with(SoftFailing)

        with pytest.raises(ValueError, match="already registered"):
            registry.register(SoftFailing)

    def test_unknown_detector(self) -> None:
        with pytest.raises(KeyError, match="not registered"):
            DetectorRegistry().get("missing")

    def test_select_keeps_registration_order(self) -> None:
        registry = setup_default_detectors(DetectorRegistry())

        names = [d.name for d in registry.select({"endpoints", "techstack", "commands"})]

        assert names == ["techstack", "commands", "endpoints"]

    def test_each_pipeline_owns_its_registry(self) -> None:
        first, second = AnalysisPipeline(), AnalysisPipeline()

        first.registry.register(SoftFailing)

        assert "soft" in first.registry
        assert "soft" not in second.registry
