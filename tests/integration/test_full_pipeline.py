"""End-to-end pipeline tests against temporary repositories.

Runs the default detector set (without git) and checks the properties
every Analysis must satisfy.
"""

import json
import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from argus.analyzers import setup_default_detectors
from argus.analyzers.base import AnalysisCancelledError, DetectionContext, Detector, DetectorResult
from argus.analyzers.registry import DetectorRegistry
from argus.models.analysis import HTTP_METHODS, Analysis, DependencyType
from argus.pipeline import AnalysisPipeline, PipelineOptions

RepoFactory = Callable[[dict[str, str]], Path]

pytestmark = pytest.mark.integration

GO_MOD = """module github.com/acme/shop

go 1.21

require (
\tgithub.com/gin-gonic/gin v1.9.1
\tgithub.com/lib/pq v1.10.9
\tgithub.com/acme/platform/internal/auth v0.3.0
\tgolang.org/x/sys v0.15.0 // indirect
)
"""

GIN_ROUTES = """package api

import "github.com/gin-gonic/gin"

func Register(r *gin.Engine) {
\tr.GET("/products", listProducts)
\tr.POST("/orders", authRequired(), createOrder)
\tr.Any("health", health)
}
"""


@pytest.fixture
def polyglot_repo(make_repo: RepoFactory) -> Path:
    """Go API with a TypeScript front end, a Makefile and a README."""
    web_package = {
        "name": "web",
        "scripts": {"dev": "next dev", "build": "next build"},
        "dependencies": {"next": "14.0.0", "react": "^18.2.0"},
        "devDependencies": {"typescript": "^5.2.0"},
    }
    return make_repo(
        {
            "go.mod": GO_MOD,
            "Makefile": "build:\n\tgo build ./...\n\ntest:\n\tgo test ./...\n",
            "README.md": "# Shop\n\nA storefront API.\n",
            "cmd/shop/main.go": "package main\n\nfunc main() {}\n",
            "internal/api/routes.go": GIN_ROUTES,
            "internal/api/routes_test.go": "package api\n\nimport \"testing\"\n\nfunc TestRoutes(t *testing.T) {}\n",
            "web/package.json": json.dumps(web_package),
            "web/src/App.tsx": "export default function App() { return null }\n",
            "docker-compose.yml": "services:\n  db:\n    image: postgres:16\n",
        }
    )


@pytest.fixture
def pipeline() -> AnalysisPipeline:
    return AnalysisPipeline()


# =============================================================================
# Seed repositories
# =============================================================================


class TestMinimalGoProject:
    """A go.mod and a main.go."""

    @pytest.fixture
    def analysis(self, pipeline: AnalysisPipeline, go_repo: Path, options: PipelineOptions) -> Analysis:
        return pipeline.run(go_repo, options)

    def test_language(self, analysis: Analysis) -> None:
        assert [(lang.name, lang.version, lang.percentage) for lang in analysis.tech_stack.languages] == [
            ("Go", "1.21", 100.0)
        ]

    def test_commands_include_build_and_format(self, analysis: Analysis) -> None:
        names = [c.name for c in analysis.commands]

        assert "go build ./..." in names
        assert "go fmt ./..." in names

    def test_go_formatting_convention(self, analysis: Analysis) -> None:
        assert "Go project - use 'go fmt' or 'gofmt' for formatting" in [
            c.description for c in analysis.conventions
        ]

    def test_entry_point(self, analysis: Analysis) -> None:
        assert analysis.architecture_info is not None
        assert analysis.architecture_info.entry_point == "main.go"


class TestPackageJsonWithDevDependencies:
    """A package.json with react as a dependency and jest as a dev dependency."""

    def test_dependencies_and_framework(
        self, pipeline: AnalysisPipeline, node_repo: Path, options: PipelineOptions
    ) -> None:
        analysis = pipeline.run(node_repo, options)

        assert [(d.name, d.type) for d in analysis.dependencies] == [
            ("react", DependencyType.RUNTIME),
            ("jest", DependencyType.DEV),
        ]
        assert analysis.tech_stack.has_framework("React")


# =============================================================================
# Invariants
# =============================================================================


class TestAnalysisInvariants:
    """Properties that hold for any repository."""

    @pytest.fixture
    def analysis(
        self, pipeline: AnalysisPipeline, polyglot_repo: Path, options: PipelineOptions
    ) -> Analysis:
        return pipeline.run(polyglot_repo, options)

    def test_language_percentages_sum_to_at_most_100(self, analysis: Analysis) -> None:
        assert analysis.tech_stack.languages
        assert sum(lang.percentage for lang in analysis.tech_stack.languages) <= 100.0

    def test_endpoints_are_well_formed(self, analysis: Analysis) -> None:
        assert analysis.endpoints
        for endpoint in analysis.endpoints:
            assert endpoint.method in HTTP_METHODS
            assert endpoint.path.startswith("/")
        assert ("ALL", "/health") in [(e.method, e.path) for e in analysis.endpoints]

    def test_test_files_contribute_no_endpoints(self, analysis: Analysis) -> None:
        assert all(not e.file.endswith("_test.go") for e in analysis.endpoints)

    def test_vendored_and_indirect_modules_excluded(self, analysis: Analysis) -> None:
        names = [d.name for d in analysis.dependencies]

        assert "github.com/gin-gonic/gin" in names
        assert "github.com/acme/platform/internal/auth" not in names
        assert "golang.org/x/sys" not in names

    def test_repeated_runs_are_identical(
        self, pipeline: AnalysisPipeline, polyglot_repo: Path, options: PipelineOptions
    ) -> None:
        first = json.dumps(pipeline.run(polyglot_repo, options).to_dict(), sort_keys=True)
        second = json.dumps(pipeline.run(polyglot_repo, options).to_dict(), sort_keys=True)

        assert first == second

    def test_parallel_matches_serial(
        self,
        pipeline: AnalysisPipeline,
        polyglot_repo: Path,
        options: PipelineOptions,
        serial_options: PipelineOptions,
    ) -> None:
        assert pipeline.run(polyglot_repo, options).to_dict() == pipeline.run(
            polyglot_repo, serial_options
        ).to_dict()


class TestBoundaries:
    """Empty roots, missing roots, ignore rules and cancellation."""

    def test_gitignore_matching_root_name_is_a_no_op(
        self, pipeline: AnalysisPipeline, make_repo: RepoFactory, options: PipelineOptions
    ) -> None:
        root = make_repo({".gitignore": "repo\n/\n", "main.go": "package main\n"})

        analysis = pipeline.run(root, options)

        assert analysis.tech_stack.has_language("Go")

    def test_cancelled_mid_pipeline(self, go_repo: Path) -> None:
        event = threading.Event()

        class CancelsRun(Detector):
            name = "cancels"
            fields = ("readme_content",)
            stage = 1

            def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
                event.set()
                return {"readme_content": None}

        registry = setup_default_detectors(DetectorRegistry())
        registry.register(CancelsRun)

        with pytest.raises(AnalysisCancelledError):
            AnalysisPipeline(registry).run(
                go_repo, PipelineOptions(skip_git=True, cancel_event=event)
            )
