"""Unit tests for template renderer."""

import pytest

from argus.models.analysis import (
    Analysis,
    ArchitectureInfo,
    ArchitectureLayer,
    Dependency,
    DependencyType,
    DevelopmentInfo,
    GitHook,
    Prerequisite,
    SetupStep,
)
from argus.templates.renderer import TemplateRenderer


class TestTemplateRenderer:
    """Tests for TemplateRenderer."""

    @pytest.fixture
    def renderer(self) -> TemplateRenderer:
        """Create a renderer instance."""
        return TemplateRenderer()

    def test_missing_template(self, renderer: TemplateRenderer, sample_analysis: Analysis) -> None:
        """Test that an unknown template name raises ValueError."""
        with pytest.raises(ValueError, match="Template not found: nope.j2"):
            renderer.render("nope.j2", sample_analysis)

    def test_extra_variables(self, renderer: TemplateRenderer, sample_analysis: Analysis) -> None:
        """Test that keyword arguments reach the template."""
        content = renderer.render(
            "claude_code/rule.md.j2", sample_analysis, title="Testing", conventions=[], notes=["Run it"]
        )

        assert content == "# Testing\n\n- Run it\n"

    def test_same_analysis_same_output(
        self, renderer: TemplateRenderer, sample_analysis: Analysis
    ) -> None:
        """Test that rendering is deterministic."""
        first = renderer.render("CLAUDE.md.j2", sample_analysis)
        second = TemplateRenderer().render("CLAUDE.md.j2", sample_analysis)

        assert first == second

    def test_markdown_is_not_escaped(self, renderer: TemplateRenderer, sample_analysis: Analysis) -> None:
        """Test that angle brackets survive (templates are not HTML)."""
        content = renderer.render("CLAUDE.md.j2", sample_analysis)

        assert "<prefix>/<description>" in content
        assert "&lt;" not in content


class TestSections:
    """Tests for the shared section macros, rendered through CLAUDE.md."""

    @pytest.fixture
    def renderer(self) -> TemplateRenderer:
        return TemplateRenderer()

    def test_development_section(self, renderer: TemplateRenderer) -> None:
        analysis = Analysis(
            project_name="x",
            root_path="/x",
            development_info=DevelopmentInfo(
                prerequisites=[Prerequisite("Go", "1.21")],
                setup_steps=[SetupStep("Download modules", "go mod download")],
                git_hooks=[GitHook("pre-commit", ["gofmt", "golangci-lint"])],
            ),
        )

        content = renderer.render("CLAUDE.md.j2", analysis)

        assert "### Prerequisites\n\n- Go 1.21\n" in content
        assert "1. Download modules: `go mod download`" in content
        assert "- **pre-commit**: gofmt, golangci-lint" in content

    def test_architecture_diagram(self, renderer: TemplateRenderer) -> None:
        analysis = Analysis(
            project_name="x",
            root_path="/x",
            architecture_info=ArchitectureInfo(
                style="Layered",
                layers=[
                    ArchitectureLayer("handlers", depends_on=["services"]),
                    ArchitectureLayer("services"),
                ],
                diagram="handlers --> services",
            ),
        )

        content = renderer.render("CLAUDE.md.j2", analysis)

        assert "- **handlers** (depends on services)" in content
        assert "```\nhandlers --> services\n```" in content

    def test_dependencies_truncated(self, renderer: TemplateRenderer) -> None:
        runtime = [Dependency(f"dep{i}", "1.0.0") for i in range(23)]
        dev = [Dependency("pytest", "8.0", DependencyType.DEV)]
        analysis = Analysis(project_name="x", root_path="/x", dependencies=runtime + dev)

        content = renderer.render("CLAUDE.md.j2", analysis)

        assert "- `dep19` 1.0.0" in content
        assert "dep20" not in content
        assert "*...and 3 more*" in content
        assert "### Development\n\n- `pytest` 8.0" in content
