"""Unit tests for renderer filters and the derived generator context."""

import pytest

from argus.models.analysis import (
    Analysis,
    CodePatterns,
    Command,
    Convention,
    ConventionCategory,
    Dependency,
    DependencyType,
    Framework,
    FrameworkCategory,
    KeyFile,
    PatternInfo,
)
from argus.renderers.context import GeneratorContext, classify_command
from argus.renderers.filters import (
    dedupe_conventions,
    group_conventions,
    group_frameworks,
    is_empty_section,
    percent,
    split_dependencies,
    title_case,
)

N = ConventionCategory.NAMING
S = ConventionCategory.CODE_STYLE


class TestDedupeConventions:
    """Tests for dedupe_conventions filter."""

    def test_first_occurrence_wins(self) -> None:
        conventions = [
            Convention(N, "Use camelCase."),
            Convention(S, "use   camelCase"),
            Convention(S, "Use gofmt"),
        ]

        result = dedupe_conventions(conventions)

        assert result == [Convention(N, "Use camelCase."), Convention(S, "Use gofmt")]

    def test_blank_descriptions_dropped(self) -> None:
        assert dedupe_conventions([Convention(N, "  ")]) == []


class TestGrouping:
    """Tests for the grouping filters."""

    def test_group_conventions_in_first_seen_order(self) -> None:
        conventions = [
            Convention(S, "Use gofmt"),
            Convention(N, "PascalCase components"),
            Convention(S, "Use gofmt"),
            Convention(S, "Tabs for indentation"),
        ]

        groups = group_conventions(conventions)

        assert [(cat, [c.description for c in items]) for cat, items in groups] == [
            ("code-style", ["Use gofmt", "Tabs for indentation"]),
            ("naming", ["PascalCase components"]),
        ]

    def test_group_frameworks_in_fixed_category_order(self) -> None:
        frameworks = [
            Framework("Jest", category=FrameworkCategory.TESTING),
            Framework("Gin", category=FrameworkCategory.BACKEND),
            Framework("React", category=FrameworkCategory.FRONTEND),
        ]

        groups = group_frameworks(frameworks)

        assert [(label, [f.name for f in items]) for label, items in groups] == [
            ("Frontend", ["React"]),
            ("Backend", ["Gin"]),
            ("Testing", ["Jest"]),
        ]

    def test_split_dependencies(self) -> None:
        deps = [
            Dependency("react", "^18.2.0"),
            Dependency("jest", "^29.0.0", DependencyType.DEV),
        ]

        split = split_dependencies(deps)

        assert [d.name for d in split["runtime"]] == ["react"]
        assert [d.name for d in split["dev"]] == ["jest"]


class TestFormatting:
    """Tests for the scalar formatting filters."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [("error-handling", "Error Handling"), ("code_style", "Code Style"), ("naming", "Naming")],
    )
    def test_title_case(self, value: str, expected: str) -> None:
        assert title_case(value) == expected

    def test_percent(self) -> None:
        assert percent(66.666) == "66.7%"
        assert percent("bad") == ""
        assert percent(None) == ""

    @pytest.mark.parametrize(("content", "expected"), [("", True), ("  \n", True), ("n/a", True), ("x", False)])
    def test_is_empty_section(self, content: str, expected: bool) -> None:
        assert is_empty_section(content) is expected


class TestClassifyCommand:
    """Tests for classify_command()."""

    @pytest.mark.parametrize(
        ("name", "body", "kind"),
        [
            ("make build", "make build", "build"),
            ("docker build", "docker build .", "docker"),
            ("npm run test", "jest", "test"),
            ("cargo clippy", "cargo clippy", "lint"),
            ("npm run dev", "vite", "dev"),
            ("go fmt ./...", "go fmt ./...", "format"),
            ("make migrate", "make migrate", "migrate"),
            ("make clean", "make clean", ""),
        ],
    )
    def test_kinds(self, name: str, body: str, kind: str) -> None:
        assert classify_command(Command(name=name, command=body)) == kind


class TestGeneratorContext:
    """Tests for GeneratorContext.from_analysis()."""

    def test_from_sample(self, sample_analysis: Analysis) -> None:
        ctx = GeneratorContext.from_analysis(sample_analysis)

        assert ctx.build_command == "make build"
        assert ctx.test_command == "make test"
        assert ctx.lint_command == "make lint"
        assert ctx.format_command == "go fmt ./..."
        assert ctx.commit_style == "conventional"
        assert ctx.branch_format == "<prefix>/<description>"
        assert ctx.entry_points == ["cmd/shop/main.go"]
        assert [layer.name for layer in ctx.layers] == ["cmd", "internal"]

    def test_first_command_of_each_kind_wins(self) -> None:
        analysis = Analysis(
            project_name="x",
            root_path="/x",
            commands=[
                Command(name="npm run test", command="jest"),
                Command(name="make test", command="make test"),
            ],
        )

        assert GeneratorContext.from_analysis(analysis).test_command == "npm run test"

    def test_test_examples_capped_and_deduplicated(self) -> None:
        examples = [f"pkg/{i}_test.go" for i in range(4)]
        patterns = CodePatterns(
            testing=[
                PatternInfo("go-testing", "testing", "Go tests", examples=examples),
                PatternInfo("table", "testing", "Table tests", examples=examples[:1] + ["z_test.go", "y_test.go"]),
            ]
        )
        analysis = Analysis(project_name="x", root_path="/x", code_patterns=patterns)

        ctx = GeneratorContext.from_analysis(analysis)

        assert ctx.test_examples == examples + ["z_test.go"]

    def test_entry_points_from_key_files(self) -> None:
        analysis = Analysis(
            project_name="x",
            root_path="/x",
            key_files=[KeyFile("src/index.ts", "Entry point"), KeyFile("README.md", "Docs")],
        )

        ctx = GeneratorContext.from_analysis(analysis)

        assert ctx.entry_points == ["src/index.ts"]
        assert ctx.commit_style == ""
        assert ctx.layers == []
