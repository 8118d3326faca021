"""Unit tests for the output generators."""

import json
from pathlib import Path

import pytest
import yaml

from argus.config import ClaudeCodeConfig
from argus.generators import (
    ClaudeCodeGenerator,
    ClaudeGenerator,
    ContinueGenerator,
    CopilotGenerator,
    CursorGenerator,
    GeneratedFile,
    create_generators,
    resolve_formats,
    write_outputs,
)
from argus.generators.monorepo import MonorepoOverviewGenerator
from argus.models.analysis import AIEnrichment, Analysis, EnrichedInsight, MonorepoInfo, ProjectTool
from argus.monorepo import WorkspaceResult


def by_path(files: list[GeneratedFile]) -> dict[str, str]:
    return {f.path: f.content for f in files}


# =============================================================================
# Registry and writing
# =============================================================================


class TestResolveFormats:
    """Tests for resolve_formats() and create_generators()."""

    def test_all_expands_in_fixed_order(self) -> None:
        assert resolve_formats(["cursor", "all", "claude"]) == [
            "cursor",
            "claude",
            "claude-code",
            "copilot",
            "continue",
        ]

    def test_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown output format 'windsurf'"):
            resolve_formats(["windsurf"])

    def test_create_generators(self) -> None:
        generators = create_generators(["all"])

        assert [g.name for g in generators] == ["claude", "claude-code", "cursor", "copilot", "continue"]


class TestWriteOutputs:
    """Tests for write_outputs()."""

    def test_writes_nested_paths(self, tmp_path: Path) -> None:
        files = [GeneratedFile(".claude/rules/testing.md", "# Testing\n")]

        paths = write_outputs(files, tmp_path)

        assert paths == [tmp_path / ".claude/rules/testing.md"]
        assert paths[0].read_text() == "# Testing\n"

    def test_dry_run_writes_nothing(self, tmp_path: Path) -> None:
        files = [GeneratedFile("CLAUDE.md", "# x\n"), GeneratedFile(".cursorrules", "x\n")]

        paths = write_outputs(files, tmp_path, dry_run=True)

        assert [p.name for p in paths] == ["CLAUDE.md", ".cursorrules"]
        assert list(tmp_path.iterdir()) == []

    def test_merge_keeps_custom_sections(self, tmp_path: Path) -> None:
        (tmp_path / "CLAUDE.md").write_text(
            "<!-- ARGUS:AUTO -->\n# old\n<!-- /ARGUS:AUTO -->\n\n"
            "<!-- ARGUS:CUSTOM -->\n## Deploy\n\nAsk ops first.\n<!-- /ARGUS:CUSTOM -->\n"
        )
        files = [GeneratedFile("CLAUDE.md", "# new\n", mergeable=True)]

        write_outputs(files, tmp_path, merge_existing=True)

        content = (tmp_path / "CLAUDE.md").read_text()
        assert content.startswith("<!-- ARGUS:AUTO -->\n# new\n<!-- /ARGUS:AUTO -->")
        assert "# old" not in content
        assert "Ask ops first." in content

    def test_non_mergeable_files_are_overwritten(self, tmp_path: Path) -> None:
        (tmp_path / ".mcp.json").write_text("<!-- ARGUS:CUSTOM -->x<!-- /ARGUS:CUSTOM -->")

        write_outputs([GeneratedFile(".mcp.json", "{}\n")], tmp_path, merge_existing=True)

        assert (tmp_path / ".mcp.json").read_text() == "{}\n"

    def test_add_custom_appends_placeholder(self, tmp_path: Path) -> None:
        files = [GeneratedFile(".cursorrules", "rules\n", mergeable=True)]

        write_outputs(files, tmp_path, add_custom=True)

        content = (tmp_path / ".cursorrules").read_text()
        assert content.startswith("rules\n\n<!-- ARGUS:CUSTOM -->\n## Custom Notes\n")


# =============================================================================
# Markdown outputs
# =============================================================================


class TestClaudeGenerator:
    """Tests for CLAUDE.md."""

    @pytest.fixture
    def content(self, sample_analysis: Analysis) -> str:
        (generated,) = ClaudeGenerator().generate(sample_analysis)
        assert generated.path == "CLAUDE.md"
        return generated.content

    def test_header_and_overview(self, content: str) -> None:
        assert content.startswith("# shop\n\nAn example storefront.\n")

    def test_tech_stack(self, content: str) -> None:
        assert "- **Go** 1.21 (60.0%)" in content
        assert "**Frontend:**\n- React 18.2.0" in content
        assert "**Backend:**\n- Gin v1.9.1" in content
        assert "### Databases\n\n- PostgreSQL" in content

    def test_conventions_grouped_with_custom(self, content: str) -> None:
        assert "### Naming\n\n- Components use PascalCase naming" in content
        assert "### Custom\n\n- Always wrap errors with context" in content

    def test_commands_endpoints_and_git(self, content: str) -> None:
        assert "# Run tests\nmake test" in content
        assert "| POST | `/orders` | `internal/api/routes.go:13` |" in content
        assert "- Commit style: conventional (`<type>(<scope>): <description>`)" in content
        assert "- Branch naming: `<prefix>/<description>`" in content

    def test_architecture(self, content: str) -> None:
        assert "**Style:** Standard Go Layout" in content
        assert "**Entry point:** `cmd/shop/main.go`" in content

    def test_no_blank_line_runs(self, content: str) -> None:
        assert "\n\n\n" not in content
        assert content.endswith("\n") and not content.endswith("\n\n")

    def test_duplicate_conventions_rendered_once(self, sample_analysis: Analysis) -> None:
        sample_analysis.conventions = sample_analysis.conventions + sample_analysis.conventions[:1]

        (generated,) = ClaudeGenerator().generate(sample_analysis)

        assert generated.content.count("Components use PascalCase naming") == 1

    def test_ai_summary_and_insights(self, sample_analysis: Analysis) -> None:
        sample_analysis.ai_enrichment = AIEnrichment(
            model="llama3.2",
            project_summary="Shop sells things.",
            best_practices=[EnrichedInsight("Context", "Pass context.Context first")],
        )

        (generated,) = ClaudeGenerator().generate(sample_analysis)

        assert generated.content.startswith("# shop\n\nShop sells things.\n")
        assert "## Best Practices\n\n- **Context**: Pass context.Context first" in generated.content

    def test_empty_analysis(self) -> None:
        (generated,) = ClaudeGenerator().generate(Analysis(project_name="empty", root_path="/e"))

        assert generated.content.startswith("# empty\n")
        assert "## Coding Conventions" not in generated.content


class TestMonorepoOverviewGenerator:
    """Tests for the monorepo root overview."""

    @pytest.fixture
    def content(self, sample_analysis: Analysis) -> str:
        sample_analysis.monorepo_info = MonorepoInfo(
            is_monorepo=True, tool="turborepo", package_manager="pnpm"
        )
        results = [
            WorkspaceResult(path="apps/web", name="@shop/web", analysis=sample_analysis),
            WorkspaceResult(path="apps/legacy", name="legacy", error=RuntimeError("unreadable")),
        ]

        (generated,) = MonorepoOverviewGenerator(results).generate(sample_analysis)

        assert generated.path == "CLAUDE.md"
        assert generated.mergeable
        return generated.content

    def test_header_and_tooling(self, content: str) -> None:
        assert content.startswith("# shop (Monorepo)\n\nAn example storefront.\n")
        assert "**Monorepo Tool:** turborepo" in content
        assert "**Package Manager:** pnpm" in content

    def test_workspace_table(self, content: str) -> None:
        assert "| @shop/web | `apps/web` | Go, TypeScript | 4 | 2 |" in content
        assert "- `apps/web/CLAUDE.md`: @shop/web" in content
        assert "- `apps/legacy`: unreadable" in content

    def test_root_sections(self, content: str) -> None:
        assert "## Root Commands\n\n```bash\nmake build\nmake test\n" in content
        assert "## Shared Conventions\n\n- Components use PascalCase naming" in content
        assert "## Git Conventions" in content


class TestCursorAndCopilot:
    """Tests for .cursorrules and the Copilot instructions."""

    def test_cursor_rules(self, sample_analysis: Analysis) -> None:
        (generated,) = CursorGenerator().generate(sample_analysis)

        assert generated.path == ".cursorrules"
        assert "You are working in shop, a Go project." in generated.content
        assert "- Run `make test` after changing code." in generated.content
        assert "- Write commit messages in conventional style." in generated.content

    def test_copilot_instructions(self, sample_analysis: Analysis) -> None:
        (generated,) = CopilotGenerator().generate(sample_analysis)

        assert generated.path == ".github/copilot-instructions.md"
        assert generated.content.startswith("# Copilot Instructions for shop\n")
        assert "- Languages: Go, TypeScript" in generated.content
        assert "- Build: `make build`" in generated.content
        assert "- Architecture: Standard Go Layout" in generated.content

    def test_deterministic(self, sample_analysis: Analysis) -> None:
        for generator in (ClaudeGenerator(), CursorGenerator(), CopilotGenerator()):
            assert generator.generate(sample_analysis) == generator.generate(sample_analysis)


# =============================================================================
# continue.dev
# =============================================================================


class TestContinueGenerator:
    """Tests for the continue.dev output."""

    @pytest.fixture
    def files(self, sample_analysis: Analysis) -> dict[str, str]:
        return by_path(ContinueGenerator().generate(sample_analysis))

    def test_paths(self, files: dict[str, str]) -> None:
        assert list(files) == [".continue/config.yaml", ".continue/rules/project.md"]

    def test_config_yaml(self, files: dict[str, str]) -> None:
        raw = files[".continue/config.yaml"]
        config = yaml.safe_load(raw)

        assert raw.startswith("# Continue.dev Configuration for shop\n")
        assert config["name"] == "shop"
        assert config["schema"] == "v1"
        assert config["rules"][:2] == [
            "Languages in use: Go, TypeScript",
            "Frameworks in use: Gin, React, Jest",
        ]
        assert "Format code with gofmt" in config["rules"]
        assert "Write functional components with hooks" in config["rules"]
        assert config["rules"][-1] == "Branch naming: <prefix>/<description>"
        assert [c["provider"] for c in config["context"]] == ["code", "diff", "terminal"]
        assert [d["name"] for d in config["docs"]] == ["Gin", "React"]

    def test_rules_file_front_matter(self, files: dict[str, str]) -> None:
        rules = files[".continue/rules/project.md"]

        assert rules.startswith("---\nname: shop project rules\nalwaysApply: true\n---\n")
        assert "## Coding Conventions" in rules


# =============================================================================
# claude-code
# =============================================================================


class TestClaudeCodeGenerator:
    """Tests for the .claude/ directory output."""

    @pytest.fixture
    def files(self, sample_analysis: Analysis) -> dict[str, str]:
        return by_path(ClaudeCodeGenerator().generate(sample_analysis))

    def test_rules(self, files: dict[str, str]) -> None:
        rules = sorted(p for p in files if p.startswith(".claude/rules/"))

        assert rules == [
            ".claude/rules/architecture.md",
            ".claude/rules/coding-style.md",
            ".claude/rules/git-workflow.md",
            ".claude/rules/testing.md",
        ]
        assert "- Keep `make lint` passing" in files[".claude/rules/coding-style.md"]
        assert "- Always wrap errors with context" in files[".claude/rules/coding-style.md"]
        assert "- Run `make test` before committing" in files[".claude/rules/testing.md"]
        assert "- cmd: Entry points / CLI" in files[".claude/rules/architecture.md"]

    def test_agents(self, files: dict[str, str]) -> None:
        agents = [p for p in files if p.startswith(".claude/agents/")]

        assert agents == [
            ".claude/agents/go-reviewer.md",
            ".claude/agents/ts-reviewer.md",
            ".claude/agents/planner.md",
            ".claude/agents/security-reviewer.md",
        ]
        planner = files[".claude/agents/planner.md"]
        assert planner.startswith("---\nname: planner\n")
        assert "Respect the architecture layers:" in planner

    def test_skills(self, files: dict[str, str]) -> None:
        skills = [p for p in files if p.startswith(".claude/skills/")]

        assert skills == [
            ".claude/skills/build/SKILL.md",
            ".claude/skills/test/SKILL.md",
            ".claude/skills/lint/SKILL.md",
            ".claude/skills/format/SKILL.md",
        ]
        assert "```bash\nmake test\n```" in files[".claude/skills/test/SKILL.md"]

    def test_project_tool_skill(self, sample_analysis: Analysis) -> None:
        sample_analysis.project_tools = [
            ProjectTool(
                name="shopctl",
                binary_path="bin/shopctl",
                description="Project-specific CLI tool",
                usage_examples=["bin/shopctl seed", "bin/shopctl reset"],
            )
        ]

        files = by_path(ClaudeCodeGenerator().generate(sample_analysis))
        skill = files[".claude/skills/shopctl/SKILL.md"]

        assert "description: Project-specific CLI tool" in skill
        assert "```bash\nbin/shopctl seed\n```" in skill
        assert "- bin/shopctl reset" in skill

    def test_mcp_servers(self, files: dict[str, str]) -> None:
        mcp = json.loads(files[".mcp.json"])

        assert list(mcp["mcpServers"]) == ["postgres", "github"]
        assert mcp["mcpServers"]["github"]["env"] == {
            "GITHUB_PERSONAL_ACCESS_TOKEN": "${GITHUB_PERSONAL_ACCESS_TOKEN}"
        }

    def test_settings_hooks_and_permissions(self, files: dict[str, str]) -> None:
        settings = json.loads(files[".claude/settings.json"])

        (post_tool_use,) = settings["hooks"]["PostToolUse"]
        assert post_tool_use["matcher"] == "Edit|Write"
        assert post_tool_use["hooks"][0]["command"] == "go fmt ./..."
        assert settings["permissions"]["allow"] == [
            "Bash(make test:*)",
            "Bash(make lint:*)",
            "Bash(make build:*)",
        ]

    def test_toggles(self, sample_analysis: Analysis) -> None:
        config = ClaudeCodeConfig(agents=False, mcp=False, hooks=False)

        files = by_path(ClaudeCodeGenerator(config).generate(sample_analysis))

        assert not any(p.startswith(".claude/agents/") for p in files)
        assert ".mcp.json" not in files
        assert ".claude/settings.json" not in files
        assert ".claude/rules/testing.md" in files

    def test_empty_analysis_only_gets_generic_agents(self) -> None:
        files = by_path(ClaudeCodeGenerator().generate(Analysis(project_name="e", root_path="/e")))

        assert list(files) == [".claude/agents/planner.md", ".claude/agents/security-reviewer.md"]
