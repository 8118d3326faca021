"""claude-code output: the .claude/ directory plus .mcp.json.

Each part (rules, agents, skills, MCP servers, hooks) is switched on or off
by ClaudeCodeConfig. Parts with nothing to say produce no files.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from argus.config import ClaudeCodeConfig
from argus.generators.base import GeneratedFile, Generator
from argus.models.analysis import Analysis, Convention, ConventionCategory
from argus.renderers.context import GeneratorContext
from argus.renderers.filters import is_empty_section
from argus.templates.renderer import TemplateRenderer

STYLE_CATEGORIES = frozenset(
    {
        ConventionCategory.NAMING,
        ConventionCategory.CODE_STYLE,
        ConventionCategory.IMPORTS,
        ConventionCategory.TYPESCRIPT,
        ConventionCategory.COMPONENTS,
        ConventionCategory.DOCUMENTATION,
        ConventionCategory.LOGGING,
        ConventionCategory.ERROR_HANDLING,
        ConventionCategory.FRAMEWORK,
        ConventionCategory.CUSTOM,
    }
)

# Command kinds that become skills, in output order
SKILL_KINDS: list[tuple[str, str]] = [
    ("build", "Build the project"),
    ("test", "Run the test suite"),
    ("lint", "Run the linters"),
    ("format", "Format the code"),
    ("dev", "Start the development server"),
    ("migrate", "Run database migrations"),
]


@dataclass
class AgentSpec:
    """Agent definition rendered into .claude/agents/<name>.md."""

    name: str
    description: str
    role: str
    instructions: list[str] = field(default_factory=list)
    show_layers: bool = False


@dataclass
class SkillSpec:
    """Skill definition rendered into .claude/skills/<name>/SKILL.md."""

    name: str
    title: str
    description: str
    command: str
    notes: list[str] = field(default_factory=list)


LANGUAGE_REVIEWERS: list[tuple[tuple[str, ...], AgentSpec]] = [
    (
        ("Go",),
        AgentSpec(
            name="go-reviewer",
            description="Reviews Go changes for idiomatic error handling and concurrency",
            role="Go code reviewer",
            instructions=[
                "Check that every error is handled or returned with context",
                "Look for goroutine leaks and unsynchronized shared state",
                "Keep exported identifiers documented",
            ],
        ),
    ),
    (
        ("TypeScript", "JavaScript"),
        AgentSpec(
            name="ts-reviewer",
            description="Reviews TypeScript and JavaScript changes",
            role="TypeScript code reviewer",
            instructions=[
                "Flag any use of the any type in new code",
                "Check async code for unhandled promise rejections",
                "Keep components small and side effects in hooks",
            ],
        ),
    ),
    (
        ("Python",),
        AgentSpec(
            name="python-reviewer",
            description="Reviews Python changes for typing and error handling",
            role="Python code reviewer",
            instructions=[
                "Check type hints on public functions",
                "Flag bare except clauses and swallowed exceptions",
                "Prefer pathlib and context managers for resources",
            ],
        ),
    ),
    (
        ("Rust",),
        AgentSpec(
            name="rust-reviewer",
            description="Reviews Rust changes for safety and error handling",
            role="Rust code reviewer",
            instructions=[
                "Flag unwrap and expect outside tests",
                "Check that unsafe blocks document their invariants",
            ],
        ),
    ),
    (
        ("Java",),
        AgentSpec(
            name="java-reviewer",
            description="Reviews Java changes",
            role="Java code reviewer",
            instructions=[
                "Check resource handling with try-with-resources",
                "Keep public APIs documented with Javadoc",
            ],
        ),
    ),
]


class ClaudeCodeGenerator(Generator):
    """Generates rules, agents, skills, MCP servers and hooks."""

    name = "claude-code"

    def __init__(
        self,
        config: ClaudeCodeConfig | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config or ClaudeCodeConfig()
        self._renderer = renderer or TemplateRenderer()

    def generate(self, analysis: Analysis) -> list[GeneratedFile]:
        ctx = GeneratorContext.from_analysis(analysis)
        files: list[GeneratedFile] = []
        if self.config.rules:
            files.extend(self._rules(analysis, ctx))
        if self.config.agents:
            files.extend(self._agents(analysis, ctx))
        if self.config.skills:
            files.extend(self._skills(analysis, ctx))
        if self.config.mcp:
            files.extend(self._mcp(analysis))
        if self.config.hooks:
            files.extend(self._hooks(ctx))
        return files

    # =========================================================================
    # Rules
    # =========================================================================

    def _rules(self, analysis: Analysis, ctx: GeneratorContext) -> list[GeneratedFile]:
        def by_category(*categories: ConventionCategory) -> list[Convention]:
            return [c for c in analysis.conventions if c.category in categories]

        testing_notes = []
        if ctx.test_command:
            testing_notes.append(f"Run `{ctx.test_command}` before committing")
        testing_notes.extend(f"Follow the layout of `{example}`" for example in ctx.test_examples)

        git_notes = []
        if ctx.commit_style:
            git_notes.append(f"Commit messages use {ctx.commit_style} style")
        if ctx.branch_format:
            git_notes.append(f"Branch names follow `{ctx.branch_format}`")

        arch_notes = [
            f"{layer.name}: {layer.purpose}" if layer.purpose else layer.name for layer in ctx.layers
        ]
        style_notes = [f"Keep `{ctx.lint_command}` passing"] if ctx.lint_command else []

        rules = [
            ("coding-style", "Coding Style", by_category(*STYLE_CATEGORIES), style_notes),
            ("testing", "Testing", by_category(ConventionCategory.TESTING), testing_notes),
            ("git-workflow", "Git Workflow", by_category(ConventionCategory.GIT), git_notes),
            (
                "architecture",
                "Architecture",
                by_category(ConventionCategory.ARCHITECTURE, ConventionCategory.STRUCTURE),
                arch_notes,
            ),
        ]

        files = []
        for slug, title, conventions, notes in rules:
            if not conventions and not notes:
                continue
            content = self._renderer.render(
                "claude_code/rule.md.j2", analysis, title=title, conventions=conventions, notes=notes
            )
            files.append(GeneratedFile(path=f".claude/rules/{slug}.md", content=content))
        return files

    # =========================================================================
    # Agents
    # =========================================================================

    def _agents(self, analysis: Analysis, ctx: GeneratorContext) -> list[GeneratedFile]:
        agents = [
            spec
            for languages, spec in LANGUAGE_REVIEWERS
            if any(analysis.tech_stack.has_language(lang) for lang in languages)
        ]

        planner_steps = ["Break features into small, testable steps before writing code"]
        if ctx.test_command:
            planner_steps.append(f"Include `{ctx.test_command}` in every plan's verification step")
        agents.append(
            AgentSpec(
                name="planner",
                description="Plans multi-step changes before implementation",
                role="implementation planner",
                instructions=planner_steps,
                show_layers=True,
            )
        )
        agents.append(
            AgentSpec(
                name="security-reviewer",
                description="Reviews changes for secrets, injection and unsafe input handling",
                role="security reviewer",
                instructions=[
                    "Flag hard-coded secrets and credentials",
                    "Check that external input is validated before use",
                    "Check queries and shell calls for injection",
                ],
            )
        )

        return [
            GeneratedFile(
                path=f".claude/agents/{agent.name}.md",
                content=self._renderer.render("claude_code/agent.md.j2", analysis, agent=agent),
            )
            for agent in agents
        ]

    # =========================================================================
    # Skills
    # =========================================================================

    def _skills(self, analysis: Analysis, ctx: GeneratorContext) -> list[GeneratedFile]:
        skills = [
            SkillSpec(
                name=kind, title=description, description=description, command=ctx.commands[kind]
            )
            for kind, description in SKILL_KINDS
            if kind in ctx.commands
        ]
        for tool in analysis.project_tools:
            skills.append(
                SkillSpec(
                    name=tool.name,
                    title=f"Use {tool.name}",
                    description=tool.when_to_use or tool.description or f"Run {tool.name}",
                    command=tool.usage_examples[0] if tool.usage_examples else tool.binary_path,
                    notes=tool.usage_examples[1:],
                )
            )

        files = []
        for skill in skills:
            content = self._renderer.render("claude_code/skill.md.j2", analysis, skill=skill)
            if is_empty_section(content):
                continue
            files.append(GeneratedFile(path=f".claude/skills/{skill.name}/SKILL.md", content=content))
        return files

    # =========================================================================
    # MCP servers and hooks
    # =========================================================================

    def _mcp(self, analysis: Analysis) -> list[GeneratedFile]:
        servers: dict[str, dict[str, Any]] = {}
        for db in analysis.tech_stack.databases:
            name = db.lower()
            if "postgres" in name:
                servers["postgres"] = {
                    "command": "npx",
                    "args": ["-y", "@modelcontextprotocol/server-postgres"],
                    "env": {"POSTGRES_CONNECTION_STRING": "${POSTGRES_CONNECTION_STRING}"},
                }
            elif "sqlite" in name:
                servers["sqlite"] = {
                    "command": "npx",
                    "args": ["-y", "@modelcontextprotocol/server-sqlite", "--db-path", "./database.db"],
                }

        git = analysis.git_conventions
        if git is not None and git.repository is not None and git.repository.platform == "github":
            servers["github"] = {
                "command": "npx",
                "args": ["-y", "@modelcontextprotocol/server-github"],
                "env": {"GITHUB_PERSONAL_ACCESS_TOKEN": "${GITHUB_PERSONAL_ACCESS_TOKEN}"},
            }

        if not servers:
            return []
        content = json.dumps({"mcpServers": servers}, indent=2) + "\n"
        return [GeneratedFile(path=".mcp.json", content=content)]

    def _hooks(self, ctx: GeneratorContext) -> list[GeneratedFile]:
        settings: dict[str, Any] = {}
        if ctx.format_command:
            settings["hooks"] = {
                "PostToolUse": [
                    {
                        "matcher": "Edit|Write",
                        "hooks": [{"type": "command", "command": ctx.format_command, "timeout": 60}],
                    }
                ]
            }

        allow = [
            f"Bash({command}:*)"
            for command in (ctx.test_command, ctx.lint_command, ctx.build_command)
            if command
        ]
        if allow:
            settings["permissions"] = {"allow": list(dict.fromkeys(allow))}

        if not settings:
            return []
        content = json.dumps(settings, indent=2) + "\n"
        return [GeneratedFile(path=".claude/settings.json", content=content)]
