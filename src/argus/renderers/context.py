"""Derived view of an Analysis shared by the output generators.

Collects what several outputs need (classified commands, test examples,
entry points, git style) so each template does not recompute it.
"""

from dataclasses import dataclass, field

from argus.models.analysis import Analysis, ArchitectureLayer, Command

MAX_TEST_EXAMPLES = 5

ENTRY_POINT_NAMES = (
    "main.go",
    "index.ts",
    "index.js",
    "app.ts",
    "app.js",
    "main.py",
    "__main__.py",
    "main.rs",
    "lib.rs",
)


def classify_command(command: Command) -> str:
    """Command kind: build, test, lint, format, dev, migrate, docker, or ""."""
    name = command.name.lower()
    body = command.command.lower()

    if ("build" in name or "build" in body) and "docker" not in name:
        return "build"
    if "test" in name or "test" in body:
        return "test"
    if "lint" in name or "lint" in body or "clippy" in name:
        return "lint"
    if name.rsplit(" ", 1)[-1] in ("dev", "start") or "serve" in name:
        return "dev"
    if "fmt" in name or "format" in name or "prettier" in body:
        return "format"
    if "migrate" in name or "db:" in name or "migrate" in body:
        return "migrate"
    if "docker" in name or "docker" in body:
        return "docker"
    return ""


@dataclass
class GeneratorContext:
    """Facts pulled out of an Analysis for templates.

    Attributes:
        commands: Kind -> first runnable command of that kind
        test_examples: Up to five example test files
        entry_points: Entry point files from key files and architecture
        commit_style: Detected commit convention style
        branch_format: Detected branch naming format
        layers: Architecture layers
    """

    commands: dict[str, str] = field(default_factory=dict)
    test_examples: list[str] = field(default_factory=list)
    entry_points: list[str] = field(default_factory=list)
    commit_style: str = ""
    branch_format: str = ""
    layers: list[ArchitectureLayer] = field(default_factory=list)

    @classmethod
    def from_analysis(cls, analysis: Analysis) -> "GeneratorContext":
        ctx = cls()

        for command in analysis.commands:
            kind = classify_command(command)
            if kind and kind not in ctx.commands:
                ctx.commands[kind] = command.name

        if analysis.code_patterns is not None:
            for pattern in analysis.code_patterns.testing:
                for example in pattern.examples:
                    if example not in ctx.test_examples:
                        ctx.test_examples.append(example)
            ctx.test_examples = ctx.test_examples[:MAX_TEST_EXAMPLES]

        for key_file in analysis.key_files:
            if key_file.path.rsplit("/", 1)[-1] in ENTRY_POINT_NAMES:
                ctx.entry_points.append(key_file.path)

        info = analysis.architecture_info
        if info is not None:
            if info.entry_point and info.entry_point not in ctx.entry_points:
                ctx.entry_points.append(info.entry_point)
            ctx.layers = list(info.layers)

        git = analysis.git_conventions
        if git is not None:
            if git.commit_convention is not None:
                ctx.commit_style = git.commit_convention.style
            if git.branch_convention is not None:
                ctx.branch_format = git.branch_convention.format

        return ctx

    @property
    def test_command(self) -> str:
        return self.commands.get("test", "")

    @property
    def lint_command(self) -> str:
        return self.commands.get("lint", "")

    @property
    def build_command(self) -> str:
        return self.commands.get("build", "")

    @property
    def format_command(self) -> str:
        return self.commands.get("format", "")
