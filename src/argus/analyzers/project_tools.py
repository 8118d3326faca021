"""Binary tools the project itself provides.

A project that is a CLI (per the CLI detector) and builds a binary gets a
tool entry, described from its README.
"""

import re

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.models.analysis import Analysis, ProjectTool, ReadmeContent

MAX_DESCRIPTION = 200
MAX_EXAMPLES = 5

CODE_BLOCK = re.compile(r"```(?:bash|sh|shell|console)?[^\n]*\n(.*?)```", re.DOTALL)

# Keywords in the README title/description -> when the tool is useful
WHEN_TO_USE = (
    (
        ("semantic search",),
        "Use for semantic code search when you need to find code by intent rather than text.",
    ),
    (
        ("analysis", "analyzer", "analyze"),
        "Use when you need to analyze code structure, patterns or quality.",
    ),
    (
        ("call graph", "trace"),
        "Use to understand function relationships and the impact of changes.",
    ),
)
DEFAULT_WHEN_TO_USE = "Use when working with this codebase for project-specific operations."


def find_binary(ctx: DetectionContext, name: str) -> str:
    for candidate in (f"bin/{name}", f"dist/{name}", f"build/{name}", name):
        if ctx.is_file(candidate):
            return candidate

    makefile = ctx.read_text("Makefile") or ""
    if re.search(rf"bin/{re.escape(name)}\b|-o\s+bin/|go\s+build.*-o", makefile):
        return f"bin/{name}"

    if ctx.is_file(f"cmd/{name}/main.go") or ctx.is_file("main.go"):
        return f"bin/{name}"

    cargo = ctx.load_toml("Cargo.toml")
    if cargo is not None and ctx.is_file("src/main.rs"):
        return f"target/release/{name}"

    pyproject = ctx.load_toml("pyproject.toml") or {}
    scripts = pyproject.get("project", {}).get("scripts", {})
    if isinstance(scripts, dict) and name in scripts:
        return name
    return ""


def tool_description(readme: ReadmeContent | None) -> str:
    if readme is None or not readme.description:
        return ""
    description = readme.description
    if len(description) > MAX_DESCRIPTION:
        description = description[:MAX_DESCRIPTION]
        cut = description.rfind(".")
        if cut > 0:
            description = description[: cut + 1]
    return description


def usage_examples(readme: ReadmeContent | None, name: str) -> list[str]:
    if readme is None:
        return []
    text = readme.quick_start or readme.usage
    examples: list[str] = []
    candidates = [line for block in CODE_BLOCK.findall(text) for line in block.splitlines()]
    candidates.extend(readme.key_commands)
    for line in candidates:
        line = line.strip().removeprefix("$ ")
        if (line.startswith(f"{name} ") or line.startswith(f"./{name}")) and line not in examples:
            examples.append(line)
            if len(examples) >= MAX_EXAMPLES:
                break
    return examples


def when_to_use(readme: ReadmeContent | None) -> str:
    if readme is None:
        return DEFAULT_WHEN_TO_USE
    text = f"{readme.title} {readme.description}".lower()
    for keywords, advice in WHEN_TO_USE:
        if any(k in text for k in keywords):
            return advice
    return DEFAULT_WHEN_TO_USE


class ProjectToolsDetector(Detector):
    name = "project_tools"
    discipline = WriteDiscipline.DEPENDENT_READ
    fields = ("project_tools",)
    stage = 3

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        if analysis.cli_info is None or not analysis.project_name:
            return {"project_tools": []}

        name = analysis.project_name
        binary = find_binary(ctx, name)
        if not binary:
            return {"project_tools": []}

        readme = analysis.readme_content
        tool = ProjectTool(
            name=name,
            binary_path=binary,
            description=tool_description(readme) or "Project-specific CLI tool",
            usage_examples=usage_examples(readme, name),
            when_to_use=when_to_use(readme),
        )
        return {"project_tools": [tool]}
