"""continue.dev output: .continue/config.yaml plus a project rules file."""

from typing import Any

import yaml

from argus.generators.base import GeneratedFile, Generator
from argus.models.analysis import Analysis
from argus.templates.renderer import TemplateRenderer

CONFIG_PATH = ".continue/config.yaml"
RULES_PATH = ".continue/rules/project.md"

# Projects with at least this many files get the codebase context provider
LARGE_PROJECT_FILES = 100

LANGUAGE_RULES: dict[str, list[str]] = {
    "Go": [
        "Format code with gofmt",
        "Return errors as the last value and wrap them with context",
    ],
    "TypeScript": [
        "Prefer const over let; avoid var",
        "Avoid the any type; use explicit interfaces for public APIs",
    ],
    "JavaScript": [
        "Prefer const over let; avoid var",
        "Use async/await over raw promise chains",
    ],
    "Python": [
        "Follow PEP 8 naming and layout",
        "Add type hints to public functions",
    ],
    "Rust": [
        "Return Result for fallible operations instead of panicking",
        "Keep clippy warnings at zero",
    ],
    "Java": ["Document public classes and methods with Javadoc"],
    "Ruby": ["Follow the community Ruby style guide"],
    "C#": ["Follow .NET naming conventions (PascalCase for public members)"],
}

FRAMEWORK_RULES: dict[str, list[str]] = {
    "React": ["Write functional components with hooks"],
    "Next.js": ["Keep server and client components separate"],
    "Vue.js": ["Use the Composition API for new components"],
    "Express.js": ["Keep route handlers thin; move logic into services"],
    "FastAPI": ["Declare request and response models with Pydantic"],
    "Django": ["Keep business logic out of views"],
    "Gin": ["Group routes with router groups and shared middleware"],
}

FRAMEWORK_DOCS: dict[str, str] = {
    "React": "https://react.dev/reference/react",
    "Next.js": "https://nextjs.org/docs",
    "Vue.js": "https://vuejs.org/guide/",
    "Express.js": "https://expressjs.com/en/4x/api.html",
    "FastAPI": "https://fastapi.tiangolo.com/",
    "Django": "https://docs.djangoproject.com/",
    "Gin": "https://gin-gonic.com/docs/",
}


def build_rules(analysis: Analysis) -> list[str]:
    """Plain-text rules in a fixed order: stack, languages, frameworks, git."""
    stack = analysis.tech_stack
    rules: list[str] = []
    if stack.languages:
        rules.append("Languages in use: " + ", ".join(lang.name for lang in stack.languages))
    if stack.frameworks:
        rules.append("Frameworks in use: " + ", ".join(fw.name for fw in stack.frameworks))

    for lang in stack.languages:
        rules.extend(LANGUAGE_RULES.get(lang.name, []))
    for fw in stack.frameworks:
        rules.extend(FRAMEWORK_RULES.get(fw.name, []))

    git = analysis.git_conventions
    if git is not None:
        if git.commit_convention is not None:
            rules.append(f"Write commit messages in {git.commit_convention.style} style")
        if git.branch_convention is not None and git.branch_convention.format:
            rules.append(f"Branch naming: {git.branch_convention.format}")

    return list(dict.fromkeys(rules))


def build_config(analysis: Analysis) -> dict[str, Any]:
    config: dict[str, Any] = {
        "name": analysis.project_name,
        "version": "1.0.0",
        "schema": "v1",
        "rules": build_rules(analysis),
    }

    context = [{"provider": "code"}, {"provider": "diff"}, {"provider": "terminal"}]
    total_files = sum(d.file_count for d in analysis.structure.directories)
    if total_files >= LARGE_PROJECT_FILES:
        context.append({"provider": "codebase"})
    config["context"] = context

    docs = [
        {"name": fw.name, "startUrl": FRAMEWORK_DOCS[fw.name]}
        for fw in analysis.tech_stack.frameworks
        if fw.name in FRAMEWORK_DOCS
    ]
    if docs:
        config["docs"] = docs
    return config


class ContinueGenerator(Generator):
    """Writes the continue.dev assistant config and a rules file."""

    name = "continue"

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self._renderer = renderer or TemplateRenderer()

    def generate(self, analysis: Analysis) -> list[GeneratedFile]:
        body = yaml.safe_dump(
            build_config(analysis), default_flow_style=False, sort_keys=False, allow_unicode=True
        )
        header = f"# Continue.dev Configuration for {analysis.project_name}\n\n"
        return [
            GeneratedFile(path=CONFIG_PATH, content=header + body),
            GeneratedFile(path=RULES_PATH, content=self._renderer.render("continue-rules.md.j2", analysis)),
        ]
