"""Output generators.

Each generator turns an Analysis into files for one AI coding assistant:

- claude: CLAUDE.md
- claude-code: .claude/ rules, agents, skills, settings and .mcp.json
- cursor: .cursorrules
- copilot: .github/copilot-instructions.md
- continue: .continue/config.yaml and .continue/rules/project.md

Monorepo scans add a root overview (generators.monorepo) and existing
markdown outputs are merged through generators.merger.
"""

from argus.config import ClaudeCodeConfig
from argus.generators.base import GeneratedFile, Generator, write_outputs
from argus.generators.claude_code import ClaudeCodeGenerator
from argus.generators.continue_dev import ContinueGenerator
from argus.generators.markdown import ClaudeGenerator, CopilotGenerator, CursorGenerator
from argus.templates.renderer import TemplateRenderer

__all__ = [
    "ClaudeCodeGenerator",
    "ClaudeGenerator",
    "ContinueGenerator",
    "CopilotGenerator",
    "CursorGenerator",
    "GENERATOR_IDS",
    "GeneratedFile",
    "Generator",
    "create_generators",
    "resolve_formats",
    "write_outputs",
]

# Generator ids in the order "all" expands to
GENERATOR_IDS = ("claude", "claude-code", "cursor", "copilot", "continue")


def resolve_formats(formats: list[str]) -> list[str]:
    """Expand "all" and drop duplicates, keeping first-seen order.

    Raises:
        ValueError: On an unknown id
    """
    resolved: list[str] = []
    for fmt in formats:
        if fmt == "all":
            candidates: tuple[str, ...] = GENERATOR_IDS
        elif fmt in GENERATOR_IDS:
            candidates = (fmt,)
        else:
            raise ValueError(
                f"Unknown output format '{fmt}', must be one of: {', '.join(GENERATOR_IDS)}, all"
            )
        resolved.extend(c for c in candidates if c not in resolved)
    return resolved


def create_generators(
    formats: list[str],
    claude_code: ClaudeCodeConfig | None = None,
) -> list[Generator]:
    """Instantiate generators for the given ids (sharing one renderer)."""
    renderer = TemplateRenderer()
    generators: list[Generator] = []
    for fmt in resolve_formats(formats):
        if fmt == "claude":
            generators.append(ClaudeGenerator(renderer))
        elif fmt == "claude-code":
            generators.append(ClaudeCodeGenerator(claude_code, renderer))
        elif fmt == "cursor":
            generators.append(CursorGenerator(renderer))
        elif fmt == "copilot":
            generators.append(CopilotGenerator(renderer))
        elif fmt == "continue":
            generators.append(ContinueGenerator(renderer))
    return generators
