"""Prompt builders for AI enrichment.

Each builder is a pure function of the Analysis: the same Analysis always
yields the same prompt text. Insight prompts ask for a JSON array of
{"title", "description"} objects; the summary prompt asks for plain text.
"""

from collections.abc import Callable

from argus.models.analysis import Analysis

# Conventions included in the conventions prompt
MAX_PROMPT_CONVENTIONS = 10

_JSON_INSTRUCTION = (
    '\nRespond with a JSON array of objects, each with "title" and "description" fields.\n'
    "Respond with ONLY the JSON array.\n"
)

_JSON_EXAMPLE = (
    '[{"title":"Error wrapping","description":"Always wrap errors with context '
    'before returning them"}]'
)


def _names(items: list) -> str:
    return ", ".join(item.name for item in items)


def build_summary_prompt(analysis: Analysis) -> str:
    """Prompt for a 2-3 sentence project summary."""
    lines = [
        "You are a technical writer. Based on the following codebase analysis, "
        "write a concise 2-3 sentence project summary.",
        "",
        f"Project: {analysis.project_name}",
    ]
    stack = analysis.tech_stack
    if stack.languages:
        lines.append(f"Languages: {_names(stack.languages)}")
    if stack.frameworks:
        lines.append(f"Frameworks: {_names(stack.frameworks)}")
    if analysis.readme_content and analysis.readme_content.description:
        lines.append(f"README description: {analysis.readme_content.description}")

    dirs = [f"{d.path} ({d.purpose})" for d in analysis.structure.directories if d.purpose]
    if dirs:
        lines.append(f"Key directories: {', '.join(dirs)}")

    lines.append("")
    lines.append("Respond with ONLY the summary text, no headers or formatting.")
    return "\n".join(lines) + "\n"


def build_conventions_prompt(analysis: Analysis) -> str:
    """Prompt for 3-5 additional coding conventions."""
    lines = [
        "You are a senior developer. Based on this codebase analysis, suggest 3-5 "
        "additional coding conventions that would benefit this project.",
        "",
        f"Project: {analysis.project_name}",
    ]
    if primary := analysis.tech_stack.primary_language:
        lines.append(f"Primary language: {primary}")
    if analysis.conventions:
        lines.append("Already detected conventions:")
        for convention in analysis.conventions[:MAX_PROMPT_CONVENTIONS]:
            lines.append(f"- [{convention.category.value}] {convention.description}")

    prompt = "\n".join(lines) + "\n"
    prompt += (
        '\nRespond with a JSON array of objects, each with "title" and "description" '
        f"fields. Example:\n{_JSON_EXAMPLE}\nRespond with ONLY the JSON array.\n"
    )
    return prompt


def build_architecture_prompt(analysis: Analysis) -> str:
    """Prompt for 2-4 architectural insights."""
    lines = [
        "You are a software architect. Based on this codebase analysis, provide 2-4 "
        "architectural insights or recommendations.",
        "",
        f"Project: {analysis.project_name}",
    ]
    info = analysis.architecture_info
    if info is not None:
        if info.style:
            lines.append(f"Architecture style: {info.style}")
        if info.layers:
            lines.append("Layers:")
            lines.extend(f"- {layer.name}: {layer.purpose}" for layer in info.layers)

    dirs = [d for d in analysis.structure.directories if d.purpose]
    if dirs:
        lines.append("Directory structure:")
        lines.extend(f"- {d.path}: {d.purpose}" for d in dirs)

    return "\n".join(lines) + "\n" + _JSON_INSTRUCTION


def build_best_practices_prompt(analysis: Analysis) -> str:
    """Prompt for 3-5 stack-specific best practices."""
    lines = [
        "You are a senior developer. Based on this project's tech stack, suggest 3-5 "
        "best practices specific to this project.",
        "",
        f"Project: {analysis.project_name}",
    ]
    stack = analysis.tech_stack
    if stack.languages:
        lines.append(f"Languages: {_names(stack.languages)}")
    if stack.frameworks:
        lines.append(f"Frameworks: {_names(stack.frameworks)}")
    if stack.databases:
        lines.append(f"Databases: {', '.join(stack.databases)}")

    return "\n".join(lines) + "\n" + _JSON_INSTRUCTION


# Pattern categories summarized in the patterns prompt, in order
PATTERN_SUMMARY_CATEGORIES = (
    ("Testing", "testing"),
    ("Data Fetching", "data_fetching"),
    ("API Patterns", "api_patterns"),
    ("Database", "db_orm"),
    ("Go Patterns", "go_patterns"),
    ("Authentication", "auth"),
)


def build_patterns_prompt(analysis: Analysis) -> str:
    """Prompt for 2-4 insights on the detected code patterns."""
    lines = [
        "You are a code reviewer. Based on the detected code patterns, suggest 2-4 "
        "insights about how this project uses patterns.",
        "",
        f"Project: {analysis.project_name}",
    ]
    if analysis.code_patterns is not None:
        for label, attr in PATTERN_SUMMARY_CATEGORIES:
            patterns = getattr(analysis.code_patterns, attr)
            if patterns:
                lines.append(f"{label}: {_names(patterns)}")

    return "\n".join(lines) + "\n" + _JSON_INSTRUCTION


# Enrichment calls in a fixed order: name -> prompt builder
PROMPT_BUILDERS: dict[str, Callable[[Analysis], str]] = {
    "summary": build_summary_prompt,
    "conventions": build_conventions_prompt,
    "architecture": build_architecture_prompt,
    "best_practices": build_best_practices_prompt,
    "patterns": build_patterns_prompt,
}
