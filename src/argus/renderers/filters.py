"""Jinja2 filters for rendering an Analysis into Markdown.

Filters here are display-only: they never change the Analysis, they only
reshape lists for the templates.
"""

import re
from typing import Any

from argus.models.analysis import Convention, Dependency, DependencyType, Framework

# Order in which framework categories are listed
FRAMEWORK_CATEGORY_ORDER: list[tuple[str, str]] = [
    ("frontend", "Frontend"),
    ("backend", "Backend"),
    ("fullstack", "Full-Stack"),
    ("database", "Database/ORM"),
    ("testing", "Testing"),
    ("styling", "Styling"),
    ("state", "State Management"),
    ("cli", "CLI"),
    ("tooling", "Tooling"),
    ("other", "Other"),
]

_WHITESPACE_RE = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip().lower().rstrip(".")


def dedupe_conventions(conventions: list[Convention]) -> list[Convention]:
    """Drop conventions whose description repeats an earlier one.

    Descriptions are compared case-insensitively with whitespace collapsed
    and a trailing period ignored. The first occurrence wins, so detector
    order is preserved.

    Examples:
        "Use camelCase." and "use camelCase" collapse into the first one.
    """
    seen: set[str] = set()
    unique: list[Convention] = []
    for convention in conventions:
        key = _normalize(convention.description)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(convention)
    return unique


def group_conventions(conventions: list[Convention]) -> list[tuple[str, list[Convention]]]:
    """Deduplicate, then group by category in first-seen order."""
    groups: dict[str, list[Convention]] = {}
    for convention in dedupe_conventions(conventions):
        groups.setdefault(convention.category.value, []).append(convention)
    return list(groups.items())


def group_frameworks(frameworks: list[Framework]) -> list[tuple[str, list[Framework]]]:
    """Frameworks grouped under display labels in a fixed category order."""
    grouped: list[tuple[str, list[Framework]]] = []
    for value, label in FRAMEWORK_CATEGORY_ORDER:
        members = [fw for fw in frameworks if fw.category.value == value]
        if members:
            grouped.append((label, members))
    return grouped


def split_dependencies(dependencies: list[Dependency]) -> dict[str, list[Dependency]]:
    return {
        "runtime": [d for d in dependencies if d.type == DependencyType.RUNTIME],
        "dev": [d for d in dependencies if d.type == DependencyType.DEV],
    }


def title_case(value: str) -> str:
    """Title-case a category id: error-handling -> Error Handling."""
    return " ".join(part.capitalize() for part in re.split(r"[-_\s]+", value) if part)


def percent(value: Any) -> str:
    try:
        return f"{float(value):.1f}%"
    except (TypeError, ValueError):
        return ""


def is_empty_section(content: str) -> bool:
    """Check if rendered section content is effectively empty.

    Args:
        content: Section content to check.

    Returns:
        True if the content is empty or only whitespace/N/A.
    """
    if not content:
        return True

    stripped = content.strip()
    if not stripped:
        return True

    return stripped.upper() == "N/A"


FILTERS = {
    "dedupe_conventions": dedupe_conventions,
    "group_conventions": group_conventions,
    "group_frameworks": group_frameworks,
    "split_dependencies": split_dependencies,
    "title_case": title_case,
    "percent": percent,
}
