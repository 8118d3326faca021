"""Preserve hand-written sections when regenerating Markdown outputs.

Generated content sits between AUTO markers. Anything a user writes between
CUSTOM markers survives regeneration: the AUTO block is replaced and every
CUSTOM block is appended after it, in its original order.

A file with no markers at all is treated as hand-written and kept whole in a
CUSTOM block headed "Previous Content".
"""

import re

AUTO_START = "<!-- ARGUS:AUTO -->"
AUTO_END = "<!-- /ARGUS:AUTO -->"
CUSTOM_START = "<!-- ARGUS:CUSTOM -->"
CUSTOM_END = "<!-- /ARGUS:CUSTOM -->"

_CUSTOM_RE = re.compile(re.escape(CUSTOM_START) + r".*?" + re.escape(CUSTOM_END), re.DOTALL)
_MARKER_RE = re.compile(
    "|".join(re.escape(m) for m in (AUTO_START, AUTO_END, CUSTOM_START, CUSTOM_END)) + r"\n?"
)

PLACEHOLDER_TEXT = (
    "Add your custom documentation here. This section will be preserved when regenerating."
)


def has_markers(content: str) -> bool:
    return AUTO_START in content or CUSTOM_START in content


def wrap_content(content: str) -> str:
    """Enclose generated content in AUTO markers."""
    return f"{AUTO_START}\n{content.rstrip()}\n{AUTO_END}"


def custom_sections(content: str) -> list[str]:
    """Complete CUSTOM blocks (markers included), in document order."""
    return _CUSTOM_RE.findall(content)


def merge(existing: str, generated: str) -> str:
    """Combine freshly generated content with an existing file.

    Args:
        existing: Current file content ("" if the file does not exist)
        generated: New generated content, without markers

    Returns:
        Wrapped generated content followed by the preserved custom blocks,
        ending in one newline
    """
    merged = wrap_content(generated)

    if not has_markers(existing):
        previous = existing.strip()
        if previous:
            merged += (
                f"\n\n{CUSTOM_START}\n## Previous Content\n\n"
                "The following content was preserved from your original file:\n\n"
                f"{previous}\n{CUSTOM_END}"
            )
        return merged + "\n"

    for section in custom_sections(existing):
        merged += f"\n\n{section}"
    return merged + "\n"


def add_custom_placeholder(content: str) -> str:
    """Append an empty custom-notes block unless one already exists."""
    if CUSTOM_START in content:
        return content
    return (
        f"{content.rstrip()}\n\n{CUSTOM_START}\n## Custom Notes\n\n"
        f"{PLACEHOLDER_TEXT}\n\n{CUSTOM_END}\n"
    )


def has_custom_content(content: str) -> bool:
    """Whether any CUSTOM block holds more than the untouched placeholder."""
    for section in custom_sections(content):
        body = section[len(CUSTOM_START) : -len(CUSTOM_END)].strip()
        if body and PLACEHOLDER_TEXT not in body:
            return True
    return False


def strip_markers(content: str) -> str:
    """Remove every marker line, leaving plain Markdown."""
    return _MARKER_RE.sub("", content)
