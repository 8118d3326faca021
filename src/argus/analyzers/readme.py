"""README extraction.

Pulls the title, a short description and the common sections (features,
installation, quick start, usage, prerequisites) out of the root README,
plus key shell commands and numeric model specs.
"""

import html
import re

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.models.analysis import Analysis, ReadmeContent

README_NAMES = ("README.md", "readme.md", "Readme.md", "README.MD", "README.rst", "README.txt", "README", "readme")

MAX_DESCRIPTION = 500
MAX_SECTION = 1000
MAX_ITEMS = 10

SECTION_PATTERN = re.compile(r"(?m)^#{2,3}\s+(.+?)\s*#*\s*$")
HTML_TAG = re.compile(r"<[^>]+>")
BOLD = re.compile(r"\*\*([^*]+)\*\*")
ITALIC = re.compile(r"(?<![\w*])[*_]([^*_]+)[*_](?![\w*])")
INLINE_CODE = re.compile(r"`([^`]+)`")
LINK = re.compile(r"\[([^\]]+)\]\([^)]+\)")
FENCE = re.compile(r"(?ms)^\s*```\s*([\w-]*)[^\n]*\n(.*?)^\s*```")
SPEC_LINE = re.compile(r"^\s*[-*|]?\s*\**([A-Za-z][\w ()/.-]*?)\**\s*[:|]\s*\**([\d][\d.,]*\s*[A-Za-z%]*)")

SHELL_LANGUAGES = frozenset({"bash", "sh", "shell", "console", "zsh"})

FEATURE_SECTIONS = ("features", "key features", "what it does", "highlights")
INSTALL_SECTIONS = ("installation", "install", "setup")
QUICK_START_SECTIONS = ("quick start", "quickstart", "getting started")
USAGE_SECTIONS = ("usage", "how to use")
PREREQUISITE_SECTIONS = ("prerequisites", "requirements", "dependencies")
SPEC_SECTION_WORDS = ("model", "specs", "specifications")

PROJECT_TYPE_KEYWORDS = (
    (
        "ml",
        (
            "machine learning",
            "neural network",
            "training",
            "inference",
            "dataset",
            "fine-tun",
            "pytorch",
            "tensorflow",
        ),
    ),
    ("cli", ("command-line", "command line", "cli tool", " cli ", "terminal")),
    ("web", ("web app", "web application", "frontend", "rest api", "server", "dashboard")),
    ("library", ("library", "sdk", "package for", "import ")),
)


def clean_markdown(text: str) -> str:
    """Strip bold, italic, inline code and link syntax."""
    text = BOLD.sub(r"\1", text)
    text = INLINE_CODE.sub(r"\1", text)
    text = LINK.sub(r"\1", text)
    text = ITALIC.sub(r"\1", text)
    return text.strip()


def clean_html(text: str) -> str:
    return html.unescape(HTML_TAG.sub("", text)).strip()


def parse_sections(content: str) -> dict[str, str]:
    """Level 2 and 3 headings to their section bodies; first heading wins."""
    sections: dict[str, str] = {}
    matches = list(SECTION_PATTERN.finditer(content))
    for i, match in enumerate(matches):
        name = clean_markdown(match.group(1)).lower()
        name = re.sub(r"^[^\w]+", "", name).strip()
        end = matches[i + 1].start() if i + 1 < len(matches) else len(content)
        sections.setdefault(name, content[match.end():end])
    return sections


def extract_bullets(section: str) -> list[str]:
    points = []
    for line in section.splitlines():
        stripped = line.strip()
        if stripped.startswith(("- ", "* ", "+ ")):
            point = clean_markdown(stripped[2:])
            if point and len(point) < 200:
                points.append(point)
    return points[:MAX_ITEMS]


def extract_title(lines: list[str]) -> str:
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("# "):
            return clean_markdown(stripped[2:])
        if "<h1" in stripped:
            title = clean_html(stripped)
            if title:
                return title
    return ""


def extract_description(lines: list[str]) -> str:
    """First prose paragraph after the title, skipping badges and HTML chrome."""
    found_title = False
    in_code = False
    collected: list[str] = []

    for line in lines:
        stripped = line.strip()
        if not found_title:
            found_title = stripped.startswith("# ") or "<h1" in stripped
            continue
        if stripped.startswith("```"):
            in_code = not in_code
            continue
        if in_code or line.startswith(("    ", "\t")):
            continue
        if stripped.startswith("#"):
            break
        if not stripped:
            if collected:
                break
            continue

        if not collected:
            if "shields.io" in stripped or "badge" in stripped or "![" in stripped:
                continue
            if stripped.startswith(("<!--", ">")) or stripped in ("---", "***", "___"):
                continue
            if stripped.startswith("<"):
                text = clean_html(stripped)
                if text and "<img" not in stripped:
                    collected.append(text)
                continue
        collected.append(stripped)

    description = clean_html(clean_markdown(" ".join(collected)))
    if len(description) > MAX_DESCRIPTION:
        description = description[: MAX_DESCRIPTION - 3] + "..."
    return description


def extract_key_commands(content: str) -> list[str]:
    """Command lines from fenced shell blocks, `$ ` prompt stripped."""
    commands: list[str] = []
    for match in FENCE.finditer(content):
        if match.group(1).lower() not in SHELL_LANGUAGES:
            continue
        for line in match.group(2).splitlines():
            command = line.strip()
            if command.startswith("$ "):
                command = command[2:].strip()
            if not command or command.startswith("#") or command in commands:
                continue
            commands.append(command)
            if len(commands) >= MAX_ITEMS:
                return commands
    return commands


def extract_model_specs(sections: dict[str, str]) -> dict[str, str]:
    specs: dict[str, str] = {}
    for name, body in sections.items():
        if not any(word in name for word in SPEC_SECTION_WORDS):
            continue
        for line in body.splitlines():
            match = SPEC_LINE.match(line)
            if match:
                specs.setdefault(match.group(1).strip(), match.group(2).strip())
    return specs


def infer_project_type(content: str) -> str:
    text = f" {content.lower()} "
    for project_type, keywords in PROJECT_TYPE_KEYWORDS:
        hits = sum(1 for keyword in keywords if keyword in text)
        if hits >= 2:
            return project_type
    return ""


def _first_section(sections: dict[str, str], names: tuple[str, ...]) -> str | None:
    for name in names:
        if name in sections:
            return sections[name]
    return None


def _clean_section(section: str | None) -> str:
    if section is None:
        return ""
    section = section.strip()
    if len(section) > MAX_SECTION:
        section = section[: MAX_SECTION - 3] + "..."
    return section


def parse_readme(content: str) -> ReadmeContent:
    lines = content.splitlines()
    sections = parse_sections(content)

    features: list[str] = []
    for name in FEATURE_SECTIONS:
        if name in sections:
            features = extract_bullets(sections[name])
            if features:
                break

    prerequisites = _first_section(sections, PREREQUISITE_SECTIONS)
    return ReadmeContent(
        title=extract_title(lines),
        description=extract_description(lines),
        features=features,
        installation=_clean_section(_first_section(sections, INSTALL_SECTIONS)),
        quick_start=_clean_section(_first_section(sections, QUICK_START_SECTIONS)),
        usage=_clean_section(_first_section(sections, USAGE_SECTIONS)),
        prerequisites=extract_bullets(prerequisites) if prerequisites else [],
        key_commands=extract_key_commands(content),
        model_specs=extract_model_specs(sections),
        project_type=infer_project_type(content),
    )


class ReadmeDetector(Detector):
    name = "readme"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("readme_content",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        for name in README_NAMES:
            content = ctx.read_text(name)
            if content is not None:
                return {"readme_content": parse_readme(content)}
        return {"readme_content": None}
