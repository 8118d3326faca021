"""CLI flag and output conventions.

Runs after stage 2 because it needs the detected tech stack to tell
whether the project is a command-line tool at all.
"""

import re

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.models.analysis import Analysis, CLIInfo, FrameworkCategory, Indicator

VERBOSE_PATTERNS = tuple(
    re.compile(p)
    for p in (r"-v\b.*verbose", r"--verbose", r"""["']verbose["']""", r"\bverbose\s*[:=]")
)
DRY_RUN_PATTERNS = tuple(
    re.compile(p)
    for p in (r"-n\b.*dry-run", r"--dry-run", r"""["']dry[-_]run["']""", r"""["']dryRun["']""")
)

# Checked in order
INDICATORS = (
    ("✅", "Success"),
    ("❌", "Error"),
    ("⚠️", "Warning"),
    ("🔍", "Scanning/analyzing"),
    ("🔄", "Processing/syncing"),
    ("📊", "Analysis results"),
    ("📄", "File output"),
    ("✓", "Success"),
    ("✗", "Error"),
    ("→", "Progress indicator"),
)

CLI_ENTRY_NAMES = frozenset({"main.go", "cli.py", "__main__.py", "main.py", "cli.js", "cli.ts", "main.rs"})
MAX_CLI_FILES = 50


def is_cli_project(ctx: DetectionContext, analysis: Analysis) -> bool:
    if any(fw.category == FrameworkCategory.CLI for fw in analysis.tech_stack.frameworks):
        return True
    return any(f.path.startswith("cmd/") and f.ext == ".go" for f in ctx.iter_files())


def cli_source_files(ctx: DetectionContext) -> list[str]:
    """Entry points and command trees, in inventory order."""
    paths = []
    for entry in ctx.iter_files():
        if entry.path.startswith(("cmd/", "bin/")) or entry.name in CLI_ENTRY_NAMES:
            if entry.ext in (".go", ".py", ".js", ".ts", ".rs", ".mjs"):
                paths.append(entry.path)
    return paths[:MAX_CLI_FILES]


class CLIDetector(Detector):
    name = "cli"
    discipline = WriteDiscipline.DEPENDENT_READ
    fields = ("cli_info",)
    stage = 3

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        if not is_cli_project(ctx, analysis):
            return {"cli_info": None}

        info = CLIInfo()
        seen: set[str] = set()
        for path in cli_source_files(ctx):
            content = ctx.read_text(path)
            if content is None:
                continue
            if not info.verbose_flag and any(p.search(content) for p in VERBOSE_PATTERNS):
                info.verbose_flag = "-v, --verbose"
            if not info.dry_run_flag and any(p.search(content) for p in DRY_RUN_PATTERNS):
                info.dry_run_flag = "-n, --dry-run"
            for symbol, meaning in INDICATORS:
                if symbol not in seen and symbol in content:
                    seen.add(symbol)
                    info.indicators.append(Indicator(symbol=symbol, meaning=meaning))

        # Keep the fixed indicator order regardless of file order
        order = {symbol: i for i, (symbol, _) in enumerate(INDICATORS)}
        info.indicators.sort(key=lambda ind: order[ind.symbol])

        if not (info.verbose_flag or info.dry_run_flag or info.indicators):
            return {"cli_info": None}
        return {"cli_info": info}
