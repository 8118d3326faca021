"""Pattern conventions: documentation, logging, error handling, architecture.

Source files are sampled (50 for comments, 30 for logging and errors) so
the scan stays bounded on large repositories. Conventions from this
detector follow the base conventions in Analysis.conventions.
"""

import re

from argus.analyzers.base import (
    DetectionContext,
    Detector,
    DetectorResult,
    WriteDiscipline,
)
from argus.models.analysis import Analysis, Convention, ConventionCategory

Cat = ConventionCategory

COMMENT_SAMPLE_LIMIT = 50
CODE_SAMPLE_LIMIT = 30

DOCUMENTABLE_EXTS = frozenset(
    {
        ".js", ".jsx", ".ts", ".tsx", ".java", ".kt", ".scala", ".py", ".go", ".rs",
        ".rb", ".cs", ".cpp", ".c", ".h", ".hpp", ".swift", ".php",
    }
)
CODE_EXTS = (".js", ".jsx", ".ts", ".tsx", ".go", ".py", ".rs", ".rb", ".vue", ".svelte")

DOC_PATTERNS: dict[str, tuple[tuple[str, ...], re.Pattern[str]]] = {
    "jsdoc": ((".js", ".jsx", ".ts", ".tsx"), re.compile(r"/\*\*[\s\S]*?@(param|returns|type|example)")),
    "javadoc": ((".java", ".kt"), re.compile(r"/\*\*[\s\S]*?@(param|return|throws|see)")),
    "pydoc": ((".py",), re.compile(r'"""[\s\S]*?(Args|Returns|Raises|Example):')),
    "godoc": ((".go",), re.compile(r"(?m)^// [A-Z][a-zA-Z]+ (is|returns|creates|handles)")),
    "xmldoc": ((".cs",), re.compile(r"/// <(summary|param|returns)>")),
}

DOC_CONVENTIONS = {
    "jsdoc": ("JSDoc comments for function documentation", "/** @param {string} name - User name */"),
    "javadoc": (
        "Javadoc comments for class and method documentation",
        "/** @param name the user name */",
    ),
    "pydoc": ("Google-style Python docstrings", '"""Args:\\n    name: User name\\n"""'),
    "godoc": (
        "Go doc comments (start with function name)",
        "// HandleRequest processes incoming HTTP requests",
    ),
    "xmldoc": ("XML documentation comments (C#)", "/// <summary>Handles the request</summary>"),
}

TODO_PATTERN = re.compile(r"(?i)\b(TODO|FIXME|HACK|XXX)[\s:]+")

# Checked in order; the first logger with the highest count wins ties
LOG_PATTERNS: tuple[tuple[str, re.Pattern[str], str], ...] = (
    ("console", re.compile(r"console\.(log|info|warn|error|debug)\("), "console.log/warn/error for logging"),
    ("python", re.compile(r"logging\.(info|warning|error|debug|critical|getLogger)\("), "Python logging module"),
    ("structlog", re.compile(r"structlog\.get_logger\("), "structlog structured logging"),
    ("go-slog", re.compile(r"slog\.(Info|Warn|Error|Debug)\("), "Go structured logging (slog)"),
    ("go-zap", re.compile(r"(logger|zap)\.(Info|Warn|Error|Debug)\("), "Uber's Zap logger"),
    (
        "go-zerolog",
        re.compile(r"(log|logger)\.(Info|Warn|Error|Debug)\(\)\.(Msg|Msgf)\("),
        "Zerolog (zero-allocation JSON logging)",
    ),
    ("go-log", re.compile(r"log\.(Print|Printf|Println|Fatal|Fatalf|Panic)\("), "Go standard library log package"),
    ("winston", re.compile(r"winston\.createLogger\("), "Winston logger with structured logging"),
    ("pino", re.compile(r"\bpino\("), "Pino logger (fast JSON logging)"),
    ("rust-log", re.compile(r"\b(info|warn|error|debug|trace)!\("), "Rust log crate macros"),
    ("ruby", re.compile(r"(Rails\.logger|logger)\.(info|warn|error|debug)"), "Ruby Logger / Rails.logger"),
)

TRY_CATCH_PATTERN = re.compile(r"try\s*\{")
GO_ERROR_PATTERN = re.compile(r"if\s+err\s*!=\s*nil")
RESULT_TYPE_PATTERN = re.compile(r"Result<|Result::")
ASYNC_PATTERN = re.compile(r"async\s+(function|def|\(|fn)|await\s+")


class PatternsDetector(Detector):
    """Detects documentation, logging, error-handling and architecture conventions."""

    name = "patterns"
    discipline = WriteDiscipline.SHARED_APPEND
    fields = ("conventions",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        conventions: list[Convention] = []
        conventions.extend(self._comments(ctx))
        conventions.extend(self._logging(ctx))
        conventions.extend(self._error_handling(ctx))
        conventions.extend(self._architecture(ctx))
        return {"conventions": conventions}

    def _sample(self, ctx: DetectionContext, exts, limit: int) -> list[tuple[str, str]]:
        """(extension, content) of the first `limit` readable files."""
        samples = []
        for entry in ctx.iter_files():
            if len(samples) >= limit:
                break
            if entry.ext not in exts:
                continue
            content = ctx.read_text(entry.path)
            if content is not None:
                samples.append((entry.ext, content))
        return samples

    def _comments(self, ctx: DetectionContext) -> list[Convention]:
        counts = dict.fromkeys(DOC_PATTERNS, 0)
        todos = 0
        for ext, content in self._sample(ctx, DOCUMENTABLE_EXTS, COMMENT_SAMPLE_LIMIT):
            for key, (exts, pattern) in DOC_PATTERNS.items():
                if ext in exts and pattern.search(content):
                    counts[key] += 1
            todos += len(TODO_PATTERN.findall(content))

        conventions = []
        for key, count in counts.items():
            if count >= 5:
                description, example = DOC_CONVENTIONS[key]
                conventions.append(Convention(Cat.DOCUMENTATION, description, example))
        if todos >= 10:
            conventions.append(
                Convention(Cat.DOCUMENTATION, "TODO/FIXME comments used for tracking work items")
            )
        return conventions

    def _logging(self, ctx: DetectionContext) -> list[Convention]:
        counts = {name: 0 for name, _, _ in LOG_PATTERNS}
        for _, content in self._sample(ctx, CODE_EXTS, CODE_SAMPLE_LIMIT):
            for name, pattern, _ in LOG_PATTERNS:
                if pattern.search(content):
                    counts[name] += 1

        best, best_count = None, 0
        for name, _, description in LOG_PATTERNS:
            if counts[name] >= 3 and counts[name] > best_count:
                best, best_count = description, counts[name]
        return [Convention(Cat.LOGGING, best)] if best else []

    def _error_handling(self, ctx: DetectionContext) -> list[Convention]:
        try_catch = go_errors = results = async_files = 0
        for _, content in self._sample(ctx, CODE_EXTS, CODE_SAMPLE_LIMIT):
            try_catch += bool(TRY_CATCH_PATTERN.search(content))
            go_errors += bool(GO_ERROR_PATTERN.search(content))
            results += bool(RESULT_TYPE_PATTERN.search(content))
            async_files += bool(ASYNC_PATTERN.search(content))

        conventions = []
        if go_errors >= 5:
            conventions.append(
                Convention(
                    Cat.ERROR_HANDLING,
                    "Go-style explicit error checking (if err != nil)",
                    'if err != nil { return fmt.Errorf("context: %w", err) }',
                )
            )
        if results >= 3:
            conventions.append(
                Convention(Cat.ERROR_HANDLING, "Result/Option types for error handling (Rust-style)")
            )
        if async_files >= 5:
            if try_catch >= 3:
                conventions.append(
                    Convention(
                        Cat.ERROR_HANDLING,
                        "Async/await with try/catch around awaited calls",
                        "try { await fetchUser() } catch (err) { ... }",
                    )
                )
            else:
                conventions.append(
                    Convention(Cat.CODE_STYLE, "Async/await pattern for asynchronous operations")
                )
        return conventions

    def _architecture(self, ctx: DetectionContext) -> list[Convention]:
        dirs = {entry.name.lower() for entry in ctx.iter_dirs()}
        conventions = []
        if {"models", "views", "controllers"} <= dirs:
            conventions.append(
                Convention(Cat.ARCHITECTURE, "MVC (Model-View-Controller) architecture")
            )
        if "domain" in dirs and ("infrastructure" in dirs or "adapters" in dirs):
            conventions.append(
                Convention(Cat.ARCHITECTURE, "Clean/Hexagonal architecture (domain separation)")
            )
        if "features" in dirs or "modules" in dirs:
            conventions.append(Convention(Cat.ARCHITECTURE, "Feature/Module-based architecture"))
        if "repositories" in dirs or "repository" in dirs:
            conventions.append(Convention(Cat.ARCHITECTURE, "Repository pattern for data access"))
        if "services" in dirs or "service" in dirs:
            conventions.append(Convention(Cat.ARCHITECTURE, "Service layer for business logic"))
        return conventions
