"""Base convention detection.

Language-agnostic signals: file naming, import style, TypeScript
configuration, test layout, code-style tooling and component conventions.
This detector's conventions come first in Analysis.conventions.
"""

import re
from collections import Counter

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.analyzers.manifests import as_mapping
from argus.models.analysis import Analysis, Convention, ConventionCategory

Cat = ConventionCategory

NAMING_SOURCE_EXTS = frozenset(
    {".js", ".jsx", ".ts", ".tsx", ".go", ".py", ".rs", ".rb", ".vue", ".svelte"}
)
COMPONENT_DIRS = frozenset({"components", "ui", "views", "pages", "layouts", "features", "modules"})
UTILITY_DIRS = frozenset({"utils", "lib", "helpers", "hooks", "services", "api"})

# Dominant-pattern ties are broken in this order
NAMING_STYLES = ("PascalCase", "camelCase", "kebab-case", "snake_case")
NAMING_EXAMPLES = {
    "PascalCase": "UserCard.tsx, DatePicker.tsx",
    "camelCase": "formatDate.ts, useAuth.ts",
    "kebab-case": "user-card.tsx, date-picker.tsx",
    "snake_case": "user_card.py, date_picker.py",
}

IMPORT_PATTERN = re.compile(r"""(?:import|from)\s+['"]([^'"]+)['"]""")
IMPORT_SAMPLE_LIMIT = 20

ESLINT_FILES = (
    ".eslintrc",
    ".eslintrc.js",
    ".eslintrc.cjs",
    ".eslintrc.json",
    ".eslintrc.yml",
    "eslint.config.js",
    "eslint.config.mjs",
)
PRETTIER_FILES = (
    ".prettierrc",
    ".prettierrc.js",
    ".prettierrc.json",
    ".prettierrc.yml",
    "prettier.config.js",
    "prettier.config.mjs",
)

GO_FORMAT_HINT = "Go project - use 'go fmt' or 'gofmt' for formatting"


def naming_style(name: str) -> str | None:
    """Classify a basename (without extension) into a naming style."""
    if len(name) < 2:
        return None
    has_dash = "-" in name
    has_underscore = "_" in name
    if has_dash and not has_underscore:
        return "kebab-case"
    if has_underscore and not has_dash:
        return "snake_case" if name == name.lower() else None
    if not has_dash and not has_underscore:
        if name[0].isascii() and name[0].isupper():
            return "PascalCase"
        if name[0].isascii() and name[0].islower() and any(c.isupper() for c in name[1:]):
            return "camelCase"
    return None


def dominant_style(counts: Counter[str]) -> tuple[str, int]:
    best, best_count = "", 0
    for style in NAMING_STYLES:
        if counts[style] > best_count:
            best, best_count = style, counts[style]
    return best, best_count


class ConventionsDetector(Detector):
    """Detects base coding conventions."""

    name = "conventions"
    discipline = WriteDiscipline.SHARED_APPEND
    fields = ("conventions",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        conventions: list[Convention] = []
        conventions.extend(self._file_naming(ctx))
        conventions.extend(self._import_styles(ctx))
        conventions.extend(self._typescript(ctx))
        conventions.extend(self._testing(ctx))
        conventions.extend(self._code_style(ctx))
        conventions.extend(self._components(ctx))
        return {"conventions": conventions}

    def _file_naming(self, ctx: DetectionContext) -> list[Convention]:
        components: Counter[str] = Counter()
        utilities: Counter[str] = Counter()

        for entry in ctx.iter_files():
            if entry.ext not in NAMING_SOURCE_EXTS:
                continue
            base = entry.name[: -len(entry.ext)] if entry.ext else entry.name
            if base in ("index", "main") or "." in base:
                continue
            style = naming_style(base)
            if style is None:
                continue

            dirs = [part.lower() for part in entry.path.split("/")[:-1]]
            if any(part in ("test", "tests", "__tests__") for part in dirs):
                continue
            if base.endswith("_test"):
                continue
            if any(part in COMPONENT_DIRS for part in dirs):
                components[style] += 1
            elif any(part in UTILITY_DIRS for part in dirs):
                utilities[style] += 1

        conventions = []
        style, count = dominant_style(components)
        if count >= 3:
            conventions.append(
                Convention(Cat.NAMING, f"Components use {style} naming", NAMING_EXAMPLES[style])
            )
        style, count = dominant_style(utilities)
        if count >= 3:
            conventions.append(
                Convention(Cat.NAMING, f"Utility files use {style} naming", NAMING_EXAMPLES[style])
            )
        return conventions

    def _import_styles(self, ctx: DetectionContext) -> list[Convention]:
        conventions = []
        tsconfig = ctx.load_json("tsconfig.json")
        if tsconfig is not None:
            options = as_mapping(tsconfig.get("compilerOptions"))
            paths = as_mapping(options.get("paths"))
            if paths:
                aliases = sorted(alias.removesuffix("/*") for alias in paths)
                conventions.append(
                    Convention(
                        Cat.IMPORTS,
                        "Path aliases configured: " + ", ".join(aliases),
                        f"import {{ Button }} from '{aliases[0]}/components/Button'",
                    )
                )
            base_url = options.get("baseUrl")
            if isinstance(base_url, str) and base_url:
                conventions.append(
                    Convention(Cat.IMPORTS, f"Absolute imports enabled with baseUrl: {base_url}")
                )

        at_imports = tilde_imports = relative_imports = 0
        sampled = 0
        for entry in ctx.source_files((".js", ".jsx", ".ts", ".tsx", ".vue", ".svelte")):
            if sampled >= IMPORT_SAMPLE_LIMIT:
                break
            content = ctx.read_text(entry.path)
            if content is None:
                continue
            sampled += 1
            for match in IMPORT_PATTERN.finditer(content):
                target = match.group(1)
                if target.startswith("@/"):
                    at_imports += 1
                elif target.startswith("~/"):
                    tilde_imports += 1
                elif target.startswith("./") or target.startswith("../"):
                    relative_imports += 1

        if at_imports > relative_imports and at_imports >= 5:
            conventions.append(
                Convention(
                    Cat.IMPORTS,
                    "Prefer @/ path alias for imports over relative paths",
                    "import { utils } from '@/lib/utils'",
                )
            )
        elif tilde_imports > relative_imports and tilde_imports >= 5:
            conventions.append(
                Convention(
                    Cat.IMPORTS,
                    "Prefer ~/ path alias for imports over relative paths",
                    "import { utils } from '~/lib/utils'",
                )
            )
        return conventions

    def _typescript(self, ctx: DetectionContext) -> list[Convention]:
        conventions = []
        ts_files = len(ctx.files_with_ext(".ts", ".tsx"))
        js_files = [
            f for f in ctx.files_with_ext(".js", ".jsx") if ".config." not in f.name
        ]
        if ts_files and not js_files:
            conventions.append(
                Convention(
                    Cat.TYPESCRIPT,
                    "TypeScript-only codebase - write new files as .ts/.tsx, not .js",
                )
            )

        tsconfig = ctx.load_json("tsconfig.json")
        if tsconfig is None:
            return conventions
        options = as_mapping(tsconfig.get("compilerOptions"))
        if options.get("strict") is True:
            conventions.append(
                Convention(
                    Cat.TYPESCRIPT, "TypeScript strict mode enabled - maintain strict type safety"
                )
            )
        if options.get("noImplicitAny") is True:
            conventions.append(
                Convention(Cat.TYPESCRIPT, "Explicit types required - avoid 'any' type")
            )
        if options.get("noUnusedLocals") is True or options.get("noUnusedParameters") is True:
            conventions.append(
                Convention(
                    Cat.TYPESCRIPT,
                    "Unused variables/parameters not allowed - clean up dead code",
                )
            )
        return conventions

    def _testing(self, ctx: DetectionContext) -> list[Convention]:
        suffixes: Counter[str] = Counter()
        colocated = separate = 0

        for entry in ctx.iter_files():
            base = entry.name[: -len(entry.ext)] if entry.ext else entry.name
            if base.endswith(".test"):
                suffixes["test"] += 1
            elif base.endswith(".spec"):
                suffixes["spec"] += 1
            elif base.endswith("_test") or (entry.ext == ".py" and base.startswith("test_")):
                suffixes["underscore"] += 1
            else:
                continue

            dirs = entry.path.split("/")[:-1]
            if any(d in ("test", "tests", "__tests__") for d in dirs):
                separate += 1
            else:
                colocated += 1

        conventions = []
        t, s, u = suffixes["test"], suffixes["spec"], suffixes["underscore"]
        if t > s and t > u and t >= 2:
            conventions.append(
                Convention(Cat.TESTING, "Test files use .test suffix", "Button.test.tsx, utils.test.ts")
            )
        elif s > t and s > u and s >= 2:
            conventions.append(
                Convention(Cat.TESTING, "Test files use .spec suffix", "Button.spec.tsx, utils.spec.ts")
            )
        elif u > t and u > s and u >= 2:
            conventions.append(
                Convention(
                    Cat.TESTING,
                    "Test files use _test suffix or test_ prefix",
                    "handler_test.go, test_utils.py",
                )
            )

        if colocated > separate and colocated >= 3:
            conventions.append(Convention(Cat.TESTING, "Tests are colocated with source files"))
        elif separate > colocated and separate >= 3:
            conventions.append(Convention(Cat.TESTING, "Tests are in dedicated test directories"))
        return conventions

    def _code_style(self, ctx: DetectionContext) -> list[Convention]:
        conventions = []
        if any(ctx.exists(f) for f in ESLINT_FILES):
            conventions.append(Convention(Cat.CODE_STYLE, "ESLint configured - follow linting rules"))
        if any(ctx.exists(f) for f in PRETTIER_FILES):
            conventions.append(
                Convention(Cat.CODE_STYLE, "Prettier configured - code formatting is automated")
            )
        if ctx.exists(".editorconfig"):
            conventions.append(
                Convention(Cat.CODE_STYLE, "EditorConfig present - editor settings are standardized")
            )
        if ctx.has_ext(".go"):
            conventions.append(Convention(Cat.CODE_STYLE, GO_FORMAT_HINT))

        pyproject = ctx.load_toml("pyproject.toml") or {}
        tool = pyproject.get("tool", {})
        if isinstance(tool, dict):
            if "black" in tool:
                conventions.append(
                    Convention(Cat.CODE_STYLE, "Black configured - format Python code with black")
                )
            if "ruff" in tool or ctx.exists("ruff.toml"):
                conventions.append(
                    Convention(Cat.CODE_STYLE, "Ruff configured - lint and format Python with ruff")
                )
        return conventions

    def _components(self, ctx: DetectionContext) -> list[Convention]:
        counts: Counter[str] = Counter()
        barrels = 0
        for entry in ctx.iter_files():
            counts[entry.ext] += 1
            if entry.name in ("index.ts", "index.js"):
                parent = entry.path.rsplit("/", 1)[0] if "/" in entry.path else ""
                if "components" in parent or "ui" in parent.split("/"):
                    barrels += 1

        conventions = []
        tsx, jsx = counts[".tsx"], counts[".jsx"]
        if tsx or jsx:
            if tsx > jsx:
                conventions.append(
                    Convention(Cat.COMPONENTS, "React components use TypeScript (.tsx)")
                )
            functional = 0
            for entry in ctx.files_with_ext(".tsx", ".jsx"):
                content = ctx.read_text(entry.path) or ""
                if (
                    "export function" in content
                    or "export const" in content
                    or "export default function" in content
                ):
                    functional += 1
                if functional >= 5:
                    break
            if functional >= 3:
                conventions.append(
                    Convention(Cat.COMPONENTS, "Use functional components (not class components)")
                )

        if counts[".vue"]:
            conventions.append(Convention(Cat.COMPONENTS, "Vue single-file components (.vue)"))
        if counts[".svelte"]:
            conventions.append(Convention(Cat.COMPONENTS, "Svelte components (.svelte)"))
        if barrels >= 3:
            conventions.append(
                Convention(
                    Cat.STRUCTURE,
                    "Components use barrel exports (index.ts) for cleaner imports",
                    "import { Button, Card } from '@/components'",
                )
            )
        return conventions
