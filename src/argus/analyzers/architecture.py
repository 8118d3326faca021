"""Architecture style, layer graph and entry point.

The style comes from the directory names present anywhere in the tree.
Layers are the known top-level directories; a layer depends on another when
one of its source files imports something under the other's directory.
"""

import re

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.analyzers.manifests import read_go_mod
from argus.models.analysis import Analysis, ArchitectureInfo, ArchitectureLayer
from argus.utils.logging import get_logger

_logger = get_logger(__name__)

# Ordered; the first rule whose directories are all present wins
STYLE_RULES = (
    ("Standard Go Layout", ({"cmd"}, {"internal"})),
    ("Clean Architecture", ({"domain"}, {"application", "usecase", "usecases"}, {"infrastructure"})),
    ("Hexagonal Architecture", ({"ports"}, {"adapters"})),
    ("Layered MVC", ({"controllers"}, {"services"})),
    ("MVC", ({"models"}, {"views"}, {"controllers"})),
    ("Feature-based", ({"features", "modules"},)),
    ("Go Package Layout", ({"pkg", "internal"},)),
)

LAYERS = (
    ("cmd", "Entry points / CLI"),
    ("api", "API handlers"),
    ("app", "Application code"),
    ("internal", "Private packages"),
    ("pkg", "Public packages"),
    ("domain", "Business logic"),
    ("application", "Use cases"),
    ("infrastructure", "External integrations"),
    ("ports", "Port interfaces"),
    ("adapters", "Port implementations"),
    ("controllers", "Request controllers"),
    ("services", "Service layer"),
    ("handlers", "Request handlers"),
    ("models", "Data models"),
    ("views", "Presentation"),
    ("repository", "Data access"),
    ("lib", "Shared library code"),
    ("config", "Configuration"),
)

ENTRY_POINTS = (
    "main.go",
    "src/main.rs",
    "main.py",
    "app.py",
    "manage.py",
    "src/index.ts",
    "src/index.js",
    "index.js",
    "server.js",
)

LAYER_SOURCE_EXTS = (".go", ".py", ".js", ".jsx", ".ts", ".tsx", ".mjs")
MAX_FILES_PER_LAYER = 200

GO_IMPORT = re.compile(r'"([^"\s]+)"')
GO_IMPORT_BLOCK = re.compile(r"(?ms)^import\s*\((.*?)\)|^import\s+(?:\w+\s+)?(\"[^\"]+\")")
PY_IMPORT = re.compile(r"(?m)^\s*(?:from\s+(\.*[\w.]*)\s+import|import\s+([\w.]+))")
JS_IMPORT = re.compile(r"""(?:from\s+|require\(\s*|import\s*\(\s*|import\s+)["']([^"']+)["']""")


def detect_style(dir_names: set[str]) -> str:
    for style, groups in STYLE_RULES:
        if all(group & dir_names for group in groups):
            return style
    return ""


def find_entry_point(ctx: DetectionContext) -> str:
    for sub in ctx.subdirs("cmd"):
        candidate = f"cmd/{sub}/main.go"
        if ctx.is_file(candidate):
            return candidate
    for candidate in ENTRY_POINTS:
        if ctx.is_file(candidate):
            return candidate
    return ""


def _import_targets(ext: str, content: str, go_module: str) -> list[list[str]]:
    """Import targets as path segments, relative to the project where possible."""
    targets: list[list[str]] = []
    if ext == ".go":
        if not go_module:
            return targets
        for block in GO_IMPORT_BLOCK.finditer(content):
            for imp in GO_IMPORT.findall(block.group(1) or block.group(2) or ""):
                if imp.startswith(go_module + "/"):
                    targets.append(imp[len(go_module) + 1:].split("/"))
    elif ext == ".py":
        for match in PY_IMPORT.finditer(content):
            module = (match.group(1) or match.group(2) or "").lstrip(".")
            if module:
                targets.append(module.split("."))
    else:
        for spec in JS_IMPORT.findall(content):
            if spec.startswith((".", "@/", "~/", "src/")):
                targets.append([p for p in spec.split("/") if p not in (".", "..", "@", "~", "src")])
    return targets


def layer_dependencies(
    ctx: DetectionContext, layer: str, layer_names: set[str], go_module: str
) -> list[str]:
    deps: set[str] = set()
    files = [
        f for f in ctx.source_files(LAYER_SOURCE_EXTS) if f.path.startswith(layer + "/")
    ][:MAX_FILES_PER_LAYER]
    for entry in files:
        content = ctx.read_text(entry.path)
        if content is None:
            continue
        for segments in _import_targets(entry.ext, content, go_module):
            for segment in segments[:2]:
                if segment in layer_names and segment != layer:
                    deps.add(segment)
                    break
    return sorted(deps)


def render_diagram(info: ArchitectureInfo) -> str:
    """Top-down text diagram of the layers; empty for fewer than two layers."""
    if len(info.layers) <= 1:
        return ""
    width = max(len(layer.name) for layer in info.layers) + 4
    lines = []
    if info.entry_point:
        lines.append(f"[{info.entry_point}]")
        lines.append("    │")
        lines.append("    ▼")
    for i, layer in enumerate(info.layers):
        line = f"{layer.name.ljust(width)}{layer.purpose}"
        if layer.depends_on:
            line += f"  → {', '.join(layer.depends_on)}"
        lines.append(line)
        if i < len(info.layers) - 1:
            lines.append("    │")
    return "\n".join(lines)


class ArchitectureDetector(Detector):
    """Infers the architecture style, layer graph and entry point."""

    name = "architecture"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("architecture_info",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        dir_names = {entry.name.lower() for entry in ctx.iter_dirs()}
        info = ArchitectureInfo(style=detect_style(dir_names))

        top_level = set(ctx.top_level_dirs())
        layer_names = {name for name, _ in LAYERS if name in top_level}
        go_mod = read_go_mod(ctx)
        go_module = go_mod.module if go_mod else ""

        for name, purpose in LAYERS:
            if name not in layer_names:
                continue
            ctx.check_cancelled()
            info.layers.append(
                ArchitectureLayer(
                    name=name,
                    purpose=purpose,
                    packages=ctx.subdirs(name),
                    depends_on=layer_dependencies(ctx, name, layer_names, go_module),
                )
            )

        info.entry_point = find_entry_point(ctx)
        info.diagram = render_diagram(info)

        if not (info.style or info.layers or info.entry_point):
            return {"architecture_info": None}
        _logger.debug(f"Architecture: style={info.style!r} layers={len(info.layers)}")
        return {"architecture_info": info}
