"""HTTP endpoint detection from route declarations.

Each scanner runs only when its framework is in the tech stack. Paths are
normalized to begin with "/" and methods outside the supported set are
reported as ALL.
"""

import re
from collections.abc import Iterator

from argus.analyzers.base import (
    DetectionContext,
    Detector,
    DetectorResult,
    WriteDiscipline,
    is_test_file,
)
from argus.models.analysis import HTTP_METHODS, Analysis, Endpoint, TechStack

METHOD_ORDER = {"GET": 1, "POST": 2, "PUT": 3, "PATCH": 4, "DELETE": 5}

AUTH_PATTERN = re.compile(
    r"(?i)\b(?:authenticate\w*|auth\w*|protect\w*|requireAuth|isAuthenticated|verifyToken|jwt\w*|login_required)\b"
)
ROUTER_AUTH_PATTERN = re.compile(
    r"(?i)\b(?:app|router|r|e|g|api|group|server)\.[Uu]se\s*\(\s*(?:\w+\.)?"
    r"(?:authenticate|auth|protect|requireAuth|isAuthenticated|verifyToken|jwt)\w*"
)
HANDLER_PATTERN = re.compile(r",\s*([A-Za-z_][\w.]*)\s*\)")

EXPRESS_ROUTE = re.compile(r"""(?:app|router)\.(get|post|put|patch|delete|all)\s*\(\s*['"`]([^'"`]+)['"`]""")
FASTIFY_ROUTE = re.compile(r"""(?:fastify|app|server)\.(get|post|put|patch|delete)\s*\(\s*['"`]([^'"`]+)['"`]""")
NEXT_APP_METHOD = re.compile(r"export\s+(?:async\s+)?(?:function|const)\s+(GET|POST|PUT|PATCH|DELETE)\b")
FASTAPI_ROUTE = re.compile(r"""@(?:app|router|\w+_router)\.(get|post|put|patch|delete)\s*\(\s*["']([^"']*)["']""")
FLASK_ROUTE = re.compile(
    r"""@(?:app|blueprint|bp|\w+_bp)\.route\s*\(\s*["']([^"']+)["'](?:.*methods\s*=\s*[\[(]([^\])]+)[\])])?"""
)
DJANGO_PATH = re.compile(r"""\b(?:re_)?path\s*\(\s*r?["']([^"']*)["']""")
SPRING_MAPPING = re.compile(
    r"""@(Get|Post|Put|Patch|Delete)Mapping\s*(?:\(\s*(?:value\s*=\s*|path\s*=\s*)?["']([^"']*)["'])?"""
)
SPRING_REQUEST_MAPPING = re.compile(r"""@RequestMapping\s*\(\s*(?:value\s*=\s*|path\s*=\s*)?["']([^"']+)["']""")
GIN_ROUTE = re.compile(r"""\.(GET|POST|PUT|PATCH|DELETE|Any)\s*\(\s*["']([^"']+)["']""")
ECHO_ROUTE = re.compile(r"""\b\w+\.(GET|POST|PUT|PATCH|DELETE|Any)\s*\(\s*["']([^"']+)["']""")
FIBER_ROUTE = re.compile(r"""\.(Get|Post|Put|Patch|Delete|All)\s*\(\s*["']([^"']+)["']""")
CHI_ROUTE = re.compile(r"""\br\.(Get|Post|Put|Patch|Delete|HandleFunc)\s*\(\s*["']([^"']+)["']""")
RAILS_ROUTE = re.compile(r"""^\s*(get|post|put|patch|delete|match)\s+['"]([^'"]+)['"]""")
RAILS_RESOURCES = re.compile(r"""^\s*resources?\s+:(\w+)""")


def normalize_method(method: str) -> str:
    method = method.strip().upper()
    return method if method in HTTP_METHODS else "ALL"


def normalize_path(path: str) -> str:
    path = path.strip()
    if not path.startswith("/"):
        path = "/" + path
    return path


def _sort_key(endpoint: Endpoint) -> tuple[str, int]:
    return endpoint.path, METHOD_ORDER.get(endpoint.method, 99)


class EndpointsDetector(Detector):
    """Extracts {method, path, file, line} from route declarations."""

    name = "endpoints"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("endpoints",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        stack = analysis.tech_stack
        endpoints: list[Endpoint] = []
        if stack.has_framework("Express.js"):
            endpoints.extend(self._line_routes(ctx, (".js", ".ts", ".mjs"), EXPRESS_ROUTE))
        if stack.has_framework("Fastify"):
            endpoints.extend(self._line_routes(ctx, (".js", ".ts", ".mjs"), FASTIFY_ROUTE))
        if stack.has_framework("Next.js"):
            endpoints.extend(self._nextjs(ctx))
        if stack.has_framework("FastAPI"):
            endpoints.extend(self._fastapi(ctx))
        if stack.has_framework("Flask"):
            endpoints.extend(self._flask(ctx))
        if stack.has_framework("Django"):
            endpoints.extend(self._django(ctx))
        if stack.has_framework("Spring Boot"):
            endpoints.extend(self._spring(ctx))
        endpoints.extend(self._go(ctx, stack))
        if stack.has_framework("Ruby on Rails"):
            endpoints.extend(self._rails(ctx))

        endpoints.sort(key=_sort_key)
        return {"endpoints": endpoints}

    def _lines(self, ctx: DetectionContext, *exts: str) -> Iterator[tuple[str, list[str]]]:
        for entry in ctx.files_with_ext(*exts):
            if is_test_file(entry.path):
                continue
            lines = ctx.read_lines(entry.path)
            if lines:
                yield entry.path, lines

    def _line_routes(
        self, ctx: DetectionContext, exts: tuple[str, ...], pattern: re.Pattern[str]
    ) -> list[Endpoint]:
        """Routes declared as `<obj>.<method>("<path>", ...)`, one or more per line."""
        endpoints = []
        for path, lines in self._lines(ctx, *exts):
            router_auth = False
            for number, line in enumerate(lines, start=1):
                if ROUTER_AUTH_PATTERN.search(line):
                    router_auth = True
                for match in pattern.finditer(line):
                    route_line = line[match.end():]
                    handler = HANDLER_PATTERN.search(line)
                    requires_auth = router_auth or bool(AUTH_PATTERN.search(route_line))
                    endpoints.append(
                        Endpoint(
                            method=normalize_method(match.group(1)),
                            path=normalize_path(match.group(2)),
                            file=path,
                            line=number,
                            handler=handler.group(1) if handler else "",
                            auth="Required" if requires_auth else "",
                        )
                    )
        return endpoints

    def _nextjs(self, ctx: DetectionContext) -> list[Endpoint]:
        endpoints = []
        for entry in ctx.iter_files():
            rel = entry.path
            if entry.ext not in (".ts", ".js", ".tsx", ".jsx"):
                continue
            trimmed = rel[len("src/"):] if rel.startswith("src/") else rel

            if trimmed.startswith("pages/api/"):
                route = trimmed[len("pages"):].rsplit(".", 1)[0]
                if route.endswith("/index"):
                    route = route[: -len("/index")]
                endpoints.append(Endpoint(method="ALL", path=normalize_path(route), file=rel))

            elif trimmed.startswith("app/") and entry.name in ("route.ts", "route.js"):
                route = trimmed[len("app"):].rsplit("/", 1)[0] or "/"
                content = ctx.read_text(rel) or ""
                methods = [m.group(1) for m in NEXT_APP_METHOD.finditer(content)] or ["ALL"]
                for method in methods:
                    endpoints.append(
                        Endpoint(method=normalize_method(method), path=normalize_path(route), file=rel)
                    )
        return endpoints

    def _fastapi(self, ctx: DetectionContext) -> list[Endpoint]:
        endpoints = []
        for path, lines in self._lines(ctx, ".py"):
            for number, line in enumerate(lines, start=1):
                for match in FASTAPI_ROUTE.finditer(line):
                    auth = "Required" if AUTH_PATTERN.search(line[match.end():]) else ""
                    endpoints.append(
                        Endpoint(
                            method=normalize_method(match.group(1)),
                            path=normalize_path(match.group(2)),
                            file=path,
                            line=number,
                            handler=_next_python_def(lines, number),
                            auth=auth,
                        )
                    )
        return endpoints

    def _flask(self, ctx: DetectionContext) -> list[Endpoint]:
        endpoints = []
        for path, lines in self._lines(ctx, ".py"):
            for number, line in enumerate(lines, start=1):
                match = FLASK_ROUTE.search(line)
                if not match:
                    continue
                methods = ["GET"]
                if match.group(2):
                    methods = [m.strip(" '\"") for m in match.group(2).split(",") if m.strip(" '\"")]
                decorators = _decorators_below(lines, number)
                auth = "Required" if AUTH_PATTERN.search(decorators) else ""
                for method in methods:
                    endpoints.append(
                        Endpoint(
                            method=normalize_method(method),
                            path=normalize_path(match.group(1)),
                            file=path,
                            line=number,
                            handler=_next_python_def(lines, number),
                            auth=auth,
                        )
                    )
        return endpoints

    def _django(self, ctx: DetectionContext) -> list[Endpoint]:
        endpoints = []
        for entry in ctx.iter_files():
            if entry.name != "urls.py":
                continue
            for number, line in enumerate(ctx.read_lines(entry.path), start=1):
                for match in DJANGO_PATH.finditer(line):
                    route = match.group(1).lstrip("^").rstrip("$")
                    endpoints.append(
                        Endpoint(method="ALL", path=normalize_path(route), file=entry.path, line=number)
                    )
        return endpoints

    def _spring(self, ctx: DetectionContext) -> list[Endpoint]:
        endpoints = []
        for path, lines in self._lines(ctx, ".java", ".kt"):
            # Class-level @RequestMapping prefixes every method mapping
            base = ""
            for index, line in enumerate(lines):
                match = SPRING_REQUEST_MAPPING.search(line)
                if match and _precedes_class(lines, index):
                    base = match.group(1).rstrip("/")
                    break

            for number, line in enumerate(lines, start=1):
                for match in SPRING_MAPPING.finditer(line):
                    endpoints.append(
                        Endpoint(
                            method=normalize_method(match.group(1)),
                            path=normalize_path(base + normalize_path(match.group(2) or "")),
                            file=path,
                            line=number,
                        )
                    )
                match = SPRING_REQUEST_MAPPING.search(line)
                if match and not _precedes_class(lines, number - 1):
                    endpoints.append(
                        Endpoint(
                            method="ALL",
                            path=normalize_path(base + normalize_path(match.group(1))),
                            file=path,
                            line=number,
                        )
                    )
        return endpoints

    def _go(self, ctx: DetectionContext, stack: TechStack) -> list[Endpoint]:
        scanners = (
            ("Gin", GIN_ROUTE),
            ("Echo", ECHO_ROUTE),
            ("Fiber", FIBER_ROUTE),
            ("Chi", CHI_ROUTE),
        )
        endpoints: list[Endpoint] = []
        seen: set[tuple[str, int, str]] = set()
        for framework, pattern in scanners:
            if not stack.has_framework(framework):
                continue
            for endpoint in self._line_routes(ctx, (".go",), pattern):
                key = (endpoint.file, endpoint.line, endpoint.path)
                if key not in seen:
                    seen.add(key)
                    endpoints.append(endpoint)
        return endpoints

    def _rails(self, ctx: DetectionContext) -> list[Endpoint]:
        endpoints = []
        rel = "config/routes.rb"
        for number, line in enumerate(ctx.read_lines(rel), start=1):
            if match := RAILS_ROUTE.search(line):
                endpoints.append(
                    Endpoint(
                        method=normalize_method(match.group(1)),
                        path=normalize_path(match.group(2)),
                        file=rel,
                        line=number,
                    )
                )
            elif match := RAILS_RESOURCES.search(line):
                endpoints.append(
                    Endpoint(method="ALL", path=normalize_path(match.group(1)), file=rel, line=number)
                )
        return endpoints


def _next_python_def(lines: list[str], number: int) -> str:
    """Name of the first function defined after a decorator line (1-based)."""
    for line in lines[number:number + 8]:
        stripped = line.strip()
        if stripped.startswith(("def ", "async def ")):
            return stripped.split("def ", 1)[1].split("(", 1)[0].strip()
    return ""


def _decorators_below(lines: list[str], number: int) -> str:
    decorators = []
    for line in lines[number:number + 8]:
        stripped = line.strip()
        if not stripped.startswith("@"):
            break
        decorators.append(stripped)
    return " ".join(decorators)


def _precedes_class(lines: list[str], index: int) -> bool:
    """Whether the annotation at `index` belongs to a class declaration."""
    for line in lines[index + 1:index + 6]:
        stripped = line.strip()
        if not stripped or stripped.startswith("@"):
            continue
        return " class " in f" {stripped}"
    return False
