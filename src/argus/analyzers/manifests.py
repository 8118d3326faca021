"""Package manifest readers shared by several detectors.

Parses package.json, go.mod, requirements files, pyproject.toml and
Cargo.toml into small, ordered structures. All readers are tolerant: a
missing or malformed manifest yields an empty result.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from argus.analyzers.base import DetectionContext

GO_VERSION_PATTERN = re.compile(r"(?m)^go\s+(\d+(?:\.\d+)*)")
GO_MODULE_PATTERN = re.compile(r"(?m)^module\s+(\S+)")
REQUIREMENT_NAME_PATTERN = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)(\[[^\]]*\])?\s*(.*)$")

# Vendor-path predicate for go.mod requires
VENDOR_PATH_MARKERS = ("/internal/", "/service/internal/", "/feature/")

NPM_RANGE_PREFIXES = ("^", "~", ">=", ">", "<=", "<")


def clean_npm_version(version: str) -> str:
    """Strip one leading npm range operator (^, ~, >=, >, <=, <)."""
    for prefix in NPM_RANGE_PREFIXES:
        if version.startswith(prefix):
            return version[len(prefix):]
    return version


def is_vendored_module(path: str) -> bool:
    return any(marker in path for marker in VENDOR_PATH_MARKERS)


# =============================================================================
# package.json
# =============================================================================


@dataclass
class PackageJSON:
    """Relevant subset of a package.json."""

    name: str = ""
    version: str = ""
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    scripts: dict[str, str] = field(default_factory=dict)
    engines: dict[str, str] = field(default_factory=dict)
    workspaces: list[str] = field(default_factory=list)
    package_manager: str = ""
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def all_dependencies(self) -> dict[str, str]:
        merged = dict(self.dependencies)
        merged.update(self.dev_dependencies)
        return merged

    def has(self, name: str) -> bool:
        return name in self.dependencies or name in self.dev_dependencies


def as_mapping(value: Any) -> dict[str, Any]:
    """The value if it is a mapping, else an empty one (malformed manifests)."""
    return value if isinstance(value, dict) else {}


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _string_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items() if isinstance(v, (str, int, float))}


def read_package_json(ctx: DetectionContext, rel: str = "package.json") -> PackageJSON | None:
    data = ctx.load_json(rel)
    if data is None:
        return None

    workspaces = data.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not isinstance(workspaces, list):
        workspaces = []

    name = data.get("name")
    version = data.get("version")
    package_manager = data.get("packageManager")
    return PackageJSON(
        name=name if isinstance(name, str) else "",
        version=version if isinstance(version, str) else "",
        dependencies=_string_map(data.get("dependencies")),
        dev_dependencies=_string_map(data.get("devDependencies")),
        scripts=_string_map(data.get("scripts")),
        engines=_string_map(data.get("engines")),
        workspaces=[w for w in workspaces if isinstance(w, str)],
        package_manager=package_manager if isinstance(package_manager, str) else "",
        raw=data,
    )


# =============================================================================
# go.mod
# =============================================================================


@dataclass
class GoRequire:
    path: str
    version: str
    indirect: bool = False


@dataclass
class GoModule:
    """Parsed go.mod."""

    module: str = ""
    go_version: str = ""
    requires: list[GoRequire] = field(default_factory=list)

    def requires_prefix(self, prefix: str) -> GoRequire | None:
        for req in self.requires:
            if req.path.startswith(prefix):
                return req
        return None


def parse_go_mod(content: str) -> GoModule:
    """Parse go.mod content.

    Only lines inside `require ( ... )` blocks and single-line `require`
    directives produce requires.
    """
    mod = GoModule()
    if match := GO_MODULE_PATTERN.search(content):
        mod.module = match.group(1)
    if match := GO_VERSION_PATTERN.search(content):
        mod.go_version = match.group(1)

    in_block = False
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("require (") or line == "require(":
            in_block = True
            continue
        if in_block and line == ")":
            in_block = False
            continue

        if in_block:
            spec = line
        elif line.startswith("require "):
            spec = line[len("require "):].strip()
        else:
            continue

        indirect = "// indirect" in spec
        spec = spec.split("//", 1)[0].strip()
        parts = spec.split()
        if len(parts) >= 2:
            mod.requires.append(GoRequire(path=parts[0], version=parts[1], indirect=indirect))
    return mod


def read_go_mod(ctx: DetectionContext, rel: str = "go.mod") -> GoModule | None:
    content = ctx.read_text(rel)
    return parse_go_mod(content) if content is not None else None


# =============================================================================
# Python
# =============================================================================


@dataclass
class PythonRequirement:
    name: str
    spec: str = ""
    dev: bool = False

    @property
    def key(self) -> str:
        return self.name.lower().replace("_", "-")


def parse_requirement(line: str, dev: bool = False) -> PythonRequirement | None:
    line = line.split("#", 1)[0].strip()
    if not line or line.startswith("-"):
        return None
    line = line.split(";", 1)[0].strip()
    match = REQUIREMENT_NAME_PATTERN.match(line)
    if not match:
        return None
    return PythonRequirement(name=match.group(1), spec=match.group(3).strip(), dev=dev)


def read_python_requirements(ctx: DetectionContext) -> list[PythonRequirement]:
    """Collect requirements from requirements*.txt and pyproject.toml, deduplicated."""
    found: dict[str, PythonRequirement] = {}

    def add(req: PythonRequirement | None) -> None:
        if req is not None and req.key not in found:
            found[req.key] = req

    for rel, dev in (
        ("requirements.txt", False),
        ("requirements-dev.txt", True),
        ("requirements_dev.txt", True),
    ):
        for line in ctx.read_lines(rel):
            add(parse_requirement(line, dev=dev))

    pyproject = ctx.load_toml("pyproject.toml") or {}
    project = as_mapping(pyproject.get("project"))
    if project:
        for dep in as_list(project.get("dependencies")):
            if isinstance(dep, str):
                add(parse_requirement(dep))
        optional = as_mapping(project.get("optional-dependencies"))
        if optional:
            for group in sorted(optional):
                for dep in as_list(optional[group]):
                    if isinstance(dep, str):
                        add(parse_requirement(dep, dev=True))

    poetry = as_mapping(as_mapping(pyproject.get("tool")).get("poetry"))
    if poetry:
        for name, spec in as_mapping(poetry.get("dependencies")).items():
            if name.lower() == "python":
                continue
            add(PythonRequirement(name=name, spec=spec if isinstance(spec, str) else ""))
        groups = as_mapping(poetry.get("group"))
        for group in sorted(groups):
            for name, spec in as_mapping(as_mapping(groups[group]).get("dependencies")).items():
                add(
                    PythonRequirement(
                        name=name, spec=spec if isinstance(spec, str) else "", dev=True
                    )
                )

    return list(found.values())


def python_version(ctx: DetectionContext) -> str:
    """requires-python from pyproject.toml, else .python-version."""
    pyproject = ctx.load_toml("pyproject.toml") or {}
    project = pyproject.get("project", {})
    if isinstance(project, dict) and isinstance(project.get("requires-python"), str):
        return project["requires-python"]
    content = ctx.read_text(".python-version")
    if content and content.strip():
        return content.strip().splitlines()[0].strip()
    return ""


def has_python_manifest(ctx: DetectionContext) -> bool:
    return any(
        ctx.is_file(name)
        for name in ("requirements.txt", "pyproject.toml", "setup.py", "Pipfile")
    )


# =============================================================================
# Cargo.toml
# =============================================================================


@dataclass
class CargoInfo:
    """Relevant subset of a Cargo.toml."""

    name: str = ""
    version: str = ""
    edition: str = ""
    rust_version: str = ""
    description: str = ""
    is_workspace: bool = False
    workspace_members: list[str] = field(default_factory=list)
    is_library: bool = False
    is_binary: bool = False
    binaries: list[str] = field(default_factory=list)
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: list[str] = field(default_factory=list)
    features: list[str] = field(default_factory=list)


def read_cargo(ctx: DetectionContext) -> CargoInfo | None:
    cargo = ctx.load_toml("Cargo.toml")
    if cargo is None:
        return None

    package = as_mapping(cargo.get("package"))
    info = CargoInfo(
        name=str(package.get("name", "")),
        version=str(package.get("version", "")),
        edition=str(package.get("edition", "")),
        rust_version=str(package.get("rust-version", "")),
        description=str(package.get("description", "")),
    )

    workspace = cargo.get("workspace")
    if isinstance(workspace, dict):
        info.is_workspace = True
        info.workspace_members = [m for m in workspace.get("members", []) if isinstance(m, str)]

    if "lib" in cargo or ctx.is_file("src/lib.rs"):
        info.is_library = True

    bins = cargo.get("bin")
    if isinstance(bins, list) and bins:
        info.is_binary = True
        info.binaries = [b["name"] for b in bins if isinstance(b, dict) and "name" in b]
    elif info.name and ctx.is_file("src/main.rs"):
        info.is_binary = True
        info.binaries = [info.name]

    info.dependencies = cargo_dependencies(cargo)
    info.dev_dependencies = sorted(as_mapping(cargo.get("dev-dependencies")))
    info.features = sorted(f for f in as_mapping(cargo.get("features")) if f != "default")
    return info


def cargo_dependencies(cargo: dict[str, Any]) -> dict[str, str]:
    """Dependency name to verbatim version from a parsed Cargo.toml."""
    deps: dict[str, str] = {}
    for section in ("dependencies", "dev-dependencies", "build-dependencies"):
        table = cargo.get(section, {})
        if not isinstance(table, dict):
            continue
        for name, spec in table.items():
            if name in deps:
                continue
            if isinstance(spec, str):
                deps[name] = spec
            elif isinstance(spec, dict):
                version = spec.get("version", "")
                deps[name] = version if isinstance(version, str) else ""
            else:
                deps[name] = ""
    return deps
