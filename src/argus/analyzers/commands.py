"""Runnable command detection.

Harvests commands from package.json scripts, Go modules, Makefile targets,
Python tooling, pyproject.toml, Cobra command trees and Cargo.toml.

When a Cargo.toml is present the basic cargo commands are removed and the
richer Cargo set is appended after everything else.
"""

import re

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.analyzers.manifests import (
    CargoInfo,
    as_mapping,
    read_cargo,
    read_go_mod,
    read_package_json,
)
from argus.models.analysis import Analysis, Command

MAKE_TARGET_PATTERN = re.compile(r"(?m)^([a-zA-Z_][a-zA-Z0-9_-]*)\s*:(?!=)")
COBRA_USE_PATTERN = re.compile(r"""Use:\s*["'`]([^"'`\s]+)""")
COBRA_SHORT_PATTERN = re.compile(r"""Short:\s*["'`]([^"'`]+)["'`]""")

SCRIPT_DESCRIPTIONS = {
    "dev": "Start development server",
    "start": "Start the application",
    "build": "Build for production",
    "test": "Run tests",
    "lint": "Run linter",
    "format": "Format code",
    "typecheck": "Run type checking",
    "preview": "Preview production build",
    "deploy": "Deploy the application",
    "db:push": "Push database schema",
    "db:migrate": "Run database migrations",
    "db:seed": "Seed the database",
    "generate": "Generate code/types",
}

MAKE_TARGET_DESCRIPTIONS = {
    "build": "Build the project",
    "test": "Run tests",
    "clean": "Clean build artifacts",
    "install": "Install dependencies/binary",
    "run": "Run the application",
    "dev": "Start development mode",
    "lint": "Run linter",
    "format": "Format code",
    "fmt": "Format code",
    "check": "Run checks",
    "all": "Build all targets",
    "help": "Show available targets",
    "docker": "Build Docker image",
    "deploy": "Deploy the application",
    "release": "Create a release",
    "coverage": "Run tests with coverage",
    "bench": "Run benchmarks",
    "generate": "Generate code",
    "proto": "Generate protobuf code",
    "migrate": "Run database migrations",
    "seed": "Seed the database",
}

BASIC_CARGO_COMMANDS = frozenset(
    {
        "cargo build",
        "cargo build --release",
        "cargo test",
        "cargo fmt",
        "cargo clippy",
    }
)

PYPROJECT_TOOL_COMMANDS: dict[str, list[tuple[str, str]]] = {
    "pytest": [("pytest", "Run tests with pytest"), ("pytest -v", "Run tests with verbose output")],
    "black": [("black .", "Format code with Black")],
    "ruff": [("ruff check .", "Lint code with Ruff"), ("ruff format .", "Format code with Ruff")],
    "mypy": [("mypy .", "Type check with mypy")],
    "poetry": [
        ("poetry install", "Install dependencies with Poetry"),
        ("poetry shell", "Activate Poetry virtual environment"),
    ],
    "pdm": [("pdm install", "Install dependencies with PDM")],
    "hatch": [("hatch run", "Run commands in Hatch environment")],
    "coverage": [
        ("coverage run -m pytest", "Run tests with coverage"),
        ("coverage report", "Show coverage report"),
    ],
}


def _cmd(name: str, description: str = "", command: str = "") -> Command:
    return Command(name=name, command=command or name, description=description)


def parse_makefile_targets(content: str) -> list[Command]:
    """Makefile targets as `make <target>` commands, first occurrence wins."""
    commands = []
    seen: set[str] = set()
    for match in MAKE_TARGET_PATTERN.finditer(content):
        target = match.group(1)
        if target in seen:
            continue
        seen.add(target)
        commands.append(_cmd(f"make {target}", MAKE_TARGET_DESCRIPTIONS.get(target, "")))
    return commands


def cargo_commands(info: CargoInfo) -> list[Command]:
    """Enriched Cargo command set."""
    commands = [
        _cmd("cargo build", "Build the project in debug mode"),
        _cmd("cargo build --release", "Build optimized release binary"),
        _cmd("cargo run", "Build and run the project"),
        _cmd("cargo test", "Run all tests"),
        _cmd("cargo test -- --nocapture", "Run tests with output"),
        _cmd("cargo fmt", "Format code with rustfmt"),
        _cmd("cargo clippy", "Run Clippy linter"),
        _cmd("cargo doc --open", "Generate and open documentation"),
    ]

    if len(info.binaries) > 1:
        for binary in info.binaries:
            commands.append(_cmd(f"cargo run --bin {binary}", f"Run {binary} binary"))

    if info.is_workspace:
        commands.append(_cmd("cargo build --workspace", "Build all workspace members"))
        commands.append(_cmd("cargo test --workspace", "Test all workspace members"))

    if "cargo-watch" in info.dev_dependencies:
        commands.append(_cmd("cargo watch -x run", "Watch and run on changes"))
    if "cargo-nextest" in info.dev_dependencies:
        commands.append(_cmd("cargo nextest run", "Run tests with nextest"))

    if info.features:
        features = ",".join(info.features[:3])
        commands.append(_cmd(f"cargo build --features {features}", "Build with specific features"))

    return commands


class CommandsDetector(Detector):
    """Detects build, test, lint and run commands."""

    name = "commands"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("commands",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        commands: list[Command] = []
        commands.extend(self._npm_commands(ctx))
        commands.extend(self._go_commands(ctx))
        commands.extend(self._make_commands(ctx))
        if ctx.is_file("Cargo.toml"):
            commands.extend(_cmd(name) for name in sorted(BASIC_CARGO_COMMANDS))
        commands.extend(self._python_commands(ctx))
        commands.extend(self._cobra_commands(ctx))
        commands.extend(self._pyproject_commands(ctx))

        cargo = read_cargo(ctx)
        if cargo is not None:
            commands = [c for c in commands if c.name not in BASIC_CARGO_COMMANDS]
            commands.extend(cargo_commands(cargo))

        return {"commands": _dedupe(commands)}

    def _npm_commands(self, ctx: DetectionContext) -> list[Command]:
        pkg = read_package_json(ctx)
        if pkg is None:
            return []
        return [
            Command(
                name=f"npm run {name}",
                command=script,
                description=SCRIPT_DESCRIPTIONS.get(name, ""),
            )
            for name, script in pkg.scripts.items()
        ]

    def _go_commands(self, ctx: DetectionContext) -> list[Command]:
        if read_go_mod(ctx) is None:
            return []
        commands = [_cmd("go build ./...", "Build all packages")]
        if any(f.name.endswith("_test.go") for f in ctx.iter_files()):
            commands.append(_cmd("go test ./...", "Run all tests"))
            commands.append(_cmd("go test -v ./...", "Run all tests with verbose output"))
        commands.append(_cmd("go fmt ./...", "Format all Go files"))
        return commands

    def _make_commands(self, ctx: DetectionContext) -> list[Command]:
        content = ctx.read_text("Makefile")
        return parse_makefile_targets(content) if content is not None else []

    def _python_commands(self, ctx: DetectionContext) -> list[Command]:
        commands: list[Command] = []
        pyproject_text = ctx.read_text("pyproject.toml")
        has_poetry = pyproject_text is not None and "[tool.poetry]" in pyproject_text
        prefix = "poetry run " if has_poetry else ""

        if has_poetry:
            commands.append(_cmd("poetry install", "Install dependencies"))
            commands.append(_cmd("poetry shell", "Activate virtual environment"))

        requirements = ctx.read_text("requirements.txt")
        has_requirements = requirements is not None and not has_poetry
        if has_requirements:
            commands.append(_cmd("pip install -r requirements.txt", "Install dependencies"))

        if ctx.is_file("manage.py"):
            manage = f"{prefix}python manage.py"
            for sub, description in (
                ("runserver", "Start Django development server"),
                ("migrate", "Run database migrations"),
                ("makemigrations", "Create new migrations"),
                ("shell", "Start Django shell"),
                ("test", "Run tests"),
                ("createsuperuser", "Create superuser"),
            ):
                commands.append(_cmd(f"{manage} {sub}", description))

        app_py = ctx.read_text("app.py") or ""
        main_py = ctx.read_text("main.py") or ""
        has_wsgi = ctx.is_file("wsgi.py")
        if has_wsgi or "Flask" in app_py:
            commands.append(_cmd(f"{prefix}flask run", "Start Flask development server"))
            commands.append(_cmd("flask shell", "Start Flask shell"))
            commands.append(_cmd("flask routes", "Show all registered routes"))
            if has_wsgi:
                commands.append(_cmd(f"{prefix}gunicorn wsgi:app", "Run Flask with Gunicorn"))

        if "FastAPI" in main_py or "FastAPI" in app_py:
            module = "app:app" if ctx.is_file("app.py") else "main:app"
            commands.append(
                _cmd(f"{prefix}uvicorn {module} --reload", "Start FastAPI development server")
            )

        deps_text = requirements if has_requirements else (pyproject_text if has_poetry else None)
        if deps_text:
            if "pytest" in deps_text:
                commands.append(_cmd(f"{prefix}pytest", "Run tests"))
                commands.append(_cmd(f"{prefix}pytest -v", "Run tests with verbose output"))
                commands.append(_cmd(f"{prefix}pytest --cov", "Run tests with coverage"))
            if "black" in deps_text:
                commands.append(_cmd(f"{prefix}black .", "Format code with Black"))
            if "ruff" in deps_text:
                commands.append(_cmd(f"{prefix}ruff format", "Format code with Ruff"))
                commands.append(_cmd(f"{prefix}ruff check", "Lint code with Ruff"))
            if "flake8" in deps_text:
                commands.append(_cmd(f"{prefix}flake8", "Lint code with Flake8"))
            if "mypy" in deps_text:
                commands.append(_cmd(f"{prefix}mypy .", "Type check with mypy"))

        if pyproject_text is not None and not has_poetry:
            commands.append(_cmd("pip install -e .", "Install package in editable mode"))
        if ctx.is_file("setup.py"):
            commands.append(_cmd("python setup.py install", "Install the package"))

        return commands

    def _pyproject_commands(self, ctx: DetectionContext) -> list[Command]:
        pyproject = ctx.load_toml("pyproject.toml")
        if pyproject is None:
            return []

        project = as_mapping(pyproject.get("project"))
        tool = as_mapping(pyproject.get("tool"))

        poetry = as_mapping(tool.get("poetry"))
        scripts = as_mapping(project.get("scripts")) or as_mapping(poetry.get("scripts"))
        commands = [
            Command(name=name, command=str(target), description="Script from pyproject.toml")
            for name, target in scripts.items()
        ]

        for tool_name, tool_commands in PYPROJECT_TOOL_COMMANDS.items():
            if tool_name in tool:
                commands.extend(_cmd(name, desc) for name, desc in tool_commands)
        return commands

    def _cobra_commands(self, ctx: DetectionContext) -> list[Command]:
        mod = read_go_mod(ctx)
        if mod is None or mod.requires_prefix("github.com/spf13/cobra") is None:
            return []

        commands = []
        for cli_name in ctx.subdirs("cmd"):
            sub_dir = f"cmd/{cli_name}/cmd"
            for file_name in ctx.list_dir(sub_dir):
                if not file_name.endswith(".go") or file_name.endswith("_test.go"):
                    continue
                if file_name == "root.go":
                    continue
                content = ctx.read_text(f"{sub_dir}/{file_name}")
                if content is None:
                    continue
                use = COBRA_USE_PATTERN.search(content)
                short = COBRA_SHORT_PATTERN.search(content)
                sub_name = use.group(1) if use else file_name[:-3]
                commands.append(
                    _cmd(f"{cli_name} {sub_name}", short.group(1) if short else "")
                )
        return commands


def _dedupe(commands: list[Command]) -> list[Command]:
    seen: set[str] = set()
    unique = []
    for command in commands:
        if command.name in seen:
            continue
        seen.add(command.name)
        unique.append(command)
    return unique
