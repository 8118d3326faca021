"""Development setup: prerequisites, setup steps and git hooks."""

import re

import yaml

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.analyzers.manifests import read_go_mod, read_package_json
from argus.models.analysis import Analysis, DevelopmentInfo, GitHook, Prerequisite, SetupStep
from argus.utils.logging import get_logger

_logger = get_logger(__name__)

SETUP_TARGETS = ("setup", "install", "deps", "init", "bootstrap")
MAKE_TARGET = re.compile(r"^([a-zA-Z_][a-zA-Z0-9_-]*):(?!=)")
MAKE_DOC = re.compile(r"^##\s*(.+)$")
REQUIRES_PYTHON = re.compile(r"""requires-python\s*=\s*["']([^"']+)["']""")

DOCKER_FILES = ("Dockerfile", "docker-compose.yml", "docker-compose.yaml", "compose.yaml")

# Keyword in a hook line -> action
HOOK_ACTIONS = (
    (("fmt", "format", "prettier", "black"), "Format code"),
    (("lint", "ruff", "eslint", "flake8"), "Run linter"),
    (("test", "pytest", "jest"), "Run tests"),
    (("goimports", "isort"), "Organize imports"),
    (("mypy", "tsc", "typecheck"), "Type check"),
)

LOCKFILE_MANAGERS = (
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("bun.lockb", "bun"),
)


def hook_actions(lines: list[str]) -> list[str]:
    actions: list[str] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        for keywords, action in HOOK_ACTIONS:
            if any(k in line for k in keywords) and action not in actions:
                actions.append(action)
    return actions


def _load_yaml(ctx: DetectionContext, rel: str) -> dict | None:
    content = ctx.read_text(rel)
    if content is None:
        return None
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        _logger.debug(f"Invalid YAML in {rel}: {e}")
        return None
    return data if isinstance(data, dict) else None


class DevelopmentDetector(Detector):
    name = "development"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("development_info",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        info = DevelopmentInfo(
            prerequisites=self._prerequisites(ctx),
            setup_steps=self._makefile_setup(ctx) or self._inferred_setup(ctx),
            git_hooks=self._git_hooks(ctx),
        )
        if not (info.prerequisites or info.setup_steps or info.git_hooks):
            return {"development_info": None}
        return {"development_info": info}

    # =========================================================================
    # Prerequisites
    # =========================================================================

    def _prerequisites(self, ctx: DetectionContext) -> list[Prerequisite]:
        prereqs: list[Prerequisite] = []

        go_mod = read_go_mod(ctx)
        if go_mod is not None and go_mod.go_version:
            prereqs.append(Prerequisite(name="Go", version=f"{go_mod.go_version}+"))

        node = self._node_version(ctx)
        if node:
            prereqs.append(Prerequisite(name="Node.js", version=node))

        python = self._python_version(ctx)
        if python:
            prereqs.append(Prerequisite(name="Python", version=python))

        if ctx.is_file("Cargo.toml"):
            toolchain = (ctx.read_text("rust-toolchain") or "").strip()
            prereqs.append(Prerequisite(name="Rust", version=toolchain))

        if any(ctx.is_file(name) for name in DOCKER_FILES):
            prereqs.append(Prerequisite(name="Docker"))

        known = {p.name.lower() for p in prereqs}
        for line in ctx.read_lines(".tool-versions"):
            parts = line.split()
            if len(parts) < 2 or parts[0].startswith("#"):
                continue
            name = parts[0][:1].upper() + parts[0][1:]
            if name.lower() in known:
                continue
            known.add(name.lower())
            prereqs.append(Prerequisite(name=name, version=parts[1]))

        return prereqs

    def _node_version(self, ctx: DetectionContext) -> str:
        nvmrc = (ctx.read_text(".nvmrc") or "").strip()
        if nvmrc:
            return nvmrc
        pkg = read_package_json(ctx)
        if pkg is None:
            return ""
        return pkg.engines.get("node", "") or "18+"

    def _python_version(self, ctx: DetectionContext) -> str:
        pinned = (ctx.read_text(".python-version") or "").strip()
        if pinned:
            return pinned.splitlines()[0]
        match = REQUIRES_PYTHON.search(ctx.read_text("pyproject.toml") or "")
        return match.group(1) if match else ""

    # =========================================================================
    # Setup steps
    # =========================================================================

    def _makefile_setup(self, ctx: DetectionContext) -> list[SetupStep]:
        steps: list[SetupStep] = []
        doc = ""
        for line in ctx.read_lines("Makefile"):
            if match := MAKE_DOC.match(line):
                doc = match.group(1).strip()
                continue
            if match := MAKE_TARGET.match(line):
                target = match.group(1)
                if target.lower() in SETUP_TARGETS:
                    steps.append(SetupStep(description=doc or f"Run {target}", command=f"make {target}"))
                doc = ""
        return steps

    def _inferred_setup(self, ctx: DetectionContext) -> list[SetupStep]:
        steps: list[SetupStep] = []
        if ctx.is_file("package.json"):
            manager = next(
                (m for lockfile, m in LOCKFILE_MANAGERS if ctx.is_file(lockfile)), "npm"
            )
            steps.append(SetupStep(description="Install dependencies", command=f"{manager} install"))
        if ctx.is_file("go.mod"):
            steps.append(SetupStep(description="Download Go dependencies", command="go mod download"))
        if ctx.is_file("requirements.txt"):
            steps.append(
                SetupStep(
                    description="Install Python dependencies",
                    command="pip install -r requirements.txt",
                )
            )
        elif ctx.is_file("pyproject.toml"):
            steps.append(
                SetupStep(
                    description="Install Python package in editable mode",
                    command="pip install -e .",
                )
            )
        if ctx.is_file("Cargo.toml"):
            steps.append(SetupStep(description="Build the crate", command="cargo build"))
        if ctx.is_file(".env.example"):
            steps.append(SetupStep(description="Copy environment template", command="cp .env.example .env"))
        return steps

    # =========================================================================
    # Git hooks
    # =========================================================================

    def _git_hooks(self, ctx: DetectionContext) -> list[GitHook]:
        hooks: list[GitHook] = []

        for directory in (".githooks", ".husky"):
            for name in ctx.list_dir(directory):
                rel = f"{directory}/{name}"
                if name.startswith(("_", ".")) or not ctx.is_file(rel):
                    continue
                hooks.append(GitHook(name=name, actions=hook_actions(ctx.read_lines(rel))))

        for rel in ("lefthook.yml", ".lefthook.yml"):
            config = _load_yaml(ctx, rel)
            if config is None:
                continue
            for hook_name, spec in config.items():
                commands = spec.get("commands") if isinstance(spec, dict) else None
                if not isinstance(commands, dict):
                    continue
                runs = [str(c.get("run", "")) for c in commands.values() if isinstance(c, dict)]
                hooks.append(GitHook(name=hook_name, actions=hook_actions(runs) or list(commands)))
            break

        pre_commit = _load_yaml(ctx, ".pre-commit-config.yaml")
        if pre_commit is not None:
            ids: list[str] = []
            for repo in pre_commit.get("repos") or []:
                for hook in (repo.get("hooks") or []) if isinstance(repo, dict) else []:
                    if isinstance(hook, dict) and hook.get("id") and hook["id"] not in ids:
                        ids.append(str(hook["id"]))
            hooks.append(GitHook(name="pre-commit", actions=ids))

        return hooks
