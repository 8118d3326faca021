"""Monorepo layout detection: tooling, workspace globs and package directories."""

import yaml

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.analyzers.manifests import read_package_json
from argus.models.analysis import Analysis, MonorepoInfo, WorkspacePackage
from argus.utils.logging import get_logger

_logger = get_logger(__name__)

# First match wins
MONOREPO_TOOLS = (
    ("turbo.json", "Turborepo"),
    ("nx.json", "Nx"),
    ("lerna.json", "Lerna"),
    ("rush.json", "Rush"),
)

LOCKFILE_MANAGERS = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("package-lock.json", "npm"),
)

PACKAGE_DIRECTORIES = (
    ("apps", "Applications"),
    ("packages", "Shared packages"),
    ("libs", "Libraries"),
    ("services", "Microservices"),
)


def read_pnpm_workspaces(ctx: DetectionContext) -> list[str] | None:
    """`packages` globs from pnpm-workspace.yaml, or None when absent."""
    content = ctx.read_text("pnpm-workspace.yaml")
    if content is None:
        return None
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        _logger.debug(f"Invalid pnpm-workspace.yaml: {e}")
        return []
    packages = data.get("packages", []) if isinstance(data, dict) else []
    return [p for p in packages if isinstance(p, str)]


class MonorepoDetector(Detector):
    """Detects Turborepo/Nx/Lerna/Rush and npm/yarn/pnpm/bun workspaces."""

    name = "monorepo"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("monorepo_info",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        info = MonorepoInfo()

        for marker, tool in MONOREPO_TOOLS:
            if ctx.is_file(marker):
                info.is_monorepo = True
                info.tool = tool
                break

        pnpm = read_pnpm_workspaces(ctx)
        if pnpm is not None:
            info.is_monorepo = True
            info.package_manager = "pnpm"
            info.workspace_paths.extend(pnpm)

        pkg = read_package_json(ctx)
        if pkg is not None and pkg.workspaces:
            info.is_monorepo = True
            for path in pkg.workspaces:
                if path not in info.workspace_paths:
                    info.workspace_paths.append(path)

        if not info.package_manager:
            info.package_manager = self._package_manager(ctx, pkg.package_manager if pkg else "")

        for directory, purpose in PACKAGE_DIRECTORIES:
            sub_packages = ctx.subdirs(directory)
            if sub_packages:
                info.is_monorepo = True
                info.packages.append(
                    WorkspacePackage(
                        name=directory,
                        path=directory,
                        description=purpose,
                        sub_packages=sub_packages,
                    )
                )

        return {"monorepo_info": info if info.is_monorepo else None}

    def _package_manager(self, ctx: DetectionContext, declared: str) -> str:
        if declared:
            return declared.split("@", 1)[0]
        for lockfile, manager in LOCKFILE_MANAGERS:
            if ctx.is_file(lockfile):
                return manager
        return ""
