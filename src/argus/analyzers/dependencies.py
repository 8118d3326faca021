"""Direct dependency detection from package.json and go.mod."""

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.analyzers.manifests import is_vendored_module, read_go_mod, read_package_json
from argus.models.analysis import Analysis, Dependency, DependencyType


class DependenciesDetector(Detector):
    """Lists direct dependencies.

    package.json `dependencies` are runtime and `devDependencies` are dev.
    go.mod requires are runtime; indirect and vendored module paths are
    excluded.
    """

    name = "dependencies"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("dependencies",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        deps: list[Dependency] = []

        pkg = read_package_json(ctx)
        if pkg is not None:
            for name, version in pkg.dependencies.items():
                deps.append(Dependency(name, version, DependencyType.RUNTIME))
            for name, version in pkg.dev_dependencies.items():
                deps.append(Dependency(name, version, DependencyType.DEV))

        mod = read_go_mod(ctx)
        if mod is not None:
            for req in mod.requires:
                if req.indirect or is_vendored_module(req.path):
                    continue
                deps.append(Dependency(req.path, req.version, DependencyType.RUNTIME))

        return {"dependencies": deps}
