"""Root overview for monorepos analyzed per workspace."""

from dataclasses import dataclass

from argus.generators.base import GeneratedFile, Generator
from argus.models.analysis import Analysis
from argus.monorepo import WorkspaceResult
from argus.templates.renderer import TemplateRenderer


@dataclass(frozen=True)
class WorkspaceSummary:
    """One row of the workspace table."""

    name: str
    path: str
    languages: tuple[str, ...] = ()
    commands: int = 0
    endpoints: int = 0
    error: str = ""

    @classmethod
    def from_result(cls, result: WorkspaceResult) -> "WorkspaceSummary":
        if not result.ok or result.analysis is None:
            return cls(name=result.name, path=result.path, error=str(result.error or "no analysis"))
        analysis = result.analysis
        return cls(
            name=result.name,
            path=result.path,
            languages=tuple(lang.name for lang in analysis.tech_stack.languages[:3]),
            commands=len(analysis.commands),
            endpoints=len(analysis.endpoints),
        )


class MonorepoOverviewGenerator(Generator):
    """Renders the root CLAUDE.md that indexes every workspace.

    Args:
        results: Per-workspace outcomes, in workspace order
        per_workspace: Whether workspace CLAUDE.md files are written too
    """

    name = "monorepo-overview"

    def __init__(
        self,
        results: list[WorkspaceResult],
        per_workspace: bool = True,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self._summaries = [WorkspaceSummary.from_result(r) for r in results]
        self._per_workspace = per_workspace
        self._renderer = renderer or TemplateRenderer()

    def generate(self, analysis: Analysis) -> list[GeneratedFile]:
        content = self._renderer.render(
            "monorepo-overview.md.j2",
            analysis,
            workspaces=[s for s in self._summaries if not s.error],
            failed=[s for s in self._summaries if s.error],
            per_workspace=self._per_workspace,
        )
        return [GeneratedFile(path="CLAUDE.md", content=content, mergeable=True)]
