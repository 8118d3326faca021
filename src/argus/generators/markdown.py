"""Single-file Markdown outputs: CLAUDE.md, .cursorrules, Copilot instructions."""

from argus.generators.base import GeneratedFile, Generator
from argus.models.analysis import Analysis
from argus.templates.renderer import TemplateRenderer


class TemplateGenerator(Generator):
    """Renders one template to one output path."""

    template_name: str = ""
    output_path: str = ""

    def __init__(self, renderer: TemplateRenderer | None = None) -> None:
        self._renderer = renderer or TemplateRenderer()

    def generate(self, analysis: Analysis) -> list[GeneratedFile]:
        content = self._renderer.render(self.template_name, analysis)
        return [GeneratedFile(path=self.output_path, content=content, mergeable=True)]


class ClaudeGenerator(TemplateGenerator):
    name = "claude"
    template_name = "CLAUDE.md.j2"
    output_path = "CLAUDE.md"


class CursorGenerator(TemplateGenerator):
    name = "cursor"
    template_name = "cursorrules.j2"
    output_path = ".cursorrules"


class CopilotGenerator(TemplateGenerator):
    name = "copilot"
    template_name = "copilot-instructions.md.j2"
    output_path = ".github/copilot-instructions.md"
