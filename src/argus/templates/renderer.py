"""Template renderer for output generation.

Renders an Analysis to Markdown using Jinja2 templates shipped with the
package. Output is deterministic: the same Analysis always renders to the
same text.
"""

import logging
import re
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateError, select_autoescape

from argus.models.analysis import Analysis
from argus.renderers.context import GeneratorContext
from argus.renderers.filters import FILTERS

logger = logging.getLogger(__name__)

_BLANK_RUN_RE = re.compile(r"\n{3,}")


class TemplateRenderer:
    """Renders Analysis records through the package templates.

    Usage:
        renderer = TemplateRenderer()
        markdown = renderer.render("CLAUDE.md.j2", analysis)
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("argus", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters.update(FILTERS)

    def render(self, template_name: str, analysis: Analysis, **extra: Any) -> str:
        """Render one template.

        Args:
            template_name: Template file under argus/templates
            analysis: Analysis to render
            **extra: Additional template variables

        Returns:
            Rendered text, blank-line runs collapsed, ending in one newline

        Raises:
            ValueError: If the template is missing or fails to render
        """
        try:
            template = self._env.get_template(template_name)
        except TemplateError as e:
            raise ValueError(f"Template not found: {template_name}") from e

        context = self._build_context(analysis)
        context.update(extra)

        try:
            rendered = template.render(**context)
        except TemplateError as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        rendered = _BLANK_RUN_RE.sub("\n\n", rendered).strip() + "\n"
        logger.debug("Rendered %s (%d characters)", template_name, len(rendered))
        return rendered

    def _build_context(self, analysis: Analysis) -> dict[str, Any]:
        return {
            "analysis": analysis,
            "ctx": GeneratorContext.from_analysis(analysis),
            "stack": analysis.tech_stack,
            "readme": analysis.readme_content,
            "ai": analysis.ai_enrichment,
        }
