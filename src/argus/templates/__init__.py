"""argus template rendering.

Jinja2 templates for every Markdown output live next to this module.
"""

from argus.templates.renderer import TemplateRenderer

__all__ = ["TemplateRenderer"]
