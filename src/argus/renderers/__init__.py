"""Jinja2 filters used by the output templates."""

from argus.renderers.filters import FILTERS, dedupe_conventions, group_conventions

__all__ = ["FILTERS", "dedupe_conventions", "group_conventions"]
