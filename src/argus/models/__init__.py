"""argus data models.

- Repository: Analysis root with validation
- FileEntry: One item of the walker inventory
- Analysis: Aggregate record combining every detector facet
"""

from argus.models.analysis import (
    Analysis,
    Command,
    Convention,
    ConventionCategory,
    Dependency,
    DependencyType,
    Endpoint,
    Framework,
    FrameworkCategory,
    Language,
    TechStack,
)
from argus.models.repository import FileEntry, Repository

__all__ = [
    "Analysis",
    "Command",
    "Convention",
    "ConventionCategory",
    "Dependency",
    "DependencyType",
    "Endpoint",
    "FileEntry",
    "Framework",
    "FrameworkCategory",
    "Language",
    "Repository",
    "TechStack",
]
