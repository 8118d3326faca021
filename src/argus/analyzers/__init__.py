"""Argus analyzers - deterministic detectors over a shared file inventory.

Stage 1 (fatal on failure):
- TechStack: languages, frameworks, databases, tools
- Structure: directory layout and key files

Stage 2 (independent):
- Commands, Dependencies, Conventions, Patterns, FrameworkPatterns,
  CodePatterns, Endpoints, README, Monorepo, Git, Architecture,
  Development, ConfigFiles

Stage 3 (read earlier results):
- CLI, ProjectTools
"""

from argus.analyzers.architecture import ArchitectureDetector
from argus.analyzers.base import (
    AnalysisCancelledError,
    DetectionContext,
    Detector,
    DetectorError,
    WriteDiscipline,
)
from argus.analyzers.cli_info import CLIDetector
from argus.analyzers.codepatterns import CodePatternsDetector
from argus.analyzers.commands import CommandsDetector
from argus.analyzers.config_files import ConfigFilesDetector
from argus.analyzers.conventions import ConventionsDetector
from argus.analyzers.dependencies import DependenciesDetector
from argus.analyzers.development import DevelopmentDetector
from argus.analyzers.endpoints import EndpointsDetector
from argus.analyzers.frameworks import FrameworkPatternsDetector
from argus.analyzers.git import GitDetector
from argus.analyzers.monorepo import MonorepoDetector
from argus.analyzers.patterns import PatternsDetector
from argus.analyzers.project_tools import ProjectToolsDetector
from argus.analyzers.readme import ReadmeDetector
from argus.analyzers.registry import DetectorRegistry
from argus.analyzers.structure import StructureDetector
from argus.analyzers.techstack import TechStackDetector
from argus.analyzers.walker import FileWalker, WalkerError

__all__ = [
    "AnalysisCancelledError",
    "DetectionContext",
    "Detector",
    "DetectorError",
    "DetectorRegistry",
    "FileWalker",
    "WalkerError",
    "WriteDiscipline",
    "setup_default_detectors",
]

DEFAULT_DETECTORS: tuple[type[Detector], ...] = (
    TechStackDetector,
    StructureDetector,
    CommandsDetector,
    DependenciesDetector,
    ConventionsDetector,
    PatternsDetector,
    FrameworkPatternsDetector,
    CodePatternsDetector,
    EndpointsDetector,
    ReadmeDetector,
    MonorepoDetector,
    GitDetector,
    ArchitectureDetector,
    DevelopmentDetector,
    ConfigFilesDetector,
    CLIDetector,
    ProjectToolsDetector,
)


def setup_default_detectors(registry: DetectorRegistry) -> DetectorRegistry:
    """Register all built-in detectors.

    Args:
        registry: Registry to populate; each pipeline owns its own

    Returns:
        The populated registry
    """
    for detector_class in DEFAULT_DETECTORS:
        if detector_class.name not in registry:
            registry.register(detector_class)

    return registry
