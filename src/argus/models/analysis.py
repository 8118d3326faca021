"""Analysis record and its facets.

The Analysis dataclass is the single aggregate produced by the pipeline.
Each facet (tech stack, structure, conventions, endpoints, ...) is owned by
exactly one detector, except `conventions`, which several detectors append to.

Sub-records are replaced wholesale by the detector that owns them, never
mutated in place after the pipeline returns. The incremental engine relies on
this when it shares sub-records between a cached Analysis and its working copy.
"""

from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import Any


class FrameworkCategory(Enum):
    """Framework classification."""

    FRONTEND = "frontend"
    BACKEND = "backend"
    FULLSTACK = "fullstack"
    DATABASE = "database"
    TESTING = "testing"
    STYLING = "styling"
    STATE = "state"
    CLI = "cli"
    TOOLING = "tooling"
    OTHER = "other"


class ConventionCategory(Enum):
    """Known convention categories; `custom` is reserved for user conventions."""

    NAMING = "naming"
    STRUCTURE = "structure"
    IMPORTS = "imports"
    TESTING = "testing"
    CODE_STYLE = "code-style"
    TYPESCRIPT = "typescript"
    COMPONENTS = "components"
    DOCUMENTATION = "documentation"
    LOGGING = "logging"
    ERROR_HANDLING = "error-handling"
    ARCHITECTURE = "architecture"
    FRAMEWORK = "framework"
    GIT = "git"
    CUSTOM = "custom"


class DependencyType(Enum):
    """Dependency scope."""

    RUNTIME = "runtime"
    DEV = "dev"


HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "ALL")


# =============================================================================
# Tech stack
# =============================================================================


@dataclass
class Language:
    """Detected language with share of counted source files.

    Attributes:
        name: Language name (e.g., "Go", "TypeScript")
        version: Version from the manifest, verbatim, if known
        percentage: Share of counted source files, 0-100, one decimal
    """

    name: str
    version: str = ""
    percentage: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version, "percentage": self.percentage}


@dataclass
class Framework:
    """Detected framework or library of note."""

    name: str
    version: str = ""
    category: FrameworkCategory = FrameworkCategory.OTHER

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version, "category": self.category.value}


@dataclass
class TechStack:
    """Languages, frameworks, databases and tools."""

    languages: list[Language] = field(default_factory=list)
    frameworks: list[Framework] = field(default_factory=list)
    databases: list[str] = field(default_factory=list)
    tools: list[str] = field(default_factory=list)

    @property
    def primary_language(self) -> str:
        return self.languages[0].name if self.languages else ""

    def has_language(self, name: str) -> bool:
        return any(lang.name == name for lang in self.languages)

    def has_framework(self, name: str) -> bool:
        return any(fw.name == name for fw in self.frameworks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "languages": [lang.to_dict() for lang in self.languages],
            "frameworks": [fw.to_dict() for fw in self.frameworks],
            "databases": list(self.databases),
            "tools": list(self.tools),
        }


# =============================================================================
# Structure
# =============================================================================


@dataclass
class Directory:
    """Directory with an optional recognized purpose."""

    path: str
    purpose: str = ""
    file_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "purpose": self.purpose, "file_count": self.file_count}


@dataclass
class ProjectStructure:
    """Directory layout and files at the repository root."""

    directories: list[Directory] = field(default_factory=list)
    root_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "directories": [d.to_dict() for d in self.directories],
            "root_files": list(self.root_files),
        }


@dataclass
class KeyFile:
    """Important file (entry point, manifest, config, README)."""

    path: str
    purpose: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "purpose": self.purpose, "description": self.description}


# =============================================================================
# Conventions, dependencies, commands, endpoints
# =============================================================================


@dataclass
class Convention:
    """Coding convention observed in (or declared for) the repository."""

    category: ConventionCategory
    description: str
    example: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "description": self.description,
            "example": self.example,
        }


@dataclass
class Dependency:
    """Direct third-party dependency.

    Attributes:
        name: Package or module name
        version: Version constraint as written in the manifest
        type: runtime or dev
    """

    name: str
    version: str = ""
    type: DependencyType = DependencyType.RUNTIME

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version, "type": self.type.value}


@dataclass
class Command:
    """Runnable project command (build, test, lint, ...)."""

    name: str
    command: str
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "command": self.command, "description": self.description}


@dataclass
class Endpoint:
    """HTTP endpoint declared in source.

    Invariants: path starts with "/" and method is one of HTTP_METHODS.
    """

    method: str
    path: str
    file: str
    line: int = 0
    handler: str = ""
    auth: str = ""
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "handler": self.handler,
            "file": self.file,
            "line": self.line,
            "auth": self.auth,
            "description": self.description,
        }


# =============================================================================
# Code patterns
# =============================================================================


@dataclass
class PatternInfo:
    """A library or idiom found in the codebase."""

    name: str
    category: str
    description: str
    file_count: int = 0
    examples: list[str] = field(default_factory=list)
    usage: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "file_count": self.file_count,
            "examples": list(self.examples),
            "usage": self.usage,
        }


PATTERN_CATEGORIES = (
    "testing",
    "data_fetching",
    "routing",
    "forms",
    "styling",
    "auth",
    "api_patterns",
    "db_orm",
    "utilities",
    "state_mgmt",
    "go_patterns",
    "rust_patterns",
    "python_patterns",
    "ml_patterns",
)


@dataclass
class CodePatterns:
    """Pattern findings grouped by category."""

    testing: list[PatternInfo] = field(default_factory=list)
    data_fetching: list[PatternInfo] = field(default_factory=list)
    routing: list[PatternInfo] = field(default_factory=list)
    forms: list[PatternInfo] = field(default_factory=list)
    styling: list[PatternInfo] = field(default_factory=list)
    auth: list[PatternInfo] = field(default_factory=list)
    api_patterns: list[PatternInfo] = field(default_factory=list)
    db_orm: list[PatternInfo] = field(default_factory=list)
    utilities: list[PatternInfo] = field(default_factory=list)
    state_mgmt: list[PatternInfo] = field(default_factory=list)
    go_patterns: list[PatternInfo] = field(default_factory=list)
    rust_patterns: list[PatternInfo] = field(default_factory=list)
    python_patterns: list[PatternInfo] = field(default_factory=list)
    ml_patterns: list[PatternInfo] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in PATTERN_CATEGORIES)

    def to_dict(self) -> dict[str, Any]:
        return {
            name: [p.to_dict() for p in getattr(self, name)] for name in PATTERN_CATEGORIES
        }


# =============================================================================
# Git
# =============================================================================


@dataclass
class CommitConvention:
    """Commit message style derived from recent history."""

    style: str
    format: str = ""
    types: list[str] = field(default_factory=list)
    scopes: list[str] = field(default_factory=list)
    example: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "style": self.style,
            "format": self.format,
            "types": list(self.types),
            "scopes": list(self.scopes),
            "example": self.example,
        }


@dataclass
class BranchConvention:
    """Branch naming prefixes derived from branch names."""

    prefixes: list[str] = field(default_factory=list)
    format: str = ""
    examples: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "prefixes": list(self.prefixes),
            "format": self.format,
            "examples": list(self.examples),
        }


@dataclass
class GitRepository:
    """Remote repository identity."""

    remote_url: str
    owner: str = ""
    name: str = ""
    platform: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "remote_url": self.remote_url,
            "owner": self.owner,
            "name": self.name,
            "platform": self.platform,
        }


@dataclass
class CommitInfo:
    """Single commit from recent history."""

    hash: str
    message: str
    author: str = ""
    date: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"hash": self.hash, "message": self.message, "author": self.author, "date": self.date}


@dataclass
class GitConventions:
    """Git metadata and conventions."""

    repository: GitRepository | None = None
    commit_convention: CommitConvention | None = None
    branch_convention: BranchConvention | None = None
    recent_commits: list[CommitInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "repository": self.repository.to_dict() if self.repository else None,
            "commit_convention": (
                self.commit_convention.to_dict() if self.commit_convention else None
            ),
            "branch_convention": (
                self.branch_convention.to_dict() if self.branch_convention else None
            ),
            "recent_commits": [c.to_dict() for c in self.recent_commits],
        }


# =============================================================================
# Architecture
# =============================================================================


@dataclass
class ArchitectureLayer:
    """Top-level layer with its sub-packages and layer dependencies."""

    name: str
    purpose: str = ""
    packages: list[str] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "purpose": self.purpose,
            "packages": list(self.packages),
            "depends_on": list(self.depends_on),
        }


@dataclass
class ArchitectureInfo:
    """Architecture style, layers and entry point.

    The text diagram is only present when there are at least two layers.
    """

    style: str = ""
    layers: list[ArchitectureLayer] = field(default_factory=list)
    entry_point: str = ""
    diagram: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "style": self.style,
            "layers": [layer.to_dict() for layer in self.layers],
            "entry_point": self.entry_point,
            "diagram": self.diagram,
        }


# =============================================================================
# Development, config files, CLI, project tools
# =============================================================================


@dataclass
class Prerequisite:
    name: str
    version: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


@dataclass
class SetupStep:
    description: str
    command: str

    def to_dict(self) -> dict[str, Any]:
        return {"description": self.description, "command": self.command}


@dataclass
class GitHook:
    name: str
    actions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "actions": list(self.actions)}


@dataclass
class DevelopmentInfo:
    """Prerequisites, setup steps and git hooks."""

    prerequisites: list[Prerequisite] = field(default_factory=list)
    setup_steps: list[SetupStep] = field(default_factory=list)
    git_hooks: list[GitHook] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "prerequisites": [p.to_dict() for p in self.prerequisites],
            "setup_steps": [s.to_dict() for s in self.setup_steps],
            "git_hooks": [h.to_dict() for h in self.git_hooks],
        }


@dataclass
class ConfigFileInfo:
    """Recognized configuration file."""

    path: str
    type: str
    purpose: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "type": self.type, "purpose": self.purpose}


@dataclass
class Indicator:
    symbol: str
    meaning: str

    def to_dict(self) -> dict[str, Any]:
        return {"symbol": self.symbol, "meaning": self.meaning}


@dataclass
class CLIInfo:
    """Flag and output conventions of a command-line project."""

    verbose_flag: str = ""
    dry_run_flag: str = ""
    indicators: list[Indicator] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "verbose_flag": self.verbose_flag,
            "dry_run_flag": self.dry_run_flag,
            "indicators": [i.to_dict() for i in self.indicators],
        }


@dataclass
class ProjectTool:
    """Binary tool provided by the project itself."""

    name: str
    binary_path: str
    description: str = ""
    usage_examples: list[str] = field(default_factory=list)
    when_to_use: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "binary_path": self.binary_path,
            "description": self.description,
            "usage_examples": list(self.usage_examples),
            "when_to_use": self.when_to_use,
        }


# =============================================================================
# Monorepo, README, AI enrichment
# =============================================================================


@dataclass
class WorkspacePackage:
    """Declared package directory with its sub-packages."""

    name: str
    path: str
    description: str = ""
    sub_packages: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "description": self.description,
            "sub_packages": list(self.sub_packages),
        }


@dataclass
class MonorepoInfo:
    """Monorepo tooling and workspace layout."""

    is_monorepo: bool = False
    tool: str = ""
    package_manager: str = ""
    workspace_paths: list[str] = field(default_factory=list)
    packages: list[WorkspacePackage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_monorepo": self.is_monorepo,
            "tool": self.tool,
            "package_manager": self.package_manager,
            "workspace_paths": list(self.workspace_paths),
            "packages": [p.to_dict() for p in self.packages],
        }


@dataclass
class ReadmeContent:
    """Structured content extracted from README."""

    title: str = ""
    description: str = ""
    features: list[str] = field(default_factory=list)
    installation: str = ""
    quick_start: str = ""
    usage: str = ""
    prerequisites: list[str] = field(default_factory=list)
    key_commands: list[str] = field(default_factory=list)
    model_specs: dict[str, str] = field(default_factory=dict)
    project_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "features": list(self.features),
            "installation": self.installation,
            "quick_start": self.quick_start,
            "usage": self.usage,
            "prerequisites": list(self.prerequisites),
            "key_commands": list(self.key_commands),
            "model_specs": dict(sorted(self.model_specs.items())),
            "project_type": self.project_type,
        }


@dataclass
class EnrichedInsight:
    title: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "description": self.description}


@dataclass
class AIEnrichment:
    """Free-form insights attached by the optional enrichment post-pass."""

    model: str
    project_summary: str = ""
    conventions: list[EnrichedInsight] = field(default_factory=list)
    architecture: list[EnrichedInsight] = field(default_factory=list)
    best_practices: list[EnrichedInsight] = field(default_factory=list)
    patterns: list[EnrichedInsight] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "project_summary": self.project_summary,
            "conventions": [i.to_dict() for i in self.conventions],
            "architecture": [i.to_dict() for i in self.architecture],
            "best_practices": [i.to_dict() for i in self.best_practices],
            "patterns": [i.to_dict() for i in self.patterns],
        }


# =============================================================================
# Aggregate
# =============================================================================


@dataclass
class Analysis:
    """Aggregate analysis of one repository.

    Created empty per run, written only by the pipeline's detectors, then
    handed to consumers, which must treat it as read-only.

    Attributes:
        project_name: Directory basename unless overridden by config
        root_path: Absolute repository root
        tech_stack: Languages, frameworks, databases, tools (TechStack detector)
        structure: Directory layout (Structure detector)
        key_files: Important files (Structure detector)
        conventions: Ordered conventions from several detectors plus custom ones
        dependencies: Direct dependencies (Dependencies detector)
        commands: Runnable commands (Commands detector)
        endpoints: HTTP endpoints (Endpoints detector)
        code_patterns: Library and idiom usage (CodePatterns detector)
        git_conventions: Git metadata (Git detector)
        architecture_info: Style, layers, entry point (Architecture detector)
        development_info: Setup information (Development detector)
        config_files: Recognized config files (ConfigFiles detector)
        cli_info: CLI conventions (CLI detector, stage 3)
        project_tools: Project-provided binaries (ProjectTools detector, stage 3)
        monorepo_info: Workspace layout (Monorepo detector)
        readme_content: README extraction (README detector)
        ai_enrichment: Optional enrichment insights
    """

    project_name: str
    root_path: str
    tech_stack: TechStack = field(default_factory=TechStack)
    structure: ProjectStructure = field(default_factory=ProjectStructure)
    key_files: list[KeyFile] = field(default_factory=list)
    conventions: list[Convention] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)
    commands: list[Command] = field(default_factory=list)
    endpoints: list[Endpoint] = field(default_factory=list)
    code_patterns: CodePatterns | None = None
    git_conventions: GitConventions | None = None
    architecture_info: ArchitectureInfo | None = None
    development_info: DevelopmentInfo | None = None
    config_files: list[ConfigFileInfo] = field(default_factory=list)
    cli_info: CLIInfo | None = None
    project_tools: list[ProjectTool] = field(default_factory=list)
    monorepo_info: MonorepoInfo | None = None
    readme_content: ReadmeContent | None = None
    ai_enrichment: AIEnrichment | None = None

    def reset_field(self, name: str) -> None:
        """Restore a facet to its empty default.

        Raises:
            KeyError: If the name is not an Analysis field
        """
        for f in fields(self):
            if f.name != name:
                continue
            if f.default_factory is not MISSING:
                setattr(self, name, f.default_factory())
            elif f.default is not MISSING:
                setattr(self, name, f.default)
            else:
                raise KeyError(f"Field has no default and cannot be reset: {name}")
            return
        raise KeyError(f"Unknown analysis field: {name}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""

        def optional(value: Any) -> Any:
            return value.to_dict() if value is not None else None

        return {
            "project_name": self.project_name,
            "root_path": self.root_path,
            "tech_stack": self.tech_stack.to_dict(),
            "structure": self.structure.to_dict(),
            "key_files": [k.to_dict() for k in self.key_files],
            "conventions": [c.to_dict() for c in self.conventions],
            "dependencies": [d.to_dict() for d in self.dependencies],
            "commands": [c.to_dict() for c in self.commands],
            "endpoints": [e.to_dict() for e in self.endpoints],
            "code_patterns": optional(self.code_patterns),
            "git_conventions": optional(self.git_conventions),
            "architecture_info": optional(self.architecture_info),
            "development_info": optional(self.development_info),
            "config_files": [c.to_dict() for c in self.config_files],
            "cli_info": optional(self.cli_info),
            "project_tools": [t.to_dict() for t in self.project_tools],
            "monorepo_info": optional(self.monorepo_info),
            "readme_content": optional(self.readme_content),
            "ai_enrichment": optional(self.ai_enrichment),
        }
