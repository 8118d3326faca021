"""argus configuration system.

Configuration lives in a single YAML file, `.argus.yaml`, at the root of the
analyzed repository. A missing file means defaults. String values support
${VAR} environment variable substitution.

CLI flags (--format, --output, --ai) override the file per run.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILE_NAME = ".argus.yaml"

VALID_OUTPUTS = ("claude", "claude-code", "cursor", "copilot", "continue", "all")
VALID_OVERRIDE_KEYS = ("project_name", "framework", "language", "description")

MAX_CUSTOM_CONVENTIONS = 50
MAX_CONVENTION_LENGTH = 500

DEFAULT_OUTPUT = ["claude"]
DEFAULT_IGNORE = ["node_modules", ".git", "dist", "build", "vendor", "*.log"]

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class ClaudeCodeConfig:
    """Toggles for the claude-code output.

    Attributes:
        agents: Generate .claude/agents/*.md
        skills: Generate .claude/skills/*/SKILL.md
        rules: Generate .claude/rules/*.md
        mcp: Generate .mcp.json
        hooks: Generate .claude/settings.json with hooks
    """

    agents: bool = True
    skills: bool = True
    rules: bool = True
    mcp: bool = True
    hooks: bool = True


@dataclass
class AIConfig:
    """AI enrichment settings.

    Enrichment is off unless enabled here or requested with --ai.

    Attributes:
        enabled: Run the enrichment post-pass
        endpoint: Ollama-compatible API base URL
        model: Model name
        timeout: Per-request timeout in seconds
    """

    enabled: bool = False
    endpoint: str = "http://localhost:11434"
    model: str = "llama3.2"
    timeout: float = 120.0


@dataclass
class WorkspaceOverride:
    """Per-workspace settings for monorepo output.

    Attributes:
        output: Generator ids for this workspace (empty means the top-level list)
        custom_conventions: Conventions added to this workspace only
    """

    output: list[str] = field(default_factory=list)
    custom_conventions: list[str] = field(default_factory=list)


@dataclass
class MonorepoConfig:
    """Monorepo output settings.

    Attributes:
        per_workspace: Generate context files inside every workspace
        max_concurrent: Upper bound on workspaces analyzed at once
        root_overview: Write a monorepo overview CLAUDE.md at the root
        workspace_overrides: Settings keyed by root-relative workspace path
    """

    per_workspace: bool = False
    max_concurrent: int = 4
    root_overview: bool = True
    workspace_overrides: dict[str, WorkspaceOverride] = field(default_factory=dict)


@dataclass
class ArgusConfig:
    """Top-level argus configuration.

    Attributes:
        output: Ordered generator ids ("all" expands to every generator)
        ignore: Extra gitignore-style patterns for the file walker
        custom_conventions: Free-form conventions appended to the detected ones
        overrides: Replacement values for project_name, framework, language, description
        claude_code: claude-code output toggles
        ai: AI enrichment settings
        monorepo: Per-workspace output settings
    """

    output: list[str] = field(default_factory=lambda: list(DEFAULT_OUTPUT))
    ignore: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE))
    custom_conventions: list[str] = field(default_factory=list)
    overrides: dict[str, str] = field(default_factory=dict)
    claude_code: ClaudeCodeConfig = field(default_factory=ClaudeCodeConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    monorepo: MonorepoConfig = field(default_factory=MonorepoConfig)

    # Set when loaded from disk
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping in file layout (used by save_config)."""
        return {
            "output": list(self.output),
            "ignore": list(self.ignore),
            "custom_conventions": list(self.custom_conventions),
            "overrides": dict(self.overrides),
            "claude_code": {
                "agents": self.claude_code.agents,
                "skills": self.claude_code.skills,
                "rules": self.claude_code.rules,
                "mcp": self.claude_code.mcp,
                "hooks": self.claude_code.hooks,
            },
            "ai": {
                "enabled": self.ai.enabled,
                "endpoint": self.ai.endpoint,
                "model": self.ai.model,
                "timeout": self.ai.timeout,
            },
            "monorepo": {
                "per_workspace": self.monorepo.per_workspace,
                "max_concurrent": self.monorepo.max_concurrent,
                "root_overview": self.monorepo.root_overview,
                "workspace_overrides": {
                    path: {
                        "output": list(override.output),
                        "custom_conventions": list(override.custom_conventions),
                    }
                    for path, override in self.monorepo.workspace_overrides.items()
                },
            },
        }


class ConfigValidationError(Exception):
    """Configuration violates one or more rules.

    Attributes:
        errors: One message per violation
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        if len(errors) == 1:
            message = f"config validation error: {errors[0]}"
        else:
            message = "config validation errors:\n  - " + "\n  - ".join(errors)
        super().__init__(message)


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax. Example: ${PROJECT_NAME} -> value of PROJECT_NAME

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config Loading
# =============================================================================


def _string_list(value: Any) -> list[str]:
    # A key holding only comments parses as None
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value if item is not None]


def load_config_from_dict(data: dict[str, Any]) -> ArgusConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        ArgusConfig instance (not validated)
    """
    data = substitute_env_vars(data)

    config = ArgusConfig()

    if data.get("output") is not None:
        config.output = _string_list(data["output"]) or list(DEFAULT_OUTPUT)

    if "ignore" in data:
        config.ignore = _string_list(data["ignore"])

    if "custom_conventions" in data:
        config.custom_conventions = _string_list(data["custom_conventions"])

    if isinstance(data.get("overrides"), dict):
        config.overrides = {str(k): str(v) for k, v in data["overrides"].items() if v is not None}

    if isinstance(data.get("claude_code"), dict):
        cc_data = data["claude_code"]
        config.claude_code = ClaudeCodeConfig(
            agents=bool(cc_data.get("agents", True)),
            skills=bool(cc_data.get("skills", True)),
            rules=bool(cc_data.get("rules", True)),
            mcp=bool(cc_data.get("mcp", True)),
            hooks=bool(cc_data.get("hooks", True)),
        )

    if isinstance(data.get("ai"), dict):
        ai_data = data["ai"]
        defaults = AIConfig()
        config.ai = AIConfig(
            enabled=bool(ai_data.get("enabled", False)),
            endpoint=ai_data.get("endpoint") or defaults.endpoint,
            model=ai_data.get("model") or defaults.model,
            timeout=float(ai_data.get("timeout") or defaults.timeout),
        )

    if isinstance(data.get("monorepo"), dict):
        mono_data = data["monorepo"]
        overrides = {}
        raw_overrides = mono_data.get("workspace_overrides")
        if isinstance(raw_overrides, dict):
            for path, ws_data in raw_overrides.items():
                ws_data = ws_data if isinstance(ws_data, dict) else {}
                overrides[str(path).strip("/")] = WorkspaceOverride(
                    output=_string_list(ws_data.get("output")),
                    custom_conventions=_string_list(ws_data.get("custom_conventions")),
                )
        max_concurrent = mono_data.get("max_concurrent")
        config.monorepo = MonorepoConfig(
            per_workspace=bool(mono_data.get("per_workspace", False)),
            max_concurrent=int(max_concurrent) if max_concurrent is not None else 4,
            root_overview=bool(mono_data.get("root_overview", True)),
            workspace_overrides=overrides,
        )

    return config


def config_exists(root: Path | str) -> bool:
    return (Path(root) / CONFIG_FILE_NAME).is_file()


def load_config(root: Path | str) -> ArgusConfig:
    """Load `.argus.yaml` from a repository root.

    Args:
        root: Repository root

    Returns:
        ArgusConfig instance; defaults if the file does not exist

    Raises:
        ValueError: If the file is not valid YAML or not a mapping
    """
    path = Path(root) / CONFIG_FILE_NAME
    if not path.is_file():
        return ArgusConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Failed to parse {path}: expected a mapping at top level")

    config = load_config_from_dict(data)
    config._config_path = path
    return config


def save_config(root: Path | str, config: ArgusConfig) -> Path:
    """Write config to `<root>/.argus.yaml` with a header comment."""
    path = Path(root) / CONFIG_FILE_NAME
    body = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)
    path.write_text("# argus configuration\n\n" + body, encoding="utf-8")
    return path


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return """# argus configuration

# Output formats to generate
# Options: claude, claude-code, cursor, copilot, continue, all
output:
  - claude
  # - claude-code  # .claude/ directory with agents, skills, rules
  # - cursor
  # - copilot
  # - continue

# Additional patterns to ignore (beyond .gitignore)
ignore:
  - node_modules
  - .git
  - dist
  - build
  - vendor
  - "*.log"

# Custom conventions added to the auto-detected ones
custom_conventions:
  # - "Use React Query for data fetching"
  # - "All API routes return { success, data, error }"

# Override auto-detected values
# overrides:
#   project_name: "My Project"
#   framework: "Next.js 14"

# claude-code output toggles
# claude_code:
#   agents: true    # .claude/agents/*.md
#   skills: true    # .claude/skills/*/SKILL.md
#   rules: true     # .claude/rules/*.md
#   mcp: true       # .mcp.json
#   hooks: true     # .claude/settings.json

# AI enrichment (local Ollama-compatible endpoint)
# ai:
#   enabled: false
#   endpoint: "http://localhost:11434"
#   model: "llama3.2"
#   timeout: 120

# Monorepo output (used when a workspace layout is detected)
# monorepo:
#   per_workspace: true   # CLAUDE.md etc. inside every workspace
#   max_concurrent: 4
#   root_overview: true   # workspace table in the root CLAUDE.md
#   workspace_overrides:
#     packages/api:
#       output: [claude, cursor]
#       custom_conventions:
#         - "Handlers return typed errors"
"""


# =============================================================================
# Validation
# =============================================================================


def validate_config(config: ArgusConfig) -> None:
    """Check config against the value rules.

    Raises:
        ConfigValidationError: Listing every violation
    """
    errors: list[str] = []

    for output in config.output:
        if output not in VALID_OUTPUTS:
            errors.append(
                f"invalid output format '{output}', must be one of: {', '.join(VALID_OUTPUTS)}"
            )

    if len(config.custom_conventions) > MAX_CUSTOM_CONVENTIONS:
        errors.append(
            f"too many custom conventions ({len(config.custom_conventions)}), "
            f"maximum is {MAX_CUSTOM_CONVENTIONS}"
        )
    for i, convention in enumerate(config.custom_conventions, start=1):
        if not convention:
            errors.append(f"custom convention #{i} is empty")
        elif len(convention) > MAX_CONVENTION_LENGTH:
            errors.append(
                f"custom convention #{i} is too long ({len(convention)} chars), "
                f"maximum is {MAX_CONVENTION_LENGTH}"
            )

    for key in config.overrides:
        if key not in VALID_OVERRIDE_KEYS:
            errors.append(
                f"invalid override key '{key}', must be one of: {', '.join(VALID_OVERRIDE_KEYS)}"
            )

    for i, pattern in enumerate(config.ignore, start=1):
        if not pattern:
            errors.append(f"ignore pattern #{i} is empty")

    if config.ai.timeout <= 0:
        errors.append(f"ai timeout must be positive, got {config.ai.timeout}")

    if config.monorepo.max_concurrent < 1:
        errors.append(
            f"monorepo max_concurrent must be at least 1, got {config.monorepo.max_concurrent}"
        )
    for path, override in config.monorepo.workspace_overrides.items():
        for output in override.output:
            if output not in VALID_OUTPUTS:
                errors.append(f"invalid output format '{output}' for workspace '{path}'")

    if errors:
        raise ConfigValidationError(errors)


_SUGGESTIONS = (
    ("invalid output format", "Use one of: " + ", ".join(VALID_OUTPUTS)),
    ("too many custom conventions", "Consolidate similar conventions or remove less important ones"),
    ("is too long", "Keep conventions concise and actionable"),
    ("invalid override key", "Valid override keys: " + ", ".join(VALID_OVERRIDE_KEYS)),
)


def suggest_fix(error: Exception) -> str:
    """Fix hints for a ConfigValidationError ("" if none apply)."""
    if not isinstance(error, ConfigValidationError):
        return ""
    suggestions: list[str] = []
    for message in error.errors:
        for needle, hint in _SUGGESTIONS:
            if needle in message and hint not in suggestions:
                suggestions.append(hint)
    if not suggestions:
        return ""
    return "Suggestions:\n  - " + "\n  - ".join(suggestions)
