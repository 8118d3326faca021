"""Recognized configuration files at the repository root."""

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.models.analysis import Analysis, ConfigFileInfo

# file name -> (type, purpose)
CONFIG_FILES: dict[str, tuple[str, str]] = {
    ".argus.yaml": ("Argus", "Analyzer configuration"),
    # Go
    "go.mod": ("Go Modules", "Go dependencies and module path"),
    ".golangci.yml": ("Linter", "Go linter configuration"),
    ".golangci.yaml": ("Linter", "Go linter configuration"),
    # JavaScript / TypeScript
    "package.json": ("npm", "Project metadata and dependencies"),
    "tsconfig.json": ("TypeScript", "TypeScript compiler options"),
    ".eslintrc": ("Linter", "ESLint configuration"),
    ".eslintrc.json": ("Linter", "ESLint configuration"),
    ".eslintrc.js": ("Linter", "ESLint configuration"),
    ".eslintrc.cjs": ("Linter", "ESLint configuration"),
    ".eslintrc.yml": ("Linter", "ESLint configuration"),
    "eslint.config.js": ("Linter", "ESLint flat config"),
    "eslint.config.mjs": ("Linter", "ESLint flat config"),
    ".prettierrc": ("Formatter", "Prettier configuration"),
    ".prettierrc.json": ("Formatter", "Prettier configuration"),
    ".prettierrc.js": ("Formatter", "Prettier configuration"),
    "prettier.config.js": ("Formatter", "Prettier configuration"),
    "biome.json": ("Linter", "Biome linter and formatter configuration"),
    "jest.config.js": ("Testing", "Jest test configuration"),
    "jest.config.ts": ("Testing", "Jest test configuration"),
    "vitest.config.ts": ("Testing", "Vitest test configuration"),
    "vitest.config.js": ("Testing", "Vitest test configuration"),
    "playwright.config.ts": ("Testing", "Playwright test configuration"),
    "vite.config.ts": ("Build", "Vite bundler configuration"),
    "vite.config.js": ("Build", "Vite bundler configuration"),
    "webpack.config.js": ("Build", "Webpack bundler configuration"),
    "rollup.config.js": ("Build", "Rollup bundler configuration"),
    "next.config.js": ("Framework", "Next.js configuration"),
    "next.config.mjs": ("Framework", "Next.js configuration"),
    "nuxt.config.ts": ("Framework", "Nuxt configuration"),
    "tailwind.config.js": ("Styling", "Tailwind CSS configuration"),
    "tailwind.config.ts": ("Styling", "Tailwind CSS configuration"),
    "postcss.config.js": ("Styling", "PostCSS configuration"),
    "turbo.json": ("Monorepo", "Turborepo configuration"),
    "lerna.json": ("Monorepo", "Lerna configuration"),
    "nx.json": ("Monorepo", "Nx workspace configuration"),
    "pnpm-workspace.yaml": ("Monorepo", "pnpm workspace configuration"),
    ".nvmrc": ("Node", "Node version specification"),
    # Python
    "pyproject.toml": ("Python", "Python project configuration"),
    "setup.py": ("Python", "Python package setup"),
    "setup.cfg": ("Python", "Python package configuration"),
    "requirements.txt": ("Python", "Python dependencies"),
    "tox.ini": ("Testing", "Tox test configuration"),
    "pytest.ini": ("Testing", "Pytest configuration"),
    ".flake8": ("Linter", "Flake8 linter configuration"),
    "mypy.ini": ("Linter", "Mypy type checker configuration"),
    ".mypy.ini": ("Linter", "Mypy type checker configuration"),
    "ruff.toml": ("Linter", "Ruff linter configuration"),
    ".ruff.toml": ("Linter", "Ruff linter configuration"),
    # Rust
    "Cargo.toml": ("Rust", "Rust package configuration"),
    "rustfmt.toml": ("Formatter", "rustfmt configuration"),
    "clippy.toml": ("Linter", "Clippy linter configuration"),
    # Containers
    "Dockerfile": ("Docker", "Container image definition"),
    "docker-compose.yml": ("Docker", "Docker Compose services"),
    "docker-compose.yaml": ("Docker", "Docker Compose services"),
    # CI/CD and release
    ".travis.yml": ("CI/CD", "Travis CI configuration"),
    ".gitlab-ci.yml": ("CI/CD", "GitLab CI configuration"),
    "Jenkinsfile": ("CI/CD", "Jenkins pipeline"),
    "azure-pipelines.yml": ("CI/CD", "Azure Pipelines configuration"),
    "Makefile": ("Build", "Make build automation"),
    ".goreleaser.yml": ("Release", "GoReleaser configuration"),
    ".goreleaser.yaml": ("Release", "GoReleaser configuration"),
    # Environment
    ".env.example": ("Environment", "Environment variables template"),
    ".env.sample": ("Environment", "Environment variables template"),
    ".env.template": ("Environment", "Environment variables template"),
    # Git hooks
    ".lefthook.yml": ("Git Hooks", "Lefthook configuration"),
    "lefthook.yml": ("Git Hooks", "Lefthook configuration"),
    ".pre-commit-config.yaml": ("Git Hooks", "Pre-commit hooks configuration"),
    # Editor and bots
    ".editorconfig": ("Editor", "Editor configuration"),
    ".codecov.yml": ("Coverage", "Codecov configuration"),
    "codecov.yml": ("Coverage", "Codecov configuration"),
    "renovate.json": ("Dependencies", "Renovate bot configuration"),
}

# Types whose files also change how the project is developed
TOOLING_TYPES = frozenset({"Linter", "Formatter", "Editor", "CI/CD", "Testing"})


def is_tooling_config(name: str) -> bool:
    """Lint, format, editor, test or CI config file by base name."""
    entry = CONFIG_FILES.get(name)
    return entry is not None and entry[0] in TOOLING_TYPES


class ConfigFilesDetector(Detector):
    name = "config_files"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("config_files",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        configs = [
            ConfigFileInfo(path=name, type=kind, purpose=purpose)
            for name, (kind, purpose) in CONFIG_FILES.items()
            if ctx.is_file(name)
        ]
        if ctx.is_dir(".github/workflows"):
            configs.append(
                ConfigFileInfo(path=".github/workflows/", type="CI/CD", purpose="GitHub Actions workflows")
            )
        for name in (".github/dependabot.yml", ".github/dependabot.yaml"):
            if ctx.is_file(name):
                configs.append(ConfigFileInfo(path=name, type="Dependencies", purpose="Dependabot configuration"))
        configs.sort(key=lambda c: c.path)
        return {"config_files": configs}
