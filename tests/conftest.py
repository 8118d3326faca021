"""Shared pytest fixtures for argus tests.

Fixtures are organized by category:
- Repository fixtures: temporary repositories written file by file
- Pipeline fixtures: options that keep runs hermetic (no git)
- Analysis fixtures: pre-built Analysis records for generator tests
"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from argus.models.analysis import (
    Analysis,
    ArchitectureInfo,
    ArchitectureLayer,
    BranchConvention,
    Command,
    CommitConvention,
    Convention,
    ConventionCategory,
    Dependency,
    DependencyType,
    Directory,
    Endpoint,
    Framework,
    FrameworkCategory,
    GitConventions,
    GitRepository,
    Language,
    ProjectStructure,
    ReadmeContent,
    TechStack,
)
from argus.pipeline import PipelineOptions

RepoFactory = Callable[[dict[str, str]], Path]


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Write {relative path: content} under root, creating parents."""
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


# =============================================================================
# Repository Fixtures
# =============================================================================


@pytest.fixture
def make_repo(tmp_path: Path) -> RepoFactory:
    """Factory writing a repository under tmp_path/repo from a file mapping."""

    def factory(files: dict[str, str]) -> Path:
        root = tmp_path / "repo"
        root.mkdir(exist_ok=True)
        return write_tree(root, files)

    return factory


@pytest.fixture
def go_repo(make_repo: RepoFactory) -> Path:
    """Minimal Go module with a single main.go."""
    return make_repo(
        {
            "go.mod": "module test\n\ngo 1.21\n",
            "main.go": 'package main\n\nimport "fmt"\n\nfunc main() {\n\tfmt.Println("hi")\n}\n',
        }
    )


@pytest.fixture
def node_repo(make_repo: RepoFactory) -> Path:
    """React project with a jest dev dependency and npm scripts."""
    package = {
        "name": "web",
        "version": "1.0.0",
        "scripts": {"dev": "vite", "build": "vite build", "test": "jest", "lint": "eslint ."},
        "dependencies": {"react": "^18.2.0"},
        "devDependencies": {"jest": "^29.0.0"},
    }
    return make_repo(
        {
            "package.json": json.dumps(package, indent=2),
            "src/index.js": "import React from 'react'\n",
            "src/components/Button.jsx": "export function Button() { return null }\n",
        }
    )


@pytest.fixture
def express_repo(make_repo: RepoFactory) -> Path:
    """Express API with two routes, one behind auth middleware."""
    package = {
        "name": "api",
        "scripts": {"start": "node server.js", "test": "jest"},
        "dependencies": {"express": "^4.18.2"},
    }
    return make_repo(
        {
            "package.json": json.dumps(package),
            "server.js": (
                "const express = require('express')\n"
                "const app = express()\n"
                "app.get('/users', listUsers)\n"
                "app.post('/users', requireAuth, createUser)\n"
            ),
        }
    )


@pytest.fixture
def monorepo_repo(make_repo: RepoFactory) -> Path:
    """npm workspaces monorepo with two apps and two packages."""
    root_package = {"name": "mono", "private": True, "workspaces": ["apps/*", "packages/*"]}
    files = {"package.json": json.dumps(root_package), "turbo.json": "{}"}
    for workspace in ("apps/web", "apps/admin", "packages/ui", "packages/utils"):
        name = workspace.rsplit("/", 1)[-1]
        files[f"{workspace}/package.json"] = json.dumps({"name": f"@mono/{name}"})
        files[f"{workspace}/index.js"] = "module.exports = {}\n"
    return make_repo(files)


# =============================================================================
# Pipeline Fixtures
# =============================================================================


@pytest.fixture
def options() -> PipelineOptions:
    """Pipeline options that never shell out to git."""
    return PipelineOptions(skip_git=True)


@pytest.fixture
def serial_options() -> PipelineOptions:
    """Serial reference scheduler, without git."""
    return PipelineOptions(parallel=False, skip_git=True)


# =============================================================================
# Analysis Fixtures
# =============================================================================


@pytest.fixture
def sample_analysis() -> Analysis:
    """Hand-built Analysis for a Go API with a React front end."""
    return Analysis(
        project_name="shop",
        root_path="/tmp/shop",
        tech_stack=TechStack(
            languages=[
                Language(name="Go", version="1.21", percentage=60.0),
                Language(name="TypeScript", version="5.2.0", percentage=40.0),
            ],
            frameworks=[
                Framework(name="Gin", version="v1.9.1", category=FrameworkCategory.BACKEND),
                Framework(name="React", version="18.2.0", category=FrameworkCategory.FRONTEND),
                Framework(name="Jest", version="29.0.0", category=FrameworkCategory.TESTING),
            ],
            databases=["PostgreSQL"],
            tools=["Docker", "Make"],
        ),
        structure=ProjectStructure(
            directories=[
                Directory(path="cmd", purpose="Command entrypoints", file_count=2),
                Directory(path="internal/api", purpose="API endpoints", file_count=8),
            ],
            root_files=["Makefile", "go.mod"],
        ),
        conventions=[
            Convention(ConventionCategory.NAMING, "Components use PascalCase naming"),
            Convention(ConventionCategory.TESTING, "Test files use _test suffix or test_ prefix"),
            Convention(ConventionCategory.CODE_STYLE, "Go project - use 'go fmt' or 'gofmt' for formatting"),
            Convention(ConventionCategory.CUSTOM, "Always wrap errors with context"),
        ],
        dependencies=[
            Dependency("github.com/gin-gonic/gin", "v1.9.1", DependencyType.RUNTIME),
            Dependency("jest", "^29.0.0", DependencyType.DEV),
        ],
        commands=[
            Command(name="make build", command="make build", description="Build the project"),
            Command(name="make test", command="make test", description="Run tests"),
            Command(name="make lint", command="make lint", description="Run linter"),
            Command(name="go fmt ./...", command="go fmt ./...", description="Format all Go files"),
        ],
        endpoints=[
            Endpoint(method="GET", path="/products", file="internal/api/routes.go", line=12),
            Endpoint(
                method="POST", path="/orders", file="internal/api/routes.go", line=13, auth="Required"
            ),
        ],
        git_conventions=GitConventions(
            repository=GitRepository(
                remote_url="git@github.com:acme/shop.git", owner="acme", name="shop", platform="github"
            ),
            commit_convention=CommitConvention(
                style="conventional",
                format="<type>(<scope>): <description>",
                types=["feat", "fix"],
                example="feat: add new feature",
            ),
            branch_convention=BranchConvention(
                prefixes=["feat", "fix"], format="<prefix>/<description>"
            ),
        ),
        architecture_info=ArchitectureInfo(
            style="Standard Go Layout",
            layers=[
                ArchitectureLayer(name="cmd", purpose="Entry points / CLI"),
                ArchitectureLayer(name="internal", purpose="Private packages", depends_on=[]),
            ],
            entry_point="cmd/shop/main.go",
        ),
        readme_content=ReadmeContent(title="Shop", description="An example storefront."),
    )
