"""Project structure and key file detection.

Groups files under their top-level directory (container directories such as
src/ or packages/ are expanded one level) and annotates recognized names with
a purpose. Key files are entry points, manifests, configs and root docs.
"""

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.models.analysis import Analysis, Directory, KeyFile, ProjectStructure

# Directories expanded one level when grouping
CONTAINER_DIRS = frozenset({"src", "app", "apps", "packages", "lib", "internal", "pkg"})

DIRECTORY_PURPOSES: dict[str, str] = {
    # Source layout
    "src": "Source code",
    "source": "Source code",
    "lib": "Library code",
    "pkg": "Public packages",
    "internal": "Private packages",
    "cmd": "Command entrypoints",
    "cli": "CLI commands",
    "core": "Core functionality",
    "common": "Common utilities",
    "shared": "Shared utilities and components",
    # Frontend
    "app": "Application pages/routes",
    "apps": "Application modules",
    "pages": "Page components",
    "components": "UI components",
    "ui": "UI components",
    "views": "View components",
    "layouts": "Layout components",
    "templates": "Templates",
    "hooks": "Custom hooks",
    "composables": "Vue composables",
    "store": "State management",
    "stores": "State stores",
    "state": "State management",
    "context": "React context",
    "contexts": "React contexts",
    "providers": "Context providers",
    "styles": "Stylesheets",
    "public": "Public static assets",
    "static": "Static files",
    "assets": "Assets (images, fonts, etc.)",
    # Backend
    "api": "API endpoints",
    "routes": "Route handlers",
    "router": "Route definitions",
    "routers": "Route definitions",
    "controllers": "Controllers",
    "handlers": "Request handlers",
    "services": "Business logic services",
    "service": "Business logic services",
    "usecases": "Use case implementations",
    "models": "Data models",
    "entities": "Database entities",
    "schemas": "Schema definitions",
    "middleware": "Middleware",
    "middlewares": "Middleware",
    "repositories": "Data repositories",
    "repository": "Data repositories",
    "domain": "Domain modules",
    "adapters": "Adapters",
    "ports": "Ports (interfaces)",
    "infrastructure": "Infrastructure",
    "features": "Feature modules",
    "modules": "Modules",
    "packages": "Monorepo packages",
    "workers": "Background workers",
    "jobs": "Background jobs",
    "tasks": "Async tasks",
    "graphql": "GraphQL schema/resolvers",
    "resolvers": "Resolver implementations",
    "auth": "Authentication",
    "proto": "Protocol buffer definitions",
    # Data
    "db": "Database",
    "database": "Database",
    "data": "Data layer",
    "migrations": "Database migrations",
    "migrate": "Database migrations",
    "seeds": "Database seeds",
    "prisma": "Prisma schema and migrations",
    # Config and tooling
    "config": "Configuration",
    "configs": "Configuration",
    "settings": "Settings",
    "utils": "Utilities",
    "util": "Utilities",
    "helpers": "Helper functions",
    "tools": "Tools",
    "scripts": "Scripts",
    "deploy": "Deployment configs",
    "deployments": "Deployment configs",
    "k8s": "Kubernetes configs",
    "terraform": "Terraform configs",
    ".github": "GitHub configuration",
    # Tests
    "test": "Tests",
    "tests": "Tests",
    "__tests__": "Tests",
    "spec": "Test specifications",
    "e2e": "End-to-end tests",
    "integration": "Integration tests",
    "fixtures": "Test fixtures",
    "mocks": "Mock data/services",
    "testdata": "Test data",
    # Docs and types
    "docs": "Documentation",
    "doc": "Documentation",
    "examples": "Examples",
    "types": "Type definitions",
    "typings": "Type definitions",
    "i18n": "Internationalization",
    "locales": "Localization files",
    # ML
    "notebooks": "Jupyter notebooks",
    "experiments": "Experiments",
    "checkpoints": "Model checkpoints",
    "datasets": "Datasets",
}

# Exact basenames recognized anywhere in the tree: (purpose, description)
KEY_FILE_NAMES: dict[str, tuple[str, str]] = {
    "main.go": ("Entry point", "Go application entry"),
    "main.rs": ("Entry point", "Rust application entry"),
    "lib.rs": ("Library root", "Rust library root"),
    "main.ts": ("Entry point", "TypeScript entry"),
    "main.js": ("Entry point", "JavaScript entry"),
    "index.ts": ("Entry point", "TypeScript index"),
    "index.js": ("Entry point", "JavaScript index"),
    "app.ts": ("Application", "Application setup"),
    "app.js": ("Application", "Application setup"),
    "server.ts": ("Server", "Server setup"),
    "server.js": ("Server", "Server setup"),
    "manage.py": ("Entry point", "Django management script"),
    "wsgi.py": ("Entry point", "WSGI application entry"),
    "asgi.py": ("Entry point", "ASGI application entry"),
    "app.py": ("Entry point", "Flask/FastAPI application"),
    "main.py": ("Entry point", "Python application entry"),
    "__main__.py": ("Entry point", "Python module entry"),
    "setup.py": ("Package setup", "Python package setup"),
    "package.json": ("Package config", "Node.js dependencies and scripts"),
    "tsconfig.json": ("TypeScript config", "TypeScript compiler options"),
    "go.mod": ("Go module", "Go dependencies"),
    "Cargo.toml": ("Cargo config", "Rust dependencies"),
    "requirements.txt": ("Python deps", "Python dependencies"),
    "pyproject.toml": ("Python config", "Python project config"),
    "Pipfile": ("Pipenv config", "Pipenv dependencies"),
    "pom.xml": ("Maven config", "Java dependencies and build"),
    "build.gradle": ("Gradle config", "JVM dependencies and build"),
    "Gemfile": ("Bundler config", "Ruby dependencies"),
    "schema.prisma": ("Database schema", "Prisma database schema"),
    "docker-compose.yml": ("Docker config", "Docker services"),
    "docker-compose.yaml": ("Docker config", "Docker services"),
    "Dockerfile": ("Docker", "Container definition"),
    "Makefile": ("Build config", "Make targets"),
    ".env.example": ("Env template", "Environment variables template"),
    ".env.sample": ("Env template", "Environment variables template"),
    ".gitlab-ci.yml": ("CI config", "GitLab CI"),
    "Jenkinsfile": ("CI config", "Jenkins pipeline"),
    "middleware.ts": ("Middleware", "Request middleware"),
    "auth.ts": ("Authentication", "Auth utilities"),
    "auth.js": ("Authentication", "Auth utilities"),
}

# Documents only recognized at the repository root
ROOT_DOCS: dict[str, tuple[str, str]] = {
    "README.md": ("Documentation", "Project documentation"),
    "CONTRIBUTING.md": ("Contributing", "Contribution guidelines"),
}


def infer_directory_purpose(path: str) -> str:
    """Purpose for a directory path, by full path then last segment."""
    lowered = path.lower()
    if lowered in DIRECTORY_PURPOSES:
        return DIRECTORY_PURPOSES[lowered]
    return DIRECTORY_PURPOSES.get(lowered.rsplit("/", 1)[-1], "")


class StructureDetector(Detector):
    """Detects directory layout, root files and key files."""

    name = "structure"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("structure", "key_files")
    stage = 1
    fatal = True

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        return {
            "structure": self.detect_structure(ctx),
            "key_files": self.detect_key_files(ctx),
        }

    def detect_structure(self, ctx: DetectionContext) -> ProjectStructure:
        counts: dict[str, int] = {}
        root_files: list[str] = []

        for entry in ctx.iter_files():
            parts = entry.path.split("/")
            if len(parts) == 1:
                root_files.append(entry.name)
                continue
            dirs = parts[:-1]
            if dirs[0] in CONTAINER_DIRS and len(dirs) >= 2:
                key = f"{dirs[0]}/{dirs[1]}"
            else:
                key = dirs[0]
            counts[key] = counts.get(key, 0) + 1

        directories = [
            Directory(path=path, purpose=infer_directory_purpose(path), file_count=count)
            for path, count in sorted(counts.items())
        ]
        return ProjectStructure(directories=directories, root_files=sorted(root_files))

    def detect_key_files(self, ctx: DetectionContext) -> list[KeyFile]:
        key_files: list[KeyFile] = []
        seen: set[str] = set()

        for entry in ctx.iter_files():
            if entry.name in ROOT_DOCS:
                if entry.path == entry.name and entry.name not in seen:
                    purpose, description = ROOT_DOCS[entry.name]
                    key_files.append(KeyFile(entry.path, purpose, description))
                    seen.add(entry.name)
                continue

            if entry.name in KEY_FILE_NAMES and entry.name not in seen:
                purpose, description = KEY_FILE_NAMES[entry.name]
                key_files.append(KeyFile(entry.path, purpose, description))
                seen.add(entry.name)
                continue

            if entry.path.startswith(".github/workflows/") and "workflow" not in seen:
                key_files.append(KeyFile(entry.path, "CI config", "GitHub Actions workflow"))
                seen.add("workflow")

        return key_files
