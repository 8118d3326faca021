"""Tech stack detection.

Languages come from counting source files per extension. Frameworks,
databases and tools come from manifest entries and config-file
fingerprints. Version strings are kept verbatim, except npm ranges which
lose their leading operator.
"""

from argus.analyzers.base import (
    SOURCE_EXTENSIONS,
    DetectionContext,
    Detector,
    DetectorResult,
    WriteDiscipline,
)
from argus.analyzers.manifests import (
    clean_npm_version,
    cargo_dependencies,
    python_version,
    read_go_mod,
    read_package_json,
    read_python_requirements,
)
from argus.models.analysis import Analysis, Framework, FrameworkCategory, Language, TechStack
from argus.utils.logging import get_logger

_logger = get_logger(__name__)

C = FrameworkCategory

# Languages below this share of counted files are dropped
MIN_LANGUAGE_PERCENTAGE = 1.0

NPM_FRAMEWORKS: dict[str, tuple[str, FrameworkCategory]] = {
    "next": ("Next.js", C.FULLSTACK),
    "react": ("React", C.FRONTEND),
    "vue": ("Vue.js", C.FRONTEND),
    "nuxt": ("Nuxt.js", C.FULLSTACK),
    "svelte": ("Svelte", C.FRONTEND),
    "@sveltejs/kit": ("SvelteKit", C.FULLSTACK),
    "@angular/core": ("Angular", C.FRONTEND),
    "solid-js": ("SolidJS", C.FRONTEND),
    "astro": ("Astro", C.FRONTEND),
    "express": ("Express.js", C.BACKEND),
    "fastify": ("Fastify", C.BACKEND),
    "koa": ("Koa", C.BACKEND),
    "hono": ("Hono", C.BACKEND),
    "@nestjs/core": ("NestJS", C.BACKEND),
    "@remix-run/react": ("Remix", C.FULLSTACK),
    "remix": ("Remix", C.FULLSTACK),
    "tailwindcss": ("TailwindCSS", C.STYLING),
    "@chakra-ui/react": ("Chakra UI", C.STYLING),
    "@mui/material": ("Material UI", C.STYLING),
    "styled-components": ("Styled Components", C.STYLING),
    "redux": ("Redux", C.STATE),
    "@reduxjs/toolkit": ("Redux", C.STATE),
    "zustand": ("Zustand", C.STATE),
    "pinia": ("Pinia", C.STATE),
    "@tanstack/react-query": ("React Query", C.STATE),
    "swr": ("SWR", C.STATE),
    "jest": ("Jest", C.TESTING),
    "vitest": ("Vitest", C.TESTING),
    "mocha": ("Mocha", C.TESTING),
    "@playwright/test": ("Playwright", C.TESTING),
    "cypress": ("Cypress", C.TESTING),
    "prisma": ("Prisma", C.DATABASE),
    "@prisma/client": ("Prisma", C.DATABASE),
    "drizzle-orm": ("Drizzle", C.DATABASE),
    "mongoose": ("Mongoose", C.DATABASE),
    "typeorm": ("TypeORM", C.DATABASE),
    "sequelize": ("Sequelize", C.DATABASE),
    "commander": ("Commander.js", C.CLI),
    "yargs": ("Yargs", C.CLI),
    "meow": ("meow", C.CLI),
    "eslint": ("ESLint", C.TOOLING),
    "prettier": ("Prettier", C.TOOLING),
    "vite": ("Vite", C.TOOLING),
    "webpack": ("Webpack", C.TOOLING),
}

GO_FRAMEWORKS: dict[str, tuple[str, FrameworkCategory]] = {
    "github.com/gin-gonic/gin": ("Gin", C.BACKEND),
    "github.com/labstack/echo": ("Echo", C.BACKEND),
    "github.com/gofiber/fiber": ("Fiber", C.BACKEND),
    "github.com/gorilla/mux": ("Gorilla Mux", C.BACKEND),
    "github.com/go-chi/chi": ("Chi", C.BACKEND),
    "github.com/spf13/cobra": ("Cobra", C.CLI),
    "github.com/urfave/cli": ("urfave/cli", C.CLI),
    "github.com/alecthomas/kingpin": ("Kingpin", C.CLI),
    "github.com/spf13/pflag": ("pflag", C.CLI),
    "gorm.io/gorm": ("GORM", C.DATABASE),
    "github.com/jmoiron/sqlx": ("sqlx", C.DATABASE),
    "go.mongodb.org/mongo-driver": ("MongoDB Driver", C.DATABASE),
    "github.com/stretchr/testify": ("Testify", C.TESTING),
}

PYTHON_FRAMEWORKS: dict[str, tuple[str, FrameworkCategory]] = {
    "django": ("Django", C.FULLSTACK),
    "flask": ("Flask", C.BACKEND),
    "fastapi": ("FastAPI", C.BACKEND),
    "starlette": ("Starlette", C.BACKEND),
    "pytest": ("pytest", C.TESTING),
    "sqlalchemy": ("SQLAlchemy", C.DATABASE),
    "alembic": ("Alembic", C.DATABASE),
    "celery": ("Celery", C.BACKEND),
    "pandas": ("pandas", C.OTHER),
    "numpy": ("NumPy", C.OTHER),
    "pydantic": ("Pydantic", C.OTHER),
    "click": ("Click", C.CLI),
    "typer": ("Typer", C.CLI),
    "torch": ("PyTorch", C.OTHER),
    "tensorflow": ("TensorFlow", C.OTHER),
}

RUST_FRAMEWORKS: dict[str, tuple[str, FrameworkCategory]] = {
    "actix-web": ("Actix Web", C.BACKEND),
    "axum": ("Axum", C.BACKEND),
    "rocket": ("Rocket", C.BACKEND),
    "tokio": ("Tokio", C.OTHER),
    "serde": ("Serde", C.OTHER),
    "diesel": ("Diesel", C.DATABASE),
    "sqlx": ("SQLx", C.DATABASE),
    "clap": ("Clap", C.CLI),
    "structopt": ("StructOpt", C.CLI),
}

JVM_FRAMEWORKS: dict[str, tuple[str, FrameworkCategory]] = {
    "spring-boot": ("Spring Boot", C.BACKEND),
    "io.quarkus": ("Quarkus", C.BACKEND),
    "io.micronaut": ("Micronaut", C.BACKEND),
    "junit": ("JUnit", C.TESTING),
}

RUBY_FRAMEWORKS: dict[str, tuple[str, FrameworkCategory]] = {
    "rails": ("Ruby on Rails", C.FULLSTACK),
    "sinatra": ("Sinatra", C.BACKEND),
    "rspec": ("RSpec", C.TESTING),
}

NPM_DATABASES = {
    "pg": "PostgreSQL",
    "mysql2": "MySQL",
    "mongodb": "MongoDB",
    "redis": "Redis",
    "ioredis": "Redis",
    "sqlite3": "SQLite",
    "better-sqlite3": "SQLite",
    "@supabase/supabase-js": "Supabase",
    "firebase": "Firebase",
}

PYTHON_DATABASES = {
    "psycopg2": "PostgreSQL",
    "psycopg2-binary": "PostgreSQL",
    "psycopg": "PostgreSQL",
    "asyncpg": "PostgreSQL",
    "pymysql": "MySQL",
    "mysqlclient": "MySQL",
    "pymongo": "MongoDB",
    "motor": "MongoDB",
    "redis": "Redis",
}

GO_DATABASES = {
    "github.com/lib/pq": "PostgreSQL",
    "github.com/jackc/pgx": "PostgreSQL",
    "github.com/go-sql-driver/mysql": "MySQL",
    "github.com/mattn/go-sqlite3": "SQLite",
    "github.com/redis/go-redis": "Redis",
    "github.com/go-redis/redis": "Redis",
    "go.mongodb.org/mongo-driver": "MongoDB",
}

TOOL_FILES: tuple[tuple[str, str], ...] = (
    ("Dockerfile", "Docker"),
    ("docker-compose.yml", "Docker Compose"),
    ("docker-compose.yaml", "Docker Compose"),
    ("compose.yaml", "Docker Compose"),
    (".github/workflows", "GitHub Actions"),
    (".gitlab-ci.yml", "GitLab CI"),
    (".circleci", "CircleCI"),
    ("Jenkinsfile", "Jenkins"),
    ("Makefile", "Make"),
    (".eslintrc", "ESLint"),
    (".eslintrc.js", "ESLint"),
    (".eslintrc.json", "ESLint"),
    ("eslint.config.js", "ESLint"),
    ("eslint.config.mjs", "ESLint"),
    (".prettierrc", "Prettier"),
    (".prettierrc.json", "Prettier"),
    ("prettier.config.js", "Prettier"),
    ("vite.config.ts", "Vite"),
    ("vite.config.js", "Vite"),
    ("webpack.config.js", "Webpack"),
    ("tailwind.config.js", "TailwindCSS"),
    ("tailwind.config.ts", "TailwindCSS"),
    (".golangci.yml", "golangci-lint"),
    (".golangci.yaml", "golangci-lint"),
    ("vercel.json", "Vercel"),
    ("netlify.toml", "Netlify"),
)


class _StackBuilder:
    """Accumulates frameworks, databases and tools without duplicates."""

    def __init__(self) -> None:
        self.frameworks: list[Framework] = []
        self.databases: list[str] = []
        self.tools: list[str] = []
        self._framework_names: set[str] = set()

    def add_framework(self, name: str, category: FrameworkCategory, version: str = "") -> None:
        if name in self._framework_names:
            return
        self._framework_names.add(name)
        self.frameworks.append(Framework(name=name, version=version, category=category))

    def add_database(self, name: str) -> None:
        if name not in self.databases:
            self.databases.append(name)

    def add_tool(self, name: str) -> None:
        if name not in self.tools:
            self.tools.append(name)


def count_languages(ctx: DetectionContext) -> list[Language]:
    """Language percentages over counted source files.

    Returns:
        Languages with at least 1% share, sorted by percentage desc then name
    """
    counts: dict[str, int] = {}
    total = 0
    for entry in ctx.iter_files():
        lang = SOURCE_EXTENSIONS.get(entry.ext)
        if lang is None:
            continue
        counts[lang] = counts.get(lang, 0) + 1
        total += 1

    if total == 0:
        return []

    languages = []
    for name, count in counts.items():
        if count * 100 < MIN_LANGUAGE_PERCENTAGE * total:
            continue
        # Truncated to one decimal so the shares never sum above 100
        percentage = (count * 1000 // total) / 10
        languages.append(Language(name=name, percentage=percentage))
    languages.sort(key=lambda lang: (-lang.percentage, lang.name))
    return languages


class TechStackDetector(Detector):
    """Detects languages, frameworks, databases and tools."""

    name = "techstack"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("tech_stack",)
    stage = 1
    fatal = True

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        languages = count_languages(ctx)
        versions: dict[str, str] = {}
        builder = _StackBuilder()

        self._from_package_json(ctx, builder, versions)
        self._from_go_mod(ctx, builder, versions)
        self._from_python(ctx, builder, versions)
        self._from_cargo(ctx, builder)
        self._from_jvm(ctx, builder)
        self._from_gemfile(ctx, builder)
        self._from_config_files(ctx, builder)

        for lang in languages:
            lang.version = versions.get(lang.name, "")

        stack = TechStack(
            languages=languages,
            frameworks=builder.frameworks,
            databases=builder.databases,
            tools=builder.tools,
        )
        _logger.debug(
            f"Tech stack: {len(stack.languages)} languages, {len(stack.frameworks)} frameworks"
        )
        return {"tech_stack": stack}

    def _from_package_json(
        self, ctx: DetectionContext, builder: _StackBuilder, versions: dict[str, str]
    ) -> None:
        pkg = read_package_json(ctx)
        if pkg is None:
            return
        deps = pkg.all_dependencies
        for dep, (fw_name, category) in NPM_FRAMEWORKS.items():
            if dep in deps:
                builder.add_framework(fw_name, category, clean_npm_version(deps[dep]))
        for dep, db in NPM_DATABASES.items():
            if dep in deps:
                builder.add_database(db)
        if node := pkg.engines.get("node"):
            versions["JavaScript"] = node
        if "typescript" in deps:
            versions["TypeScript"] = clean_npm_version(deps["typescript"])

    def _from_go_mod(
        self, ctx: DetectionContext, builder: _StackBuilder, versions: dict[str, str]
    ) -> None:
        mod = read_go_mod(ctx)
        if mod is None:
            return
        if mod.go_version:
            versions["Go"] = mod.go_version
        for prefix, (fw_name, category) in GO_FRAMEWORKS.items():
            if req := mod.requires_prefix(prefix):
                builder.add_framework(fw_name, category, req.version)
        for prefix, db in GO_DATABASES.items():
            if mod.requires_prefix(prefix):
                builder.add_database(db)

    def _from_python(
        self, ctx: DetectionContext, builder: _StackBuilder, versions: dict[str, str]
    ) -> None:
        requirements = {req.key: req for req in read_python_requirements(ctx)}
        for key, (fw_name, category) in PYTHON_FRAMEWORKS.items():
            if req := requirements.get(key):
                builder.add_framework(fw_name, category, req.spec)
        for key, db in PYTHON_DATABASES.items():
            if key in requirements:
                builder.add_database(db)
        if version := python_version(ctx):
            versions["Python"] = version

    def _from_cargo(self, ctx: DetectionContext, builder: _StackBuilder) -> None:
        cargo = ctx.load_toml("Cargo.toml")
        if cargo is None:
            return
        deps = cargo_dependencies(cargo)
        for crate, (fw_name, category) in RUST_FRAMEWORKS.items():
            if crate in deps:
                builder.add_framework(fw_name, category, deps[crate])

    def _from_jvm(self, ctx: DetectionContext, builder: _StackBuilder) -> None:
        content = ""
        for rel in ("pom.xml", "build.gradle", "build.gradle.kts"):
            content += ctx.read_text(rel) or ""
        if not content:
            return
        for marker, (fw_name, category) in JVM_FRAMEWORKS.items():
            if marker in content:
                builder.add_framework(fw_name, category)

    def _from_gemfile(self, ctx: DetectionContext, builder: _StackBuilder) -> None:
        for line in ctx.read_lines("Gemfile"):
            line = line.strip()
            if not line.startswith("gem "):
                continue
            gem = line[4:].split(",", 1)[0].strip().strip("'\"")
            if gem in RUBY_FRAMEWORKS:
                fw_name, category = RUBY_FRAMEWORKS[gem]
                builder.add_framework(fw_name, category)

    def _from_config_files(self, ctx: DetectionContext, builder: _StackBuilder) -> None:
        for rel, tool in TOOL_FILES:
            if ctx.exists(rel):
                builder.add_tool(tool)
