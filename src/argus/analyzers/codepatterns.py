"""Categorized code pattern detection.

Scans source files for library and idiom keywords and reports, per
pattern, how many files use it and a few example paths. Results populate
Analysis.code_patterns, one list per category.
"""

import re
from collections.abc import Iterable

from argus.analyzers.base import (
    DetectionContext,
    Detector,
    DetectorResult,
    WriteDiscipline,
    is_test_file,
)
from argus.analyzers.manifests import read_cargo, read_python_requirements
from argus.models.analysis import Analysis, CodePatterns, PatternInfo

MAX_EXAMPLES = 3

JS = (".js", ".jsx", ".ts", ".tsx")
PY = (".py",)
GO = (".go",)
RS = (".rs",)

# =============================================================================
# Keyword tables (keyword -> description), reported in table order
# =============================================================================

STATE_JS = {
    "useState": "React useState hook for local component state",
    "useReducer": "React useReducer for complex state logic",
    "useContext": "React Context API for prop drilling avoidance",
    "createContext": "React Context creation",
    "zustand": "Zustand - lightweight state management",
    "jotai": "Jotai - atomic state management",
    "useAtom": "Jotai atom hook",
    "recoil": "Recoil state management",
    "useRecoilState": "Recoil state hook",
    "@reduxjs/toolkit": "Redux Toolkit",
    "createSlice": "Redux Toolkit slice",
    "useSelector": "Redux selector hook",
    "useDispatch": "Redux dispatch hook",
    "configureStore": "Redux store configuration",
}
STATE_VUE = {
    "defineStore": "Pinia store definition",
    "storeToRefs": "Pinia reactive store refs",
    "createPinia": "Pinia initialization",
    "reactive(": "Vue reactive for objects",
    "watchEffect(": "Vue watchEffect for automatic tracking",
}
STATE_PY = {
    "session[": "Flask session management",
    "current_app": "Flask current application context",
}

FETCH_JS = {
    "useQuery": "TanStack Query (React Query) for server state",
    "useMutation": "TanStack Query mutation hook",
    "useInfiniteQuery": "TanStack Query infinite scrolling",
    "QueryClient": "TanStack Query client setup",
    "useSWR": "SWR data fetching hook",
    "axios": "Axios HTTP client",
    "fetch(": "Native Fetch API",
    "$fetch": "Nuxt/ofetch utility",
    "useFetch": "Nuxt/custom fetch hook",
    "getServerSideProps": "Next.js server-side data fetching",
    "getStaticProps": "Next.js static data fetching",
    "useLoaderData": "Remix loader data hook",
    "trpc": "tRPC type-safe API calls",
}
FETCH_PY = {
    "requests.": "Python requests library",
    "httpx.": "HTTPX async HTTP client",
    "aiohttp.": "aiohttp async HTTP client",
    "urllib": "Python urllib",
}
FETCH_GO = {
    "http.Get": "Go standard HTTP GET",
    "http.Post": "Go standard HTTP POST",
    "http.Client": "Go HTTP client",
    "resty.": "Resty HTTP client",
}

ROUTING_JS = {
    "useRouter": "Next.js/custom router hook",
    "useNavigate": "React Router navigation hook",
    "useParams": "React Router URL params",
    "useSearchParams": "React Router/Next.js search params",
    "<Route": "React Router Route component",
    "createBrowserRouter": "React Router v6 browser router",
    "next/navigation": "Next.js App Router navigation",
    "next/link": "Next.js Link component",
    "usePathname": "Next.js pathname hook",
}
ROUTING_PY = {
    "@app.route": "Flask route decorator",
    "@router.": "FastAPI router decorator",
    "@app.get": "FastAPI GET endpoint",
    "@app.post": "FastAPI POST endpoint",
    "Blueprint": "Flask Blueprint for modular routing",
    "APIRouter": "FastAPI APIRouter",
    "urlpatterns": "Django URL patterns",
}
ROUTING_GO = {
    "gin.Context": "Gin framework context",
    "gin.Default": "Gin default router",
    "echo.Context": "Echo framework context",
    "echo.New": "Echo router initialization",
    "fiber.Ctx": "Fiber framework context",
    "fiber.New": "Fiber app initialization",
    "chi.Router": "Chi router",
    "chi.NewRouter": "Chi router initialization",
    "mux.NewRouter": "Gorilla Mux router",
    "http.HandleFunc": "Go standard HTTP handler",
}

FORMS_JS = {
    "useForm": "React Hook Form / TanStack Form",
    "useFormContext": "React Hook Form context",
    "zodResolver": "Zod schema validation with forms",
    "yupResolver": "Yup schema validation with forms",
    "Formik": "Formik form library",
    "handleSubmit": "Form submit handler pattern",
    "z.object": "Zod object schema",
}

TESTING_JS = {
    "describe(": "Test suite definition (Jest/Vitest/Mocha)",
    "expect(": "Assertion (Jest/Vitest/Chai)",
    "vi.mock": "Vitest mocking",
    "jest.mock": "Jest mocking",
    "@testing-library": "Testing Library",
    "userEvent": "Testing Library user events",
    "fireEvent": "Testing Library fire events",
    "cy.": "Cypress commands",
    "playwright": "Playwright testing",
}
TESTING_PY = {
    "import pytest": "Pytest framework",
    "def test_": "Pytest test function",
    "unittest": "Python unittest",
    "@pytest.fixture": "Pytest fixture",
    "@pytest.mark.parametrize": "Parametrized pytest tests",
    "@patch": "unittest mock patch",
}
TESTING_GO = {
    "func Test": "Go test function",
    "t.Run(": "Go subtest",
    "t.Error": "Go test assertions",
    "t.Fatal": "Go test fatal assertions",
}
TESTING_GO_HELPERS = {
    "require.": "Testify require assertions",
    "assert.": "Testify assert",
    "gomock": "GoMock mocking",
    "httptest.": "Go HTTP testing",
}

STYLING = {
    "className=": "CSS class usage",
    "@apply": "Tailwind @apply directive",
    "styled.": "styled-components",
    "css`": "Emotion/styled-components CSS",
    "makeStyles": "Material-UI makeStyles",
    "sx={": "MUI sx prop",
    "clsx": "clsx class utility",
    "cn(": "shadcn/ui cn utility",
    "cva(": "Class Variance Authority",
    "module.css": "CSS Modules",
}

AUTH_JS = {
    "useAuth": "Custom auth hook",
    "useSession": "NextAuth/custom session hook",
    "getSession": "NextAuth getSession",
    "NextAuth": "NextAuth.js",
    "Auth0": "Auth0 integration",
    "clerk": "Clerk authentication",
    "supabase.auth": "Supabase authentication",
    "firebase.auth": "Firebase authentication",
    "jwt": "JWT handling",
    "Bearer": "Bearer token auth",
}
AUTH_PY = {
    "login_required": "Flask login decorator",
    "current_user": "Flask-Login current user",
    "@jwt_required": "JWT required decorator",
    "OAuth": "OAuth integration",
    "HTTPBearer": "FastAPI HTTP Bearer auth",
    "Depends(": "FastAPI dependency injection",
}
AUTH_GO = {
    "jwt.": "JWT handling",
    "Authorization": "Authorization header",
    "Bearer": "Bearer token",
}

API = {
    "GraphQL": "GraphQL API",
    "gql`": "GraphQL query",
    "tRPC": "tRPC type-safe API",
    "OpenAPI": "OpenAPI/Swagger spec",
    "swagger": "Swagger documentation",
    "grpc": "gRPC protocol",
    "protobuf": "Protocol Buffers",
    "websocket": "WebSocket communication",
    "socket.io": "Socket.IO real-time",
}

DB_JS = {
    "PrismaClient": "Prisma client",
    "drizzle": "Drizzle ORM",
    "typeorm": "TypeORM",
    "sequelize": "Sequelize ORM",
    "mongoose": "Mongoose ODM (MongoDB)",
    "knex": "Knex.js query builder",
    "kysely": "Kysely type-safe SQL",
    "supabase": "Supabase client",
}
DB_PY = {
    "sqlalchemy": "SQLAlchemy ORM",
    "Base.metadata": "SQLAlchemy models",
    "django.db": "Django ORM",
    "models.Model": "Django model",
    "tortoise": "Tortoise ORM",
    "peewee": "Peewee ORM",
    "mongoengine": "MongoEngine ODM",
}
DB_GO = {
    "gorm.Open(": "GORM ORM",
    "gorm.Model": "GORM model embedding",
    "sqlx.Connect": "sqlx database library",
    "sqlx.Open": "sqlx database library",
    "sql.Open(": "Go standard SQL",
    "pgx.Connect": "pgx PostgreSQL driver",
    "mongo.Connect": "MongoDB Go driver",
    "bun.NewDB": "Bun ORM",
}
ENT_PATTERN = re.compile(r"ent\.(Client|Schema|Field|Edge|Mixin)")

UTILITIES_JS = {
    "lodash": "Lodash utility library",
    "dayjs": "Day.js date library",
    "moment": "Moment.js date library",
    "date-fns": "date-fns date utilities",
    "uuid": "UUID generation",
    "nanoid": "Nano ID generation",
    "zod": "Zod schema validation",
    "yup": "Yup schema validation",
    "immer": "Immer immutable updates",
}

GO_IDIOMS = {
    "context.Context": "Context propagation for cancellation and deadlines",
    "go func(": "Goroutines for concurrent work",
    "sync.WaitGroup": "WaitGroup to join goroutines",
    "sync.Mutex": "Mutex-guarded shared state",
    "errors.Is(": "Error inspection with errors.Is",
    "%w": "Error wrapping with fmt.Errorf %w",
    "defer ": "Deferred cleanup",
    "select {": "Channel select statements",
}
RUST_IDIOMS = {
    "#[derive(": "Derive macros for trait implementations",
    "impl ": "Trait and inherent impl blocks",
    "async fn": "Async functions",
    "Arc<": "Shared ownership with Arc",
    "?;": "Error propagation with the ? operator",
    "#[cfg(test)]": "Inline unit test modules",
}
PYTHON_IDIOMS = {
    "@dataclass": "Dataclasses for structured data",
    "async def": "Async functions (asyncio)",
    "from typing import": "Type hints via the typing module",
    "@property": "Properties for computed attributes",
    "@contextmanager": "Context managers via contextlib",
    "Protocol)": "Structural typing with Protocol",
    "__all__": "Explicit public API with __all__",
}

RUST_DEPENDENCIES = {
    "tokio": "Tokio async runtime",
    "async-std": "async-std runtime",
    "actix-web": "Actix-web framework",
    "axum": "Axum web framework",
    "rocket": "Rocket web framework",
    "warp": "Warp web framework",
    "hyper": "Hyper HTTP library",
    "reqwest": "Reqwest HTTP client",
    "serde": "Serde serialization",
    "serde_json": "Serde JSON",
    "clap": "Clap CLI framework",
    "diesel": "Diesel ORM",
    "sqlx": "SQLx async SQL",
    "sea-orm": "SeaORM async ORM",
    "tracing": "Tracing framework",
    "log": "Log facade",
    "anyhow": "Anyhow error handling",
    "thiserror": "thiserror derive",
    "rayon": "Rayon parallelism",
}

PYTHON_TOOLS = {
    "pytest": "pytest testing framework",
    "black": "Black code formatter",
    "ruff": "Ruff fast Python linter",
    "mypy": "mypy static type checker",
    "poetry": "Poetry dependency management",
    "setuptools": "setuptools build system",
    "hatch": "Hatch project manager",
    "pdm": "PDM package manager",
}

PYTHON_FRAMEWORK_DEPS = {
    "django": "Django web framework",
    "flask": "Flask web framework",
    "fastapi": "FastAPI web framework",
    "starlette": "Starlette ASGI framework",
    "celery": "Celery task queue",
    "sqlalchemy": "SQLAlchemy ORM",
    "pydantic": "Pydantic data validation",
    "numpy": "NumPy numerical computing",
    "pandas": "Pandas data analysis",
    "tensorflow": "TensorFlow ML framework",
    "torch": "PyTorch ML framework",
    "transformers": "Hugging Face Transformers",
    "langchain": "LangChain LLM framework",
}

# (name, category, description, import prefixes)
ML_FRAMEWORKS: tuple[tuple[str, str, str, tuple[str, ...]], ...] = (
    ("TensorFlow", "deep-learning", "Google's deep learning framework", ("import tensorflow", "from tensorflow")),
    ("PyTorch", "deep-learning", "Facebook's deep learning framework", ("import torch", "from torch")),
    (
        "Keras",
        "deep-learning",
        "High-level neural networks API",
        ("import keras", "from keras", "from tensorflow.keras"),
    ),
    ("JAX", "deep-learning", "Google's autodiff and XLA library", ("import jax", "from jax")),
    ("Transformers", "nlp", "Hugging Face Transformers library", ("from transformers", "import transformers")),
    ("spaCy", "nlp", "Industrial NLP library", ("import spacy", "from spacy")),
    ("NLTK", "nlp", "Natural Language Toolkit", ("import nltk", "from nltk")),
    ("LangChain", "nlp", "LLM application framework", ("from langchain", "import langchain")),
    ("LlamaIndex", "nlp", "LLM data framework", ("from llama_index", "import llama_index")),
    ("OpenCV", "cv", "Computer vision library", ("import cv2", "from cv2")),
    ("torchvision", "cv", "PyTorch vision library", ("import torchvision", "from torchvision")),
    ("YOLO", "cv", "Real-time object detection", ("from ultralytics", "import ultralytics")),
    ("Diffusers", "cv", "Hugging Face diffusion models", ("from diffusers", "import diffusers")),
    ("scikit-learn", "ml", "Machine learning library", ("from sklearn", "import sklearn")),
    ("XGBoost", "ml", "Gradient boosting library", ("import xgboost", "from xgboost")),
    ("LightGBM", "ml", "Light gradient boosting", ("import lightgbm", "from lightgbm")),
    ("NumPy", "data", "Numerical computing library", ("import numpy", "from numpy")),
    ("Pandas", "data", "Data analysis library", ("import pandas", "from pandas")),
    ("Polars", "data", "Fast DataFrame library", ("import polars", "from polars")),
    ("MLflow", "mlops", "ML lifecycle platform", ("import mlflow", "from mlflow")),
    ("Weights & Biases", "mlops", "ML experiment tracking", ("import wandb", "from wandb")),
    ("Optuna", "mlops", "Hyperparameter optimization", ("import optuna", "from optuna")),
    ("Ray", "mlops", "Distributed computing framework", ("import ray", "from ray")),
    ("Librosa", "audio", "Audio analysis library", ("import librosa", "from librosa")),
    ("Gymnasium", "rl", "RL environments library", ("import gymnasium", "from gymnasium")),
    ("Stable-Baselines3", "rl", "RL algorithms library", ("from stable_baselines3", "import stable_baselines3")),
)

MODEL_EXTENSIONS = frozenset(
    {".pt", ".pth", ".ckpt", ".h5", ".hdf5", ".pb", ".onnx", ".safetensors", ".joblib", ".weights"}
)
TRAINING_SCRIPT = re.compile(r"(?i)^(run_)?(train(ing|er)?|finetune|pretrain)\.py$")


class _SourceCache:
    """Reads each scanned file at most once per detection run."""

    def __init__(self, ctx: DetectionContext) -> None:
        self.ctx = ctx
        self._contents: dict[str, str | None] = {}

    def files(self, exts: Iterable[str], include_tests: bool = True) -> Iterable[tuple[str, str]]:
        exts = tuple(exts)
        for entry in self.ctx.iter_files():
            if not entry.name.endswith(exts):
                continue
            if not include_tests and is_test_file(entry.path):
                continue
            if entry.path not in self._contents:
                self._contents[entry.path] = self.ctx.read_text(entry.path)
            content = self._contents[entry.path]
            if content is not None:
                yield entry.path, content

    def scan(
        self,
        table: dict[str, str],
        exts: Iterable[str],
        category: str,
        include_tests: bool = True,
    ) -> list[PatternInfo]:
        """One PatternInfo per keyword found, in table order."""
        hits: dict[str, list[str]] = {keyword: [] for keyword in table}
        for path, content in self.files(exts, include_tests):
            for keyword in table:
                if keyword in content:
                    hits[keyword].append(path)
        return [
            _pattern(keyword.rstrip("(. "), category, table[keyword], paths)
            for keyword, paths in hits.items()
            if paths
        ]

    def scan_regex(self, pattern: re.Pattern[str], exts: Iterable[str]) -> list[str]:
        return [path for path, content in self.files(exts) if pattern.search(content)]


def _pattern(name: str, category: str, description: str, paths: list[str]) -> PatternInfo:
    return PatternInfo(
        name=name,
        category=category,
        description=description,
        file_count=len(paths),
        examples=paths[:MAX_EXAMPLES],
    )


def _manifest_pattern(name: str, category: str, description: str, source: str) -> PatternInfo:
    return PatternInfo(name=name, category=category, description=description, file_count=1, examples=[source])


class CodePatternsDetector(Detector):
    """Detects code patterns across the 14 pattern categories."""

    name = "codepatterns"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("code_patterns",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        src = _SourceCache(ctx)
        patterns = CodePatterns(
            state_mgmt=(
                src.scan(STATE_JS, JS, "state")
                + src.scan(STATE_VUE, (".vue", ".js", ".ts"), "state")
                + src.scan(STATE_PY, PY, "state")
            ),
            data_fetching=(
                src.scan(FETCH_JS, JS, "data-fetching")
                + src.scan(FETCH_PY, PY, "data-fetching")
                + src.scan(FETCH_GO, GO, "data-fetching")
            ),
            routing=(
                src.scan(ROUTING_JS, JS, "routing", include_tests=False)
                + src.scan(ROUTING_PY, PY, "routing", include_tests=False)
                + src.scan(ROUTING_GO, GO, "routing", include_tests=False)
            ),
            forms=src.scan(FORMS_JS, JS, "forms"),
            testing=self._testing(src),
            styling=src.scan(STYLING, JS + (".css", ".scss", ".vue"), "styling"),
            auth=(
                src.scan(AUTH_JS, JS, "auth")
                + src.scan(AUTH_PY, PY, "auth")
                + src.scan(AUTH_GO, GO, "auth")
            ),
            api_patterns=src.scan(API, JS + PY + GO, "api", include_tests=False),
            db_orm=self._database(src),
            utilities=src.scan(UTILITIES_JS, JS, "utilities"),
            go_patterns=src.scan(GO_IDIOMS, GO, "go-idiom", include_tests=False),
            rust_patterns=self._rust(ctx, src),
            python_patterns=self._python(ctx, src),
            ml_patterns=self._ml(ctx, src),
        )
        return {"code_patterns": patterns}

    def _testing(self, src: _SourceCache) -> list[PatternInfo]:
        patterns = src.scan(TESTING_JS, JS, "testing")
        patterns += src.scan(TESTING_PY, PY, "testing")
        patterns += src.scan(TESTING_GO, ("_test.go",), "testing")
        patterns += src.scan(TESTING_GO_HELPERS, GO, "testing")
        return patterns

    def _database(self, src: _SourceCache) -> list[PatternInfo]:
        patterns = src.scan(DB_JS, (".js", ".ts", ".tsx"), "database")
        patterns += src.scan(DB_PY, PY, "database")
        patterns += src.scan(DB_GO, GO, "database")
        ent_files = src.scan_regex(ENT_PATTERN, GO)
        if ent_files:
            patterns.append(_pattern("ent", "database", "Ent ORM (entgo.io)", ent_files))
        return patterns

    def _rust(self, ctx: DetectionContext, src: _SourceCache) -> list[PatternInfo]:
        patterns = []
        cargo = read_cargo(ctx)
        if cargo is not None:
            if cargo.is_workspace:
                patterns.append(
                    PatternInfo(
                        name="Cargo Workspace",
                        category="rust-structure",
                        description="Multi-crate Rust workspace",
                        file_count=len(cargo.workspace_members),
                        examples=list(cargo.workspace_members),
                    )
                )
            if cargo.is_binary and cargo.is_library:
                patterns.append(
                    PatternInfo(
                        name="Binary + Library",
                        category="rust-structure",
                        description="Rust project with both binary and library targets",
                        file_count=1,
                    )
                )
            elif cargo.is_binary:
                patterns.append(
                    PatternInfo(
                        name="Binary Crate",
                        category="rust-structure",
                        description="Rust executable binary",
                        file_count=len(cargo.binaries),
                        examples=list(cargo.binaries),
                    )
                )
            elif cargo.is_library:
                patterns.append(
                    PatternInfo(
                        name="Library Crate",
                        category="rust-structure",
                        description="Rust library crate",
                        file_count=1,
                    )
                )

            normalized = {_normalize_crate(dep): dep for dep in cargo.dependencies}
            for crate, description in RUST_DEPENDENCIES.items():
                dep = normalized.get(_normalize_crate(crate))
                if dep is not None:
                    patterns.append(
                        _manifest_pattern(dep, "rust-dependency", description, "Cargo.toml")
                    )

        patterns += src.scan(RUST_IDIOMS, RS, "rust-idiom")
        return patterns

    def _python(self, ctx: DetectionContext, src: _SourceCache) -> list[PatternInfo]:
        patterns = []
        pyproject = ctx.load_toml("pyproject.toml")
        if pyproject is not None:
            build = pyproject.get("build-system", {})
            backend = build.get("build-backend", "") if isinstance(build, dict) else ""
            if isinstance(backend, str) and backend:
                patterns.append(
                    _manifest_pattern(
                        backend.split(".")[0],
                        "py-build",
                        f"Python build backend: {backend}",
                        "pyproject.toml",
                    )
                )
            tool = pyproject.get("tool", {})
            if isinstance(tool, dict):
                for name, description in PYTHON_TOOLS.items():
                    if name in tool:
                        patterns.append(
                            _manifest_pattern(name, "py-tool", description, "pyproject.toml")
                        )

        seen: set[str] = set()
        for req in read_python_requirements(ctx):
            description = PYTHON_FRAMEWORK_DEPS.get(req.key)
            if description and req.key not in seen:
                seen.add(req.key)
                patterns.append(_manifest_pattern(req.name, "py-framework", description, "dependencies"))

        patterns += src.scan(PYTHON_IDIOMS, PY, "py-idiom", include_tests=False)
        return patterns

    def _ml(self, ctx: DetectionContext, src: _SourceCache) -> list[PatternInfo]:
        found: dict[str, list[str]] = {}
        for path, content in src.files(PY):
            for name, _, _, imports in ML_FRAMEWORKS:
                if any(imp in content for imp in imports):
                    found.setdefault(name, []).append(path)

        model_files = [f.path for f in ctx.iter_files() if f.ext in MODEL_EXTENSIONS]
        training = [f.path for f in ctx.iter_files() if TRAINING_SCRIPT.match(f.name)]
        notebooks = len(ctx.files_with_ext(".ipynb"))
        if not (found or model_files or training or notebooks > 5):
            return []

        patterns = [
            _pattern(name, f"ml-{category}", description, found[name])
            for name, category, description, _ in ML_FRAMEWORKS
            if name in found
        ]
        project_type = self._ml_project_type(ctx, bool(found), notebooks, len(training))
        patterns.append(
            PatternInfo(
                name=f"ML {project_type.capitalize()}",
                category="ml-project-type",
                description=f"This appears to be an ML {project_type} project",
                file_count=1,
            )
        )
        if model_files:
            patterns.append(
                _pattern(
                    "Model Files",
                    "ml-artifacts",
                    "Contains model weight/checkpoint files",
                    model_files,
                )
            )
        return patterns

    def _ml_project_type(
        self, ctx: DetectionContext, has_frameworks: bool, notebooks: int, training: int
    ) -> str:
        names = [f.name.lower() for f in ctx.iter_files()]
        readme = (ctx.read_text("README.md") or "").lower()

        has_paper = any("arxiv" in n or "paper" in n for n in names)
        has_paper = has_paper or ("paper" in readme and "citation" in readme)
        has_experiments = any("experiment" in n for n in names)
        if "arxiv.org" in readme or (has_paper and has_experiments):
            return "research"

        has_docker = "dockerfile" in names
        serves = any("api" in n or "serve" in n or "deploy" in n for n in names)
        if has_docker and serves:
            return "production"

        if notebooks > 3 and training <= 1:
            return "tutorial"

        has_packaging = ctx.is_file("setup.py") or ctx.is_file("pyproject.toml")
        if has_packaging and has_frameworks and ctx.is_dir("src"):
            return "library"
        return "project"


def _normalize_crate(name: str) -> str:
    return name.replace("-", "").replace("_", "")
