"""Framework-specific conventions.

Each framework check runs only when the framework is present in the
tech stack produced by stage 1, samples a bounded number of source files
and reports a convention once a usage pattern crosses its threshold.
"""

import re
from collections import Counter
from collections.abc import Iterable

from argus.analyzers.base import (
    DetectionContext,
    Detector,
    DetectorResult,
    WriteDiscipline,
    is_test_file,
)
from argus.models.analysis import Analysis, Convention, ConventionCategory, TechStack

FRAMEWORK = ConventionCategory.FRAMEWORK

# Compiled once; grouped per framework
REACT_PATTERNS = {
    "functional": re.compile(r"(?:export\s+)?(?:const|function)\s+[A-Z]\w*\s*(?:=\s*\([^)]*\)\s*=>|\()"),
    "class": re.compile(r"class\s+\w+\s+extends\s+(?:React\.)?(?:Component|PureComponent)"),
    "useState": re.compile(r"useState\s*[<(]"),
    "useEffect": re.compile(r"useEffect\s*\("),
    "useContext": re.compile(r"useContext\s*\("),
    "react-query": re.compile(r"use(?:Query|Mutation|QueryClient)\s*\("),
    "swr": re.compile(r"useSWR\s*\("),
}
REACT_STATE_LIBRARIES = (
    ("Redux", re.compile(r"useSelector|useDispatch|connect\s*\(")),
    ("Zustand", re.compile(r"create\s*\(\s*\(\s*set\s*(?:,\s*get)?\s*\)")),
    ("Jotai", re.compile(r"useAtom\s*\(")),
    ("Recoil", re.compile(r"useRecoilState\s*\(")),
)

VUE_PATTERNS = {
    "script_setup": re.compile(r"<script\s+setup"),
    "composition": re.compile(r"(?:ref|reactive|computed|watch|onMounted)\s*\("),
    "options": re.compile(r"export\s+default\s*\{[^}]*(?:data|methods|computed|watch)\s*[:(]"),
    "pinia": re.compile(r"defineStore\s*\("),
    "vuex": re.compile(r"(?:mapState|mapGetters|mapActions|mapMutations)\s*\(|\$store"),
}

ANGULAR_PATTERNS = {
    "standalone": re.compile(r"@Component\s*\(\s*\{[^}]*standalone\s*:\s*true"),
    "ngmodule": re.compile(r"@NgModule\s*\("),
    "signals": re.compile(r"\b(?:signal|computed|effect)\s*\("),
    "rxjs": re.compile(r"(?:Observable|Subject|BehaviorSubject)\s*[<(]|\.subscribe\s*\(|\.pipe\s*\("),
    "ngrx": re.compile(r"@ngrx|createAction|createReducer|createEffect"),
}

NEXT_USE_CLIENT = re.compile(r"""['"]use client['"]""")
NEXT_USE_SERVER = re.compile(r"""['"]use server['"]""")

SPRING_PATTERNS = {
    "controller": re.compile(r"@RestController|@Controller\b"),
    "service": re.compile(r"@Service\b"),
    "repository": re.compile(r"@Repository\b|extends\s+(?:JpaRepository|CrudRepository|MongoRepository)"),
    "lombok": re.compile(r"@(?:Data|Getter|Setter|Builder|NoArgsConstructor|AllArgsConstructor|Slf4j)\b"),
    "webflux": re.compile(r"Mono<|Flux<|@EnableWebFlux"),
}

NODE_PATTERNS = {
    "router": re.compile(r"(?:express\.)?Router\(\)|app\.(?:get|post|put|delete|patch)\s*\("),
    "fastify": re.compile(r"fastify\.(?:get|post|put|delete|patch)\s*\(|\.route\s*\("),
    "middleware": re.compile(r"\.use\s*\("),
    "nest_controller": re.compile(r"@Controller\s*\("),
}

PYTHON_PATTERNS = {
    "fastapi": re.compile(r"@(?:app|router)\.(?:get|post|put|delete|patch)\s*\("),
    "django_view": re.compile(r"class\s+\w+\s*\(\s*(?:\w+\.)?(?:APIView|ViewSet|ModelViewSet|View)\s*\)"),
    "flask": re.compile(r"@(?:app|\w*blueprint|bp)\.route\s*\("),
    "pydantic": re.compile(r"class\s+\w+\s*\(\s*(?:BaseModel|BaseSettings)\s*\)"),
}

GO_WEB_PATTERNS = {
    "gin": re.compile(r"gin\.Context"),
    "echo": re.compile(r"echo\.Context|\be\.(?:GET|POST|PUT|DELETE|PATCH)\s*\("),
    "fiber": re.compile(r"\*fiber\.Ctx|app\.(?:Get|Post|Put|Delete|Patch)\s*\("),
    "chi": re.compile(r"chi\.Router|chi\.NewRouter|\br\.(?:Get|Post|Put|Delete|Patch)\s*\("),
}


def is_component_file(name: str, ext: str) -> bool:
    if ext in (".jsx", ".tsx"):
        return True
    return ext in (".js", ".ts") and not is_test_file(name)


def count_matches(
    ctx: DetectionContext,
    files: Iterable[str],
    patterns: dict[str, re.Pattern[str]],
    limit: int,
) -> Counter[str]:
    """Number of sampled files each pattern matches."""
    counts: Counter[str] = Counter()
    sampled = 0
    for rel in files:
        if sampled >= limit:
            break
        content = ctx.read_text(rel)
        if content is None:
            continue
        sampled += 1
        for key, pattern in patterns.items():
            if pattern.search(content):
                counts[key] += 1
    return counts


class FrameworkPatternsDetector(Detector):
    """Detects idioms of the frameworks found in the tech stack."""

    name = "frameworks"
    discipline = WriteDiscipline.SHARED_APPEND
    fields = ("conventions",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        stack = analysis.tech_stack
        conventions: list[Convention] = []
        conventions.extend(self._react(ctx, stack))
        conventions.extend(self._vue(ctx, stack))
        conventions.extend(self._angular(ctx, stack))
        conventions.extend(self._nextjs(ctx, stack))
        conventions.extend(self._spring(ctx, stack))
        conventions.extend(self._node_backend(ctx, stack))
        conventions.extend(self._python_backend(ctx, stack))
        conventions.extend(self._go_web(ctx, stack))
        return {"conventions": conventions}

    def _files(self, ctx: DetectionContext, *exts: str) -> list[str]:
        return [f.path for f in ctx.files_with_ext(*exts)]

    def _component_files(self, ctx: DetectionContext) -> list[str]:
        return [f.path for f in ctx.iter_files() if is_component_file(f.name, f.ext)]

    def _react(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        if not stack.has_framework("React"):
            return []

        files = self._component_files(ctx)
        counts = count_matches(ctx, files, REACT_PATTERNS, 40)
        conventions = []
        if counts["functional"] > counts["class"] and counts["functional"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Functional components with hooks (modern React pattern)",
                    "const Component = () => { return <div>...</div> }",
                )
            )
        elif counts["class"] > counts["functional"] and counts["class"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Class components (legacy React pattern)",
                    "class Component extends React.Component { render() { ... } }",
                )
            )

        if counts["useState"] >= 5 and counts["useEffect"] >= 3:
            conventions.append(Convention(FRAMEWORK, "Standard React hooks for state and effects"))
        if counts["useContext"] >= 3:
            conventions.append(Convention(FRAMEWORK, "React Context for shared state"))

        if counts["react-query"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "TanStack Query (React Query) for server state management",
                    "const { data, isLoading } = useQuery({ queryKey: ['key'], queryFn })",
                )
            )
        elif counts["swr"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "SWR for data fetching with caching",
                    "const { data, error } = useSWR('/api/data', fetcher)",
                )
            )

        # Last library seen in file order wins, checked in table order per file
        state_library = ""
        for rel in files[:40]:
            content = ctx.read_text(rel)
            if content is None:
                continue
            for library, pattern in REACT_STATE_LIBRARIES:
                if pattern.search(content):
                    state_library = library
        if state_library:
            conventions.append(
                Convention(FRAMEWORK, f"{state_library} for global state management")
            )
        return conventions

    def _vue(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        if not stack.has_framework("Vue.js"):
            return []

        counts = count_matches(ctx, self._files(ctx, ".vue", ".ts", ".js"), VUE_PATTERNS, 30)
        conventions = []
        if counts["script_setup"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Vue 3 <script setup> syntax (recommended)",
                    "<script setup>\nconst count = ref(0)\n</script>",
                )
            )
        elif counts["composition"] > counts["options"] and counts["composition"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Vue Composition API",
                    "setup() { const count = ref(0); return { count } }",
                )
            )
        elif counts["options"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Vue Options API",
                    "export default { data() { return { count: 0 } } }",
                )
            )

        if counts["pinia"] >= 2:
            conventions.append(
                Convention(FRAMEWORK, "Pinia for state management (Vue 3 recommended)")
            )
        elif counts["vuex"] >= 2:
            conventions.append(Convention(FRAMEWORK, "Vuex for state management"))
        return conventions

    def _angular(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        if not stack.has_framework("Angular"):
            return []

        counts = count_matches(ctx, self._files(ctx, ".ts"), ANGULAR_PATTERNS, 30)
        conventions = []
        if counts["standalone"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Standalone components (Angular 14+ pattern)",
                    "@Component({ standalone: true, imports: [...] })",
                )
            )
        elif counts["ngmodule"] >= 3:
            conventions.append(Convention(FRAMEWORK, "NgModule-based architecture"))

        if counts["signals"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Angular Signals for reactive state (Angular 16+)",
                    "count = signal(0); doubled = computed(() => count() * 2)",
                )
            )
        if counts["rxjs"] >= 5:
            conventions.append(Convention(FRAMEWORK, "RxJS for reactive programming"))
        if counts["ngrx"] >= 2:
            conventions.append(Convention(FRAMEWORK, "NgRx for state management"))
        return conventions

    def _nextjs(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        if not stack.has_framework("Next.js"):
            return []

        paths = [f.path for f in ctx.iter_files()]
        has_app = any(p.startswith(("app/", "src/app/")) for p in paths)
        has_pages = any(p.startswith(("pages/", "src/pages/")) for p in paths)
        api_routes = sum(
            1 for p in paths if "/api/" in p and p.endswith((".ts", ".js", ".tsx", ".jsx"))
        )

        client = server = actions = sampled = 0
        for rel in self._component_files(ctx):
            if sampled >= 30:
                break
            content = ctx.read_text(rel)
            if content is None:
                continue
            sampled += 1
            uses_client = bool(NEXT_USE_CLIENT.search(content))
            client += uses_client
            if has_app and not uses_client and rel.startswith(("app/", "src/app/")):
                server += 1
            actions += bool(NEXT_USE_SERVER.search(content))

        conventions = []
        if has_app and not has_pages:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Next.js App Router (recommended for new projects)",
                    "app/page.tsx, app/layout.tsx, app/api/route.ts",
                )
            )
        elif has_pages and not has_app:
            conventions.append(
                Convention(FRAMEWORK, "Next.js Pages Router", "pages/index.tsx, pages/api/hello.ts")
            )
        elif has_app and has_pages:
            conventions.append(
                Convention(FRAMEWORK, "Next.js hybrid routing (App Router + Pages Router)")
            )

        if server >= 3:
            conventions.append(
                Convention(FRAMEWORK, "React Server Components (default in App Router)")
            )
        if client >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "'use client' directive for client components",
                    "'use client'\nexport default function Button() { ... }",
                )
            )
        if actions >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Server Actions for mutations",
                    "'use server'\nasync function createItem(formData) { ... }",
                )
            )
        if api_routes >= 2:
            conventions.append(Convention(FRAMEWORK, "API routes for backend endpoints"))
        return conventions

    def _spring(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        if not stack.has_framework("Spring Boot"):
            return []

        counts = count_matches(ctx, self._files(ctx, ".java", ".kt"), SPRING_PATTERNS, 40)
        conventions = []
        if counts["controller"] >= 2 and counts["service"] >= 2:
            conventions.append(
                Convention(FRAMEWORK, "Layered architecture: Controller → Service → Repository")
            )
        if counts["controller"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "@RestController with @RequestMapping for REST APIs",
                    '@RestController\n@RequestMapping("/api/users")',
                )
            )
        if counts["repository"] >= 2:
            conventions.append(
                Convention(FRAMEWORK, "Spring Data JPA repositories for data access")
            )
        if counts["lombok"] >= 5:
            conventions.append(
                Convention(FRAMEWORK, "Lombok for reducing boilerplate (@Data, @Builder, etc.)")
            )
        if counts["webflux"] >= 2:
            conventions.append(
                Convention(FRAMEWORK, "Spring WebFlux for reactive programming (Mono/Flux)")
            )
        return conventions

    def _node_backend(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        has_express = stack.has_framework("Express.js")
        has_fastify = stack.has_framework("Fastify")
        has_nest = stack.has_framework("NestJS")
        if not (has_express or has_fastify or has_nest):
            return []

        counts = count_matches(ctx, self._files(ctx, ".js", ".ts"), NODE_PATTERNS, 30)
        conventions = []
        if has_nest and counts["nest_controller"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "NestJS with decorators (@Controller, @Injectable)",
                    "@Controller('users')\nexport class UsersController { ... }",
                )
            )
        if has_express and counts["router"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Express.js route handlers",
                    "app.get('/api/users', (req, res) => { ... })",
                )
            )
        if has_fastify and counts["fastify"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Fastify route handlers",
                    "fastify.get('/api/users', async (request, reply) => { ... })",
                )
            )
        if counts["middleware"] >= 3:
            conventions.append(Convention(FRAMEWORK, "Middleware pattern for request processing"))
        return conventions

    def _python_backend(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        has_django = stack.has_framework("Django")
        has_fastapi = stack.has_framework("FastAPI")
        has_flask = stack.has_framework("Flask")
        has_pydantic = stack.has_framework("Pydantic")
        if not (has_django or has_fastapi or has_flask or has_pydantic):
            return []

        counts = count_matches(ctx, self._files(ctx, ".py"), PYTHON_PATTERNS, 30)
        conventions = []
        if has_fastapi and counts["fastapi"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "FastAPI route decorators with type hints",
                    "@app.get('/users/{user_id}')\nasync def get_user(user_id: int): ...",
                )
            )
        if has_django and counts["django_view"] >= 2:
            conventions.append(Convention(FRAMEWORK, "Django class-based views / DRF ViewSets"))
        if has_flask and counts["flask"] >= 2:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Flask route decorators",
                    "@app.route('/users', methods=['GET'])",
                )
            )
        if counts["pydantic"] >= 3:
            conventions.append(
                Convention(
                    FRAMEWORK,
                    "Pydantic models for data validation",
                    "class User(BaseModel):\n    name: str\n    email: EmailStr",
                )
            )
        return conventions

    def _go_web(self, ctx: DetectionContext, stack: TechStack) -> list[Convention]:
        enabled = {
            key: stack.has_framework(name)
            for key, name in (("gin", "Gin"), ("echo", "Echo"), ("fiber", "Fiber"), ("chi", "Chi"))
        }
        if not any(enabled.values()):
            return []

        counts = count_matches(ctx, self._files(ctx, ".go"), GO_WEB_PATTERNS, 30)
        descriptions = {
            "gin": ("Gin HTTP handlers with gin.Context", 'r.GET("/users/:id", func(c *gin.Context) { ... })'),
            "echo": ("Echo HTTP handlers", 'e.GET("/users/:id", getUser)'),
            "fiber": (
                "Fiber HTTP handlers (Express-like)",
                'app.Get("/users/:id", func(c *fiber.Ctx) error { ... })',
            ),
            "chi": ("Chi router with middleware support", 'r.Get("/users/{id}", getUser)'),
        }
        conventions = []
        for key, is_enabled in enabled.items():
            if is_enabled and counts[key] >= 2:
                description, example = descriptions[key]
                conventions.append(Convention(FRAMEWORK, description, example))
        return conventions
