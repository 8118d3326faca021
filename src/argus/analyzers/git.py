"""Git conventions from repository metadata.

Shells out to `git` with a timeout. Commit style is classified from the
last 100 commit subjects, branch prefixes from local branch names.
"""

import re
import subprocess
from collections import Counter
from pathlib import Path

from argus.analyzers.base import DetectionContext, Detector, DetectorResult, WriteDiscipline
from argus.models.analysis import (
    Analysis,
    BranchConvention,
    CommitConvention,
    CommitInfo,
    GitConventions,
    GitRepository,
)
from argus.utils.logging import get_logger

_logger = get_logger(__name__)

GIT_TIMEOUT = 10
COMMIT_SAMPLE = 100
RECENT_COMMITS = 10
STYLE_THRESHOLD_PERCENT = 30
MIN_PREFIXED_BRANCHES = 2

CONVENTIONAL_TYPES = "feat|fix|docs|style|refactor|test|chore|perf|ci|build|revert"
CONVENTIONAL = re.compile(rf"^({CONVENTIONAL_TYPES})(\(([^)]+)\))?!?:\s*\S")
ANGULAR = re.compile(r"^(feat|fix|docs|style|refactor|test|chore)\([^)]+\):\s*\S")
GITMOJI = re.compile("^(:[a-z0-9_+-]+:|[\U0001F300-\U0001FAFF☀-➿])")
JIRA = re.compile(r"^\[?[A-Z][A-Z0-9]+-\d+\]?[\s:]")

# Checked in order; earlier styles win ties
COMMIT_STYLES = (
    ("conventional", CONVENTIONAL),
    ("gitmoji", GITMOJI),
    ("jira", JIRA),
)

BRANCH_PREFIX = re.compile(
    r"^(feat|fix|feature|bugfix|hotfix|release|chore|docs|test|refactor|ci|build)/"
)
BRANCH_ALIASES = {"feature": "feat", "bugfix": "fix", "hotfix": "fix"}
MAINLINE_BRANCHES = frozenset({"main", "master", "develop", "dev"})
BRANCH_EXAMPLE_SUFFIXES = ("user-auth", "login-bug", "update-deps")

REMOTE_PATTERNS = (
    re.compile(r"^git@(?P<host>[^:]+):(?P<owner>[^/]+)/(?P<name>.+?)(?:\.git)?/?$"),
    re.compile(
        r"^(?:https?|ssh|git)://(?:[^@/]+@)?(?P<host>[^/:]+)(?::\d+)?"
        r"/(?P<owner>[^/]+)/(?P<name>.+?)(?:\.git)?/?$"
    ),
)
PLATFORMS = (("github", "github"), ("gitlab", "gitlab"), ("bitbucket", "bitbucket"))


def run_git(root: Path, *args: str) -> str | None:
    """stdout of `git <args>` in root, or None on failure or timeout."""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            cwd=str(root),
            timeout=GIT_TIMEOUT,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as e:
        _logger.debug(f"git {' '.join(args)} failed: {e}")
        return None
    if result.returncode != 0:
        return None
    return result.stdout


def parse_remote_url(url: str) -> GitRepository:
    repo = GitRepository(remote_url=url)
    for pattern in REMOTE_PATTERNS:
        match = pattern.match(url.strip())
        if match:
            repo.owner = match.group("owner")
            repo.name = match.group("name")
            host = match.group("host").lower()
            for marker, platform in PLATFORMS:
                if marker in host:
                    repo.platform = platform
                    break
            break
    return repo


def classify_commits(subjects: list[str]) -> CommitConvention | None:
    """Dominant commit style, if at least 30% of subjects follow it."""
    subjects = [s.strip() for s in subjects if s.strip()]
    if not subjects:
        return None

    counts = {name: 0 for name, _ in COMMIT_STYLES}
    angular = 0
    types: Counter[str] = Counter()
    scopes: Counter[str] = Counter()
    for subject in subjects:
        for name, pattern in COMMIT_STYLES:
            if pattern.search(subject):
                counts[name] += 1
        if ANGULAR.search(subject):
            angular += 1
        if match := CONVENTIONAL.search(subject):
            types[match.group(1)] += 1
            if match.group(3):
                scopes[match.group(3)] += 1

    style, best = "", 0
    for name, _ in COMMIT_STYLES:
        if counts[name] > best:
            style, best = name, counts[name]
    if best == 0 or best * 100 < len(subjects) * STYLE_THRESHOLD_PERCENT:
        return None

    # Every conventional subject scoped with an Angular type
    if style == "conventional" and angular == best:
        style = "angular"

    if style in ("conventional", "angular"):
        top_types = [t for t, _ in types.most_common(7)]
        top_scopes = [s for s, _ in scopes.most_common(5)]
        example = ""
        if top_types:
            scope = f"({top_scopes[0]})" if top_scopes else ""
            example = f"{top_types[0]}{scope}: add new feature"
        return CommitConvention(
            style=style,
            format="<type>(<scope>): <description>",
            types=top_types,
            scopes=top_scopes,
            example=example,
        )
    if style == "gitmoji":
        return CommitConvention(
            style=style, format=":<emoji>: <description>", example=":sparkles: add new feature"
        )
    return CommitConvention(
        style=style, format="<TICKET-ID> <description>", example="PROJ-123 add new feature"
    )


def classify_branches(branches: list[str]) -> BranchConvention | None:
    prefixes: Counter[str] = Counter()
    for branch in branches:
        branch = branch.strip().removeprefix("origin/")
        if not branch or branch in MAINLINE_BRANCHES:
            continue
        if match := BRANCH_PREFIX.match(branch):
            prefix = match.group(1)
            prefixes[BRANCH_ALIASES.get(prefix, prefix)] += 1

    if sum(prefixes.values()) < MIN_PREFIXED_BRANCHES:
        return None
    top = [p for p, _ in prefixes.most_common(6)]
    examples = [
        f"{prefix}/{BRANCH_EXAMPLE_SUFFIXES[i % len(BRANCH_EXAMPLE_SUFFIXES)]}"
        for i, prefix in enumerate(top[:3])
    ]
    return BranchConvention(prefixes=top, format="<prefix>/<description>", examples=examples)


def parse_log(output: str) -> list[CommitInfo]:
    commits = []
    for line in output.splitlines():
        parts = line.split("\x1f")
        if len(parts) == 4:
            commits.append(CommitInfo(hash=parts[0], message=parts[1], author=parts[2], date=parts[3]))
    return commits


class GitDetector(Detector):
    """Reads remote, commit style, branch prefixes and recent commits."""

    name = "git"
    discipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields = ("git_conventions",)

    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        root = ctx.root
        if run_git(root, "rev-parse", "--git-dir") is None:
            return {"git_conventions": None}

        conventions = GitConventions()

        remote = run_git(root, "remote", "get-url", "origin")
        if remote and remote.strip():
            conventions.repository = parse_remote_url(remote.strip())

        ctx.check_cancelled()
        subjects = run_git(root, "log", f"-{COMMIT_SAMPLE}", "--format=%s")
        if subjects:
            conventions.commit_convention = classify_commits(subjects.splitlines())

        ctx.check_cancelled()
        branches = run_git(root, "branch", "--format=%(refname:short)")
        if branches:
            conventions.branch_convention = classify_branches(branches.splitlines())

        log = run_git(root, "log", f"-{RECENT_COMMITS}", "--format=%H%x1f%s%x1f%an%x1f%aI")
        if log:
            conventions.recent_commits = parse_log(log)

        return {"git_conventions": conventions}
