"""Repository file inventory.

Walks the repository once and returns the FileEntry list shared by every
detector. Filtering combines a default exclude list, the root .gitignore and
any extra patterns from configuration, matched with gitignore semantics by
pathspec.

Ignore rules are additive only: negation lines ("!pattern") are dropped
before matching, so nothing excluded by one source is re-included by another.
"""

import os
from pathlib import Path

import pathspec

from argus.models.repository import FileEntry
from argus.utils.logging import get_logger

_logger = get_logger(__name__)

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    ".git",
    "node_modules",
    "vendor",
    "__pycache__",
    ".venv",
    "venv",
    "dist",
    "build",
    ".next",
    ".nuxt",
    "target",
    "bin",
    "obj",
    ".idea",
    ".vscode",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    "*.log",
    "*.lock",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "go.sum",
    "Cargo.lock",
    "*.min.js",
    "*.min.css",
    "*.map",
)


class WalkerError(Exception):
    """Raised when the repository root cannot be enumerated."""

    def __init__(self, root: Path, message: str) -> None:
        self.root = root
        super().__init__(f"Cannot walk {root}: {message}")


def load_gitignore(root: Path) -> list[str]:
    """Read non-empty, non-comment lines of the root .gitignore."""
    gitignore = root / ".gitignore"
    try:
        content = gitignore.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []

    patterns = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


def build_spec(patterns: list[str]) -> pathspec.PathSpec:
    """Compile ignore patterns, dropping blanks, comments and negations.

    Malformed patterns are skipped with a debug log instead of failing the walk.
    """
    lines = []
    for pattern in patterns:
        pattern = pattern.strip()
        if not pattern or pattern.startswith(("#", "!")):
            continue
        try:
            pathspec.GitIgnoreSpec.from_lines([pattern])
        except ValueError as e:
            _logger.debug(f"Skipping invalid ignore pattern {pattern!r}: {e}")
            continue
        lines.append(pattern)
    return pathspec.GitIgnoreSpec.from_lines(lines)


def _spec_path(rel_path: str, is_dir: bool) -> str:
    # Directory-only patterns ("tmp/") match paths with a trailing slash
    return f"{rel_path}/" if is_dir else rel_path


def match_pattern(pattern: str, rel_path: str, is_dir: bool) -> bool:
    """Match one gitignore-style pattern against a root-relative POSIX path.

    Args:
        pattern: Ignore pattern
        rel_path: Path relative to the root, "/" separated
        is_dir: Whether the path is a directory

    Returns:
        True if the path is ignored by the pattern
    """
    return build_spec([pattern]).match_file(_spec_path(rel_path, is_dir))


class FileWalker:
    """Enumerates a repository into FileEntry records.

    Never follows symlinks. Unreadable entries are skipped silently; only an
    unreadable root raises WalkerError.
    """

    def __init__(
        self,
        root: Path | str,
        extra_patterns: list[str] | None = None,
        use_gitignore: bool = True,
    ) -> None:
        self.root = Path(root)
        self.extra_patterns = list(extra_patterns or [])
        self.use_gitignore = use_gitignore
        self._patterns: list[str] = []
        self._spec = build_spec([])

    @property
    def patterns(self) -> list[str]:
        return list(self._patterns)

    def should_ignore(self, rel_path: str, is_dir: bool) -> bool:
        # The root itself is never filtered
        if rel_path in ("", "."):
            return False
        return self._spec.match_file(_spec_path(rel_path, is_dir))

    def walk(self) -> list[FileEntry]:
        """Walk the tree and return entries sorted by path.

        Raises:
            WalkerError: If the root is not a readable directory
        """
        if not self.root.is_dir():
            raise WalkerError(self.root, "not a directory")
        try:
            os.listdir(self.root)
        except OSError as e:
            raise WalkerError(self.root, str(e)) from e

        self._patterns = list(DEFAULT_IGNORE_PATTERNS)
        if self.use_gitignore:
            self._patterns.extend(load_gitignore(self.root))
        self._patterns.extend(self.extra_patterns)
        self._spec = build_spec(self._patterns)

        entries: list[FileEntry] = []
        self._walk_dir(self.root, "", entries)
        entries.sort(key=lambda e: e.path)
        _logger.debug(f"Walked {self.root}: {len(entries)} entries")
        return entries

    def _walk_dir(self, directory: Path, rel_dir: str, entries: list[FileEntry]) -> None:
        try:
            scanner = os.scandir(directory)
        except OSError:
            return

        with scanner:
            children = sorted(scanner, key=lambda d: d.name)

        for child in children:
            rel_path = f"{rel_dir}/{child.name}" if rel_dir else child.name
            try:
                if child.is_symlink():
                    continue
                is_dir = child.is_dir(follow_symlinks=False)
                size = 0 if is_dir else child.stat(follow_symlinks=False).st_size
            except OSError:
                continue

            # An ignored directory is skipped together with its subtree
            if self.should_ignore(rel_path, is_dir):
                continue

            if is_dir:
                entries.append(FileEntry.for_dir(rel_path))
                self._walk_dir(Path(child.path), rel_path, entries)
            else:
                entries.append(FileEntry.for_file(rel_path, size))


def walk(root: Path | str, extra_patterns: list[str] | None = None) -> list[FileEntry]:
    """Enumerate a repository with the default filters.

    Args:
        root: Repository root
        extra_patterns: Additional ignore patterns (from configuration)

    Returns:
        Sorted FileEntry list
    """
    return FileWalker(root, extra_patterns=extra_patterns).walk()
