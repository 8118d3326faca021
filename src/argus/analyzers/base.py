"""Detector interface and shared detection context.

Every detector extracts one facet of the Analysis from the shared file
inventory. A detector declares:

1. The Analysis fields it owns (`fields`)
2. Its write discipline (exclusive field, shared append, dependent read)
3. The pipeline stage it runs in

Detectors never assign into the Analysis directly. `detect()` returns a
mapping of field name to new value and the scheduler applies it, so a
failing detector can never leave a partially-populated field behind.
Shared-append detectors return their conventions under the "conventions"
key; the scheduler merges them in a fixed order.
"""

import json
import logging
import threading
import tomllib
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from enum import Enum
from pathlib import Path
from typing import Any

from argus.models.analysis import Analysis
from argus.models.repository import FileEntry
from argus.utils.logging import get_logger

_logger = get_logger(__name__)

# Files larger than this are never read by detectors
MAX_FILE_SIZE = 500_000

SOURCE_EXTENSIONS: dict[str, str] = {
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".py": "Python",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".java": "Java",
    ".kt": "Kotlin",
    ".swift": "Swift",
    ".php": "PHP",
    ".cs": "C#",
    ".cpp": "C++",
    ".cc": "C++",
    ".c": "C",
    ".h": "C",
    ".vue": "Vue",
    ".svelte": "Svelte",
}

TEST_MARKERS = (".test.", ".spec.", "_test.", "test_")
TEST_DIRS = ("test", "tests", "__tests__", "spec", "specs")

DetectorResult = dict[str, Any]


class WriteDiscipline(Enum):
    """How a detector writes into the Analysis."""

    EXCLUSIVE_FIELD = "exclusive-field"
    SHARED_APPEND = "shared-append"
    DEPENDENT_READ = "dependent-read"


class AnalysisCancelledError(Exception):
    """Raised when an analysis is cancelled before completion."""

    def __init__(self, message: str = "analysis cancelled") -> None:
        super().__init__(message)


class DetectorError(Exception):
    """Raised by a detector that cannot produce its facet.

    Attributes:
        detector: Detector name
        message: Cause description
        fatal: Whether the pipeline must abort (stage-1 detectors only)
    """

    def __init__(self, detector: str, message: str, fatal: bool = False) -> None:
        self.detector = detector
        self.message = message
        self.fatal = fatal
        super().__init__(f"{detector} detector failed: {message}")


def is_test_file(path: str) -> bool:
    """Whether a relative path looks like a test file."""
    name = path.rsplit("/", 1)[-1].lower()
    if any(marker in name for marker in TEST_MARKERS):
        return True
    if name.endswith("_test.py") or name.endswith("_spec.rb"):
        return True
    parts = path.lower().split("/")[:-1]
    return any(part in TEST_DIRS for part in parts)


class DetectionContext:
    """Read-only view of the repository handed to every detector.

    Attributes:
        root: Absolute repository root
        files: Walker inventory (shared, never mutated)
        cancel_event: Cancellation token checked before each file read
    """

    def __init__(
        self,
        root: Path,
        files: list[FileEntry],
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.root = Path(root)
        self.files = files
        self.cancel_event = cancel_event
        self._paths = frozenset(f.path for f in files)
        self._children: dict[str, list[FileEntry]] = {}
        for entry in sorted(files, key=lambda f: f.name):
            self._children.setdefault(entry.parent, []).append(entry)

    # =========================================================================
    # Cancellation
    # =========================================================================

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def check_cancelled(self) -> None:
        """Raise AnalysisCancelledError if the token has fired."""
        if self.cancelled:
            raise AnalysisCancelledError()

    # =========================================================================
    # Filesystem access
    # =========================================================================

    def path(self, rel: str) -> Path:
        return self.root / rel

    # Probes for known names check the disk: lockfiles are filtered from the
    # inventory but still identify the package manager.
    def exists(self, rel: str) -> bool:
        return (self.root / rel).exists()

    def is_file(self, rel: str) -> bool:
        return (self.root / rel).is_file()

    def is_dir(self, rel: str) -> bool:
        return (self.root / rel).is_dir()

    def in_inventory(self, rel: str) -> bool:
        return rel in self._paths

    def read_text(self, rel: str, max_size: int = MAX_FILE_SIZE) -> str | None:
        """Read a file under the root.

        Returns None for missing, unreadable or oversized files.

        Raises:
            AnalysisCancelledError: If cancelled before the read
        """
        self.check_cancelled()
        target = self.root / rel
        try:
            if target.stat().st_size > max_size:
                return None
            return target.read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None

    def read_lines(self, rel: str, max_size: int = MAX_FILE_SIZE) -> list[str]:
        content = self.read_text(rel, max_size)
        return content.splitlines() if content is not None else []

    def load_json(self, rel: str) -> dict[str, Any] | None:
        """Parse a JSON object file; None if missing or malformed."""
        content = self.read_text(rel)
        if content is None:
            return None
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            _logger.debug(f"Invalid JSON in {rel}: {e}")
            return None
        return data if isinstance(data, dict) else None

    def load_toml(self, rel: str) -> dict[str, Any] | None:
        """Parse a TOML file; None if missing or malformed."""
        content = self.read_text(rel)
        if content is None:
            return None
        try:
            return tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            _logger.debug(f"Invalid TOML in {rel}: {e}")
            return None

    def list_dir(self, rel: str) -> list[str]:
        """Sorted child names of a directory, from the inventory ([] if absent).

        Children the walker ignored are not listed.
        """
        return [entry.name for entry in self._children.get(rel.strip("/"), [])]

    def subdirs(self, rel: str) -> list[str]:
        """Sorted non-hidden subdirectory names of a directory, from the inventory."""
        return [
            entry.name
            for entry in self._children.get(rel.strip("/"), [])
            if entry.is_dir and not entry.name.startswith(".")
        ]

    # =========================================================================
    # Inventory queries
    # =========================================================================

    def iter_files(self) -> Iterator[FileEntry]:
        return (f for f in self.files if not f.is_dir)

    def iter_dirs(self) -> Iterator[FileEntry]:
        return (f for f in self.files if f.is_dir)

    def files_with_ext(self, *exts: str) -> list[FileEntry]:
        wanted = set(exts)
        return [f for f in self.iter_files() if f.ext in wanted]

    def source_files(self, exts: Iterable[str] | None = None) -> list[FileEntry]:
        wanted = set(exts) if exts is not None else set(SOURCE_EXTENSIONS)
        return [f for f in self.iter_files() if f.ext in wanted]

    def top_level_dirs(self) -> list[str]:
        return [f.name for f in self.iter_dirs() if "/" not in f.path]

    def root_files(self) -> list[str]:
        return [f.name for f in self.iter_files() if "/" not in f.path]

    def has_ext(self, *exts: str) -> bool:
        wanted = set(exts)
        return any(f.ext in wanted for f in self.iter_files())


class Detector(ABC):
    """Base class for all detectors.

    Subclasses set the class attributes and implement detect().

    Attributes:
        name: Detector identifier (e.g., "techstack", "endpoints")
        discipline: Write discipline
        fields: Analysis fields owned by this detector
        stage: Pipeline stage (1, 2 or 3)
        fatal: Whether a failure aborts the pipeline
    """

    name: str = ""
    discipline: WriteDiscipline = WriteDiscipline.EXCLUSIVE_FIELD
    fields: tuple[str, ...] = ()
    stage: int = 2
    fatal: bool = False

    @abstractmethod
    def detect(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        """Extract this detector's facet.

        Args:
            ctx: Detection context (root, inventory, cancellation)
            analysis: Analysis populated by earlier stages (read-only here)

        Returns:
            Mapping of owned field name to its new value

        Raises:
            DetectorError: On a failure that prevents producing the facet
            AnalysisCancelledError: If cancelled
        """

    def empty_result(self) -> DetectorResult:
        """Result equivalent to resetting every owned field."""
        blank = Analysis(project_name="", root_path="")
        if self.discipline == WriteDiscipline.SHARED_APPEND:
            return {"conventions": []}
        return {name: getattr(blank, name) for name in self.fields}

    def run(self, ctx: DetectionContext, analysis: Analysis) -> DetectorResult:
        """Run detect() applying the error policy.

        Soft DetectorErrors are logged at debug and yield the empty result.
        Fatal DetectorErrors, cancellation and unexpected exceptions propagate.
        """
        ctx.check_cancelled()
        try:
            result = self.detect(ctx, analysis)
        except DetectorError as e:
            if e.fatal or self.fatal:
                raise
            _logger.structured(
                logging.DEBUG, f"Detector soft failure: {e.message}", detector=self.name
            )
            return self.empty_result()

        unknown = set(result) - set(self.fields)
        if unknown:
            raise DetectorError(self.name, f"wrote fields it does not own: {sorted(unknown)}")
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, stage={self.stage})"
