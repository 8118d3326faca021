"""Repository and file inventory entities.

Repository validates the analysis root; FileEntry is one item of the
walker's inventory, shared read-only by every detector.
"""

from dataclasses import dataclass
from pathlib import Path, PurePosixPath


@dataclass(frozen=True)
class FileEntry:
    """File or directory found by the walker.

    Attributes:
        path: Root-relative POSIX path
        name: Basename
        ext: Lowercased extension including the dot ("" if none)
        size: Size in bytes (0 for directories)
        is_dir: Whether the entry is a directory
    """

    path: str
    name: str
    ext: str = ""
    size: int = 0
    is_dir: bool = False

    @classmethod
    def for_file(cls, path: str, size: int = 0) -> "FileEntry":
        """Build an entry for a file from its relative path."""
        pure = PurePosixPath(path)
        return cls(path=path, name=pure.name, ext=pure.suffix.lower(), size=size)

    @classmethod
    def for_dir(cls, path: str) -> "FileEntry":
        """Build an entry for a directory from its relative path."""
        return cls(path=path, name=PurePosixPath(path).name, is_dir=True)

    @property
    def parts(self) -> tuple[str, ...]:
        return PurePosixPath(self.path).parts

    @property
    def parent(self) -> str:
        parent = str(PurePosixPath(self.path).parent)
        return "" if parent == "." else parent


@dataclass
class Repository:
    """Repository root being analyzed.

    Attributes:
        path: Absolute path to repository root
        name: Repository name (directory basename unless given)

    Validation Rules:
        - path must exist and be a directory
        - path should contain a .git directory (warning if not)
    """

    path: Path
    name: str

    def __post_init__(self) -> None:
        if isinstance(self.path, str):
            self.path = Path(self.path)
        self.path = self.path.resolve()

    def validate(self) -> list[str]:
        """Validate the repository root.

        Returns:
            List of validation warning messages (empty if valid)

        Raises:
            ValueError: If path does not exist or is not a directory
        """
        warnings: list[str] = []

        if not self.path.exists():
            raise ValueError(f"Repository path does not exist: {self.path}")

        if not self.path.is_dir():
            raise ValueError(f"Repository path is not a directory: {self.path}")

        if not (self.path / ".git").exists():
            warnings.append(f"Not a git repository (no .git directory): {self.path}")

        return warnings

    @property
    def is_git_repo(self) -> bool:
        return (self.path / ".git").exists()

    @classmethod
    def from_path(cls, path: Path | str, name: str | None = None) -> "Repository":
        """Create a Repository from a path.

        Args:
            path: Path to the repository root
            name: Optional name override (defaults to directory name)
        """
        resolved = Path(path).resolve()
        return cls(path=resolved, name=name or resolved.name)
