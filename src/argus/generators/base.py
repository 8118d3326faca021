"""Generator interface and output writing.

A generator turns one Analysis into a list of files relative to the
repository root. Generators never touch the file system; write_outputs does.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from argus.generators.merger import add_custom_placeholder, merge
from argus.models.analysis import Analysis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedFile:
    """One output file.

    Attributes:
        path: Root-relative POSIX path
        content: Full file content
        mergeable: Markdown output whose custom sections survive regeneration
    """

    path: str
    content: str
    mergeable: bool = False


class Generator(ABC):
    """Base class for output generators.

    Subclasses set `name` (the id used in config and --format) and
    implement generate().
    """

    name: str = ""

    @abstractmethod
    def generate(self, analysis: Analysis) -> list[GeneratedFile]:
        """Produce output files for an Analysis.

        Raises:
            ValueError: If rendering fails
        """
        ...


def _read_existing(target: Path) -> str:
    try:
        return target.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def write_outputs(
    files: list[GeneratedFile],
    root: Path | str,
    dry_run: bool = False,
    merge_existing: bool = False,
    add_custom: bool = False,
) -> list[Path]:
    """Write generated files under root, creating parent directories.

    Args:
        files: Files to write
        root: Output root
        dry_run: Only report the paths that would be written
        merge_existing: Keep custom sections of existing mergeable files
        add_custom: Append a custom-notes placeholder to mergeable files

    Returns:
        Written (or would-be written) paths, in input order

    Raises:
        OSError: If a file cannot be read or written
    """
    root = Path(root)
    paths: list[Path] = []
    for generated in files:
        target = root / generated.path
        paths.append(target)
        if dry_run:
            logger.info("Would write %s", generated.path)
            continue

        content = generated.content
        if generated.mergeable:
            if merge_existing:
                content = merge(_read_existing(target), content)
            if add_custom:
                content = add_custom_placeholder(content)

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        logger.info("Wrote %s", generated.path)
    return paths
