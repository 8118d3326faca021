"""Unit tests for the repository file walker."""

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from argus.analyzers.walker import FileWalker, WalkerError, load_gitignore, match_pattern, walk

RepoFactory = Callable[[dict[str, str]], Path]


class TestMatchPattern:
    """Tests for gitignore-style pattern matching."""

    def test_bare_name_matches_any_segment(self) -> None:
        assert match_pattern("node_modules", "web/node_modules/react/index.js", False)
        assert match_pattern("node_modules", "node_modules", True)
        assert not match_pattern("node_modules", "src/modules.js", False)

    def test_trailing_slash_matches_directories_only(self) -> None:
        assert match_pattern("tmp/", "tmp", True)
        assert not match_pattern("tmp/", "tmp", False)

    def test_leading_slash_anchors_to_root(self) -> None:
        assert match_pattern("/out", "out", True)
        assert not match_pattern("/out", "src/out", True)

    def test_glob_matches_basename(self) -> None:
        assert match_pattern("*.log", "logs/server.log", False)
        assert not match_pattern("*.log", "logs/server.txt", False)

    def test_negation_is_ignored(self) -> None:
        assert not match_pattern("!important.log", "important.log", False)

    def test_path_pattern_matches_prefix(self) -> None:
        assert match_pattern("docs/build", "docs/build/index.html", False)
        assert not match_pattern("docs/build", "docs/builder.md", False)

    def test_double_star_prefix_matches_at_root(self) -> None:
        assert match_pattern("**/logs", "logs", True)
        assert match_pattern("**/logs", "services/api/logs", True)

    def test_star_does_not_cross_directories(self) -> None:
        assert match_pattern("docs/*.md", "docs/intro.md", False)
        assert not match_pattern("docs/*.md", "docs/sub/x.md", False)

    def test_double_star_crosses_directories(self) -> None:
        assert match_pattern("docs/**/*.md", "docs/sub/deeper/x.md", False)


class TestLoadGitignore:
    """Tests for reading the root .gitignore."""

    def test_skips_comments_and_blank_lines(self, tmp_path: Path) -> None:
        (tmp_path / ".gitignore").write_text("# comment\n\ncoverage/\n*.tmp\n")

        assert load_gitignore(tmp_path) == ["coverage/", "*.tmp"]

    def test_missing_file_yields_nothing(self, tmp_path: Path) -> None:
        assert load_gitignore(tmp_path) == []


class TestFileWalker:
    """Tests for FileWalker.walk()."""

    def test_entries_are_sorted_relative_posix_paths(self, make_repo: RepoFactory) -> None:
        root = make_repo({"b.go": "", "a/z.go": "", "a/y.go": ""})

        paths = [entry.path for entry in walk(root)]

        assert paths == ["a", "a/y.go", "a/z.go", "b.go"]

    def test_default_ignores_drop_whole_subtrees(self, make_repo: RepoFactory) -> None:
        root = make_repo(
            {
                "index.js": "",
                "node_modules/react/index.js": "",
                "dist/bundle.js": "",
                "server.log": "",
            }
        )

        paths = {entry.path for entry in walk(root)}

        assert paths == {"index.js"}

    def test_gitignore_and_extra_patterns_are_applied(self, make_repo: RepoFactory) -> None:
        root = make_repo(
            {
                ".gitignore": "coverage/\n",
                "coverage/report.html": "",
                "generated/api.go": "",
                "main.go": "",
            }
        )

        paths = {entry.path for entry in FileWalker(root, extra_patterns=["generated"]).walk()}

        assert "coverage/report.html" not in paths
        assert "generated/api.go" not in paths
        assert "main.go" in paths

    def test_gitignore_double_star_and_nested_globs(self, make_repo: RepoFactory) -> None:
        root = make_repo(
            {
                ".gitignore": "**/logs\ndocs/*.md\n",
                "logs/a.txt": "",
                "api/logs/b.txt": "",
                "docs/intro.md": "",
                "docs/sub/x.md": "",
            }
        )

        paths = {entry.path for entry in walk(root)}

        assert "logs" not in paths
        assert "logs/a.txt" not in paths
        assert "api/logs/b.txt" not in paths
        assert "docs/intro.md" not in paths
        assert "docs/sub/x.md" in paths

    def test_gitignore_negation_does_not_reinclude(self, make_repo: RepoFactory) -> None:
        root = make_repo(
            {
                ".gitignore": "!dist/\n*.tmp\n!keep.tmp\n",
                "dist/bundle.js": "",
                "keep.tmp": "",
                "main.go": "",
            }
        )

        paths = {entry.path for entry in walk(root)}

        assert paths == {".gitignore", "main.go"}

    def test_file_entries_carry_extension_and_size(self, make_repo: RepoFactory) -> None:
        root = make_repo({"README.MD": "hello"})

        (entry,) = [e for e in walk(root) if e.name == "README.MD"]

        assert entry.ext == ".md"
        assert entry.size == 5
        assert entry.is_dir is False

    def test_symlinks_are_not_followed(self, make_repo: RepoFactory, tmp_path: Path) -> None:
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "secret.go").write_text("package secret\n")
        root = make_repo({"main.go": ""})
        try:
            os.symlink(outside, root / "linked")
        except OSError:
            pytest.skip("symlinks not supported")

        paths = {entry.path for entry in walk(root)}

        assert "linked" not in paths
        assert "linked/secret.go" not in paths

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(WalkerError):
            walk(tmp_path / "missing")

    def test_empty_repository_yields_no_entries(self, tmp_path: Path) -> None:
        assert walk(tmp_path) == []
