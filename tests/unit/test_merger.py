"""Unit tests for preserving custom sections across regeneration."""

from argus.generators.merger import (
    AUTO_END,
    AUTO_START,
    CUSTOM_END,
    CUSTOM_START,
    add_custom_placeholder,
    custom_sections,
    has_custom_content,
    merge,
    strip_markers,
    wrap_content,
)


def custom(body: str) -> str:
    return f"{CUSTOM_START}\n{body}\n{CUSTOM_END}"


class TestMerge:
    """Tests for merge()."""

    def test_new_file_is_wrapped(self) -> None:
        assert merge("", "# repo\n\nText\n") == f"{AUTO_START}\n# repo\n\nText\n{AUTO_END}\n"

    def test_hand_written_file_is_preserved_as_previous_content(self) -> None:
        merged = merge("# My notes\n\nKeep this.\n", "# repo\n")

        assert merged.startswith(wrap_content("# repo\n"))
        assert "## Previous Content" in merged
        assert "# My notes\n\nKeep this.\n" + CUSTOM_END in merged

    def test_auto_block_is_replaced_and_custom_blocks_kept_in_order(self) -> None:
        existing = "\n\n".join(
            [wrap_content("# stale"), custom("## First"), custom("## Second")]
        )

        merged = merge(existing, "# fresh\n")

        assert "# stale" not in merged
        assert merged == "\n\n".join(
            [wrap_content("# fresh"), custom("## First"), custom("## Second")]
        ) + "\n"

    def test_merging_twice_is_stable(self) -> None:
        once = merge(custom("## Notes"), "# repo\n")

        assert merge(once, "# repo\n") == once


class TestCustomSections:
    """Tests for the custom section helpers."""

    def test_unterminated_block_is_ignored(self) -> None:
        assert custom_sections(f"{CUSTOM_START}\n## Half") == []

    def test_placeholder_alone_is_not_custom_content(self) -> None:
        content = add_custom_placeholder("# repo\n")

        assert CUSTOM_START in content
        assert not has_custom_content(content)
        assert has_custom_content(content + "\n" + custom("## Deploy\n\nAsk ops."))

    def test_placeholder_is_added_once(self) -> None:
        content = add_custom_placeholder("# repo\n")

        assert add_custom_placeholder(content) == content

    def test_strip_markers(self) -> None:
        content = merge(custom("## Notes"), "# repo\n")

        stripped = strip_markers(content)

        assert "ARGUS:" not in stripped
        assert "# repo" in stripped
        assert "## Notes" in stripped
