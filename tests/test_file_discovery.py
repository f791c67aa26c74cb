from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from smelt.file_discovery import (
    MARKDOWN_SUFFIX,
    find_attachments,
    find_markdown_files,
    find_markdown_files_with_tag,
    is_attachment,
    is_markdown,
)
from smelt.frontmatter import FrontMatterParser
from smelt.models import DirectoryEntry, SelectionStats, TagQuery


def _entry(path: str, *, is_file: bool = True) -> DirectoryEntry:
    return DirectoryEntry(path=Path(path), depth=1, is_file=is_file, is_dir=not is_file)


class TestIsMarkdown:
    """Test the markdown suffix predicate."""

    def test_matches_md_file(self) -> None:
        assert is_markdown(_entry("notes/a.md")) is True

    def test_suffix_is_case_sensitive(self) -> None:
        """Test that '.MD' and '.Md' are not treated as markdown."""
        assert is_markdown(_entry("notes/A.MD")) is False
        assert is_markdown(_entry("notes/a.Md")) is False

    def test_rejects_directories_named_like_markdown(self) -> None:
        assert is_markdown(_entry("notes/folder.md", is_file=False)) is False

    def test_rejects_other_suffixes(self) -> None:
        assert is_markdown(_entry("notes/a.markdown")) is False
        assert is_markdown(_entry("notes/a.md.bak")) is False

    def test_suffix_constant(self) -> None:
        assert MARKDOWN_SUFFIX == ".md"


class TestIsAttachment:
    """Test the attachment ancestor predicate."""

    def test_matches_nested_file_under_attachment_dir(self) -> None:
        pattern = re.compile("attachment")
        assert is_attachment(Path("root/attachment/x/y.png"), pattern) is True

    def test_rejects_file_outside_attachment_dir(self) -> None:
        pattern = re.compile("attachment")
        assert is_attachment(Path("root/other/y.png"), pattern) is False

    def test_file_name_itself_is_not_tested(self) -> None:
        """Only ancestors count, so a file named like the pattern is not an attachment."""
        pattern = re.compile("attachment")
        assert is_attachment(Path("root/attachment.png"), pattern) is False

    def test_pattern_sees_full_ancestor_path(self) -> None:
        pattern = re.compile(r"^root/attachment$")
        assert is_attachment(Path("root/attachment/x/y.png"), pattern) is True
        assert is_attachment(Path("other/root/attachment/y.png"), pattern) is False

    def test_ancestors_above_base_count(self) -> None:
        pattern = re.compile("vault")
        assert is_attachment(Path("/home/me/vault/notes/a.md"), pattern) is True


class TestFinders:
    """Test the per-pass finders over a real tree."""

    def test_find_markdown_files(self, notes_tree: Path) -> None:
        found = sorted(path.relative_to(notes_tree).as_posix() for path in find_markdown_files(notes_tree))
        assert found == ["hello.md", "journal/day.md", "other.md", "untagged.md"]

    def test_find_markdown_files_counts_entries(self, notes_tree: Path) -> None:
        stats = SelectionStats()
        list(find_markdown_files(notes_tree, stats=stats))
        assert stats.entries_walked > 4

    @pytest.mark.parametrize("workers", [1, 4])
    def test_find_tagged_files(self, notes_tree: Path, workers: int) -> None:
        stats = SelectionStats()
        tagged = find_markdown_files_with_tag(
            notes_tree,
            TagQuery.compile("tag", "hello"),
            FrontMatterParser(),
            workers=workers,
            stats=stats,
        )

        assert sorted(tagged) == [notes_tree / "hello.md", notes_tree / "journal" / "day.md"]
        assert stats.markdown_checked == 4
        assert stats.tagged == 2
        assert stats.errors == []

    def test_bad_file_is_logged_counted_and_skipped(self, notes_tree: Path, write_note, caplog) -> None:
        bad = write_note(notes_tree / "bad.md", "tag:\n  - hello")
        stats = SelectionStats()

        with caplog.at_level(logging.WARNING, logger="smelt.file_discovery"):
            tagged = find_markdown_files_with_tag(
                notes_tree,
                TagQuery.compile("tag", "hello"),
                FrontMatterParser(),
                stats=stats,
            )

        assert bad not in tagged
        assert notes_tree / "hello.md" in tagged
        assert len(stats.errors) == 1
        assert str(bad) in stats.errors[0]
        message = "\n".join(record.getMessage() for record in caplog.records)
        assert "Front Matter Check Failed" in message
        assert str(bad) in message

    def test_find_attachments(self, notes_tree: Path) -> None:
        stats = SelectionStats()
        attachments = find_attachments(notes_tree, re.compile(r"/attachment$"), stats=stats)

        assert attachments == [notes_tree / "attachment" / "x" / "y.png"]
        assert stats.attachments == 1

    def test_find_attachments_with_no_match(self, notes_tree: Path) -> None:
        assert find_attachments(notes_tree, re.compile("nothing-here")) == []
