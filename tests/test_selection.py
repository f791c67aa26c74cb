from __future__ import annotations

import logging
import re
from pathlib import Path

from smelt.frontmatter import FrontMatterParser
from smelt.models import Selection, SelectionStats, TagQuery
from smelt.selection import select

ATTACHMENTS = re.compile(r"/attachment$")


class TestSelect:
    """Tests for the combined tag and attachment selection."""

    def test_tag_pass_only(self, notes_tree: Path) -> None:
        selection = select(notes_tree, TagQuery.compile("tag", "hello"))

        assert sorted(selection) == [notes_tree / "hello.md", notes_tree / "journal" / "day.md"]
        assert selection.attachments == []
        assert selection.base_dir == notes_tree

    def test_union_of_both_passes(self, notes_tree: Path) -> None:
        selection = select(notes_tree, TagQuery.compile("tag", "^hello-world$"), ATTACHMENTS)

        assert set(selection) == {
            notes_tree / "hello.md",
            notes_tree / "attachment" / "x" / "y.png",
        }
        assert notes_tree / "other" / "y.png" not in selection

    def test_tag_pass_results_come_first(self, notes_tree: Path) -> None:
        selection = select(notes_tree, TagQuery.compile("tag", "hello"), ATTACHMENTS)

        paths = selection.paths
        assert paths[-1] == notes_tree / "attachment" / "x" / "y.png"
        assert set(paths[:-1]) == set(selection.tagged)

    def test_file_found_by_both_passes_is_listed_once(self, notes_tree: Path, write_note) -> None:
        """A tagged note inside an attachment directory appears once in the union."""
        note = write_note(notes_tree / "attachment" / "note.md", "tag: hello")

        selection = select(notes_tree, TagQuery.compile("tag", "hello"), ATTACHMENTS)

        assert note in selection.tagged
        assert note in selection.attachments
        assert selection.paths.count(note) == 1
        assert len(selection) == len(set(selection))

    def test_unconstructible_front_matter_is_skipped(self, notes_tree: Path, write_note) -> None:
        """A note with an impossible date is left out while the rest of the tree is still selected."""
        broken = write_note(notes_tree / "broken.md", "tag: hello\ndate: 2023-02-30")

        selection = select(notes_tree, TagQuery.compile("tag", "hello"))

        assert broken not in selection
        assert sorted(selection) == [notes_tree / "hello.md", notes_tree / "journal" / "day.md"]
        assert selection.stats.markdown_checked == 5
        assert selection.stats.errors == []

    def test_repeated_runs_select_the_same_files(self, notes_tree: Path) -> None:
        query = TagQuery.compile("tag", "hello")
        first = select(notes_tree, query, ATTACHMENTS, workers=4)
        second = select(notes_tree, query, ATTACHMENTS, workers=1)

        assert set(first) == set(second)

    def test_stats_merge_both_passes(self, notes_tree: Path) -> None:
        selection = select(notes_tree, TagQuery.compile("tag", "hello"), ATTACHMENTS)

        assert selection.stats.markdown_checked == 4
        assert selection.stats.tagged == 2
        assert selection.stats.attachments == 1

    def test_custom_parser_is_used(self, tmp_path: Path) -> None:
        (tmp_path / "a.md").write_text("+++\ntag: hello\n+++\n", encoding="utf-8")

        default = select(tmp_path, TagQuery.compile("tag", "hello"))
        custom = select(tmp_path, TagQuery.compile("tag", "hello"), parser=FrontMatterParser("+++"))

        assert list(default) == []
        assert list(custom) == [tmp_path / "a.md"]

    def test_missing_base_dir_selects_nothing(self, tmp_path: Path) -> None:
        selection = select(tmp_path / "missing", TagQuery.compile("tag", "hello"), ATTACHMENTS)
        assert len(selection) == 0

    def test_logs_selection_summary(self, notes_tree: Path, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="smelt.selection"):
            select(notes_tree, TagQuery.compile("tag", "hello"))

        message = "\n".join(record.getMessage() for record in caplog.records)
        assert "Selection Complete" in message
        assert "Entries Walked" in message


class TestSelectionModel:
    """Tests for the Selection and SelectionStats containers."""

    def test_paths_preserve_order_and_dedupe(self) -> None:
        selection = Selection(
            base_dir=Path("base"),
            tagged=[Path("base/b.md"), Path("base/a.md")],
            attachments=[Path("base/a.md"), Path("base/att/c.png")],
        )

        assert selection.paths == [Path("base/b.md"), Path("base/a.md"), Path("base/att/c.png")]
        assert len(selection) == 3
        assert Path("base/att/c.png") in selection
        assert Path("base/missing.md") not in selection

    def test_stats_merge_returns_new_totals(self) -> None:
        first = SelectionStats(entries_walked=3, markdown_checked=2, tagged=1, errors=["a"])
        second = SelectionStats(entries_walked=4, attachments=2, errors=["b"])

        merged = first.merge(second)

        assert merged.entries_walked == 7
        assert merged.markdown_checked == 2
        assert merged.tagged == 1
        assert merged.attachments == 2
        assert merged.errors == ["a", "b"]
        assert first.errors == ["a"]
