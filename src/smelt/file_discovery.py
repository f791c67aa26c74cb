"""Markdown and attachment discovery under a source directory.

This module holds the two file predicates, the markdown suffix check and the
attachment ancestor check, and the finders that run them over the tolerant
walker. Per-file front matter failures are logged and counted here so a
single bad note never aborts a pass.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from .errors import SmeltError
from .frontmatter import FrontMatterParser, contains_tag
from .logging_utils import render_fields_block
from .models import DirectoryEntry, SelectionStats, TagQuery
from .walker import iter_files, walk

LOGGER = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


def is_markdown(entry: DirectoryEntry) -> bool:
    """Check if an entry is a regular file with the ``.md`` suffix.

    The suffix comparison is case-sensitive.
    """
    return entry.is_file and entry.name.endswith(MARKDOWN_SUFFIX)


def is_attachment(path: Path, dir_pattern: re.Pattern[str]) -> bool:
    """Check if any ancestor directory of ``path`` matches ``dir_pattern``.

    Every ancestor from the immediate parent up to the root is tested with
    its full path text, so the pattern may anchor on position as well as on
    the directory name.
    """
    return any(dir_pattern.search(str(ancestor)) for ancestor in path.parents)


def find_markdown_files(
    root: Path,
    *,
    follow_links: bool = False,
    stats: SelectionStats | None = None,
) -> Iterator[Path]:
    for entry in walk(root, follow_links=follow_links):
        if stats is not None:
            stats.entries_walked += 1
        if is_markdown(entry):
            yield entry.path


def find_markdown_files_with_tag(
    root: Path,
    query: TagQuery,
    parser: FrontMatterParser,
    *,
    workers: int = 1,
    follow_links: bool = False,
    stats: SelectionStats | None = None,
) -> list[Path]:
    """Return markdown files under ``root`` whose front matter matches ``query``.

    Front matter checks run on a pool of ``workers`` threads; the result is in
    completion order. Files that cannot be checked are logged, counted in
    ``stats`` and left out.
    """
    stats = stats if stats is not None else SelectionStats()
    tagged: list[Path] = []

    with ThreadPoolExecutor(max_workers=max(workers, 1), thread_name_prefix="smelt-tag") as executor:
        futures = {
            executor.submit(contains_tag, path, query, parser): path
            for path in find_markdown_files(root, follow_links=follow_links, stats=stats)
        }
        for future in as_completed(futures):
            path = futures[future]
            stats.markdown_checked += 1
            try:
                matched = future.result()
            except SmeltError as exc:
                LOGGER.warning(
                    render_fields_block(
                        "Front Matter Check Failed",
                        {
                            "File": path,
                            "Key": query.key,
                            "Pattern": query.pattern.pattern,
                            "Error": exc,
                        },
                        pad_top=False,
                    )
                )
                stats.register_error(f"{path}: {exc}")
                continue
            if matched:
                LOGGER.debug("Tagged markdown file: %s", path)
                stats.tagged += 1
                tagged.append(path)

    return tagged


def find_attachments(
    root: Path,
    dir_pattern: re.Pattern[str],
    *,
    follow_links: bool = False,
    stats: SelectionStats | None = None,
) -> list[Path]:
    """Return every file under ``root`` that lives inside an attachment directory."""
    attachments: list[Path] = []
    for entry in iter_files(root, follow_links=follow_links):
        if is_attachment(entry.path, dir_pattern):
            LOGGER.debug("Attachment file: %s", entry.path)
            attachments.append(entry.path)
    if stats is not None:
        stats.attachments += len(attachments)
    return attachments
