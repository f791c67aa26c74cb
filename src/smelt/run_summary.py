"""End-of-run summaries for selections and mirror results."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .logging_utils import LogBlockBuilder

if TYPE_CHECKING:
    from .models import MirrorResult, Selection

LOGGER = logging.getLogger(__name__)

DEFAULT_DETAIL_LIMIT = 25


def format_count(count: int, singular: str, plural: str | None = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def build_mirror_summary(
    selection: Selection,
    result: MirrorResult,
    *,
    detail_limit: int | None = DEFAULT_DETAIL_LIMIT,
) -> str:
    title = "Mirror Summary (dry run)" if result.dry_run else "Mirror Summary"
    builder = LogBlockBuilder(title)
    builder.add_fields(
        {
            "Selected": format_count(len(selection), "file"),
            "Staged": format_count(result.staged, "file"),
            "Duplicates": result.duplicates,
            "Added": result.added_count,
            "Updated": result.updated_count,
            "Removed": result.removed_count,
            "Check Errors": len(selection.stats.errors),
        }
    )
    if result.added:
        builder.add_section("Added", result.added, limit=detail_limit)
    if result.updated:
        builder.add_section("Updated", result.updated, limit=detail_limit)
    if result.removed:
        builder.add_section("Removed", result.removed, limit=detail_limit)
    if selection.stats.errors:
        builder.add_section("Skipped Files", selection.stats.errors, limit=detail_limit)
    return builder.render()


def log_mirror_summary(selection: Selection, result: MirrorResult, *, verbose: bool = False) -> None:
    limit = None if verbose else DEFAULT_DETAIL_LIMIT
    LOGGER.info(build_mirror_summary(selection, result, detail_limit=limit))
    if not result.changed:
        LOGGER.info("Destination already up to date")
