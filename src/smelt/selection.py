"""Selection pipeline combining the tag pass and the attachment pass.

The two passes walk the source tree independently and run as two tasks on a
small thread pool. Each pass owns its result list and statistics; they are
merged only after both tasks complete.
"""

from __future__ import annotations

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .file_discovery import find_attachments, find_markdown_files_with_tag
from .frontmatter import FrontMatterParser
from .logging_utils import render_fields_block
from .models import Selection, SelectionStats, TagQuery

LOGGER = logging.getLogger(__name__)

DEFAULT_WORKERS = min(8, os.cpu_count() or 1)


def select(
    base_dir: Path,
    query: TagQuery,
    attachment_pattern: re.Pattern[str] | None = None,
    *,
    parser: FrontMatterParser | None = None,
    workers: int = DEFAULT_WORKERS,
    follow_links: bool = False,
) -> Selection:
    """Collect tagged markdown files and, optionally, attachment files under ``base_dir``."""
    parser = parser or FrontMatterParser()
    tag_stats = SelectionStats()
    attachment_stats = SelectionStats()

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="smelt-pass") as executor:
        tagged_future = executor.submit(
            find_markdown_files_with_tag,
            base_dir,
            query,
            parser,
            workers=workers,
            follow_links=follow_links,
            stats=tag_stats,
        )
        attachments_future = None
        if attachment_pattern is not None:
            attachments_future = executor.submit(
                find_attachments,
                base_dir,
                attachment_pattern,
                follow_links=follow_links,
                stats=attachment_stats,
            )

        tagged = tagged_future.result()
        attachments = attachments_future.result() if attachments_future is not None else []

    selection = Selection(
        base_dir=base_dir,
        tagged=tagged,
        attachments=attachments,
        stats=tag_stats.merge(attachment_stats),
    )

    LOGGER.info(
        render_fields_block(
            "Selection Complete",
            {
                "Source": base_dir,
                "Key": query.key,
                "Pattern": query.pattern.pattern,
                "Attachments": attachment_pattern.pattern if attachment_pattern is not None else "(disabled)",
                "Entries Walked": selection.stats.entries_walked,
                "Markdown Checked": selection.stats.markdown_checked,
                "Tagged": len(tagged),
                "Attachment Files": len(attachments),
                "Selected": len(selection),
                "Errors": len(selection.stats.errors),
            },
        )
    )
    return selection
