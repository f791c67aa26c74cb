"""Fault-tolerant recursive directory traversal.

Unreadable entries (permission denied, broken symlinks, entries removed
mid-scan, symlink cycles) are logged once here and skipped, so callers only
ever see a clean stream of ``DirectoryEntry`` values.
"""

from __future__ import annotations

import logging
import os
import stat
from collections.abc import Iterator
from pathlib import Path

from .logging_utils import render_fields_block
from .models import DirectoryEntry

LOGGER = logging.getLogger(__name__)


def _warn_unreadable(path: Path, error: object) -> None:
    LOGGER.warning(
        render_fields_block(
            "Skipping Unreadable Entry",
            {"Path": path, "Error": error},
            pad_top=False,
        )
    )


def _identity(stat_result: os.stat_result) -> tuple[int, int]:
    return stat_result.st_dev, stat_result.st_ino


def _describe(entry: os.DirEntry[str], depth: int, follow_links: bool) -> DirectoryEntry:
    if follow_links and entry.is_symlink():
        # Raises for dangling links so the caller can report them.
        entry.stat(follow_symlinks=True)
    return DirectoryEntry(
        path=Path(entry.path),
        depth=depth,
        is_file=entry.is_file(follow_symlinks=follow_links),
        is_dir=entry.is_dir(follow_symlinks=follow_links),
    )


def _scan_children(directory: Path) -> list[os.DirEntry[str]] | None:
    try:
        with os.scandir(directory) as entries:
            return sorted(entries, key=lambda child: child.name)
    except OSError as exc:
        _warn_unreadable(directory, exc)
        return None


def walk(root: Path, *, follow_links: bool = False) -> Iterator[DirectoryEntry]:
    """Yield ``root`` and every entry beneath it, depth first.

    Children are visited in name order so repeated walks over an unchanged
    tree enumerate the same entries. The generator is single pass.

    The root itself is always resolved, even when it is a symbolic link;
    ``follow_links`` only governs links found beneath it.
    """
    root = Path(root)
    try:
        root_stat = root.stat()
    except OSError as exc:
        _warn_unreadable(root, exc)
        return

    root_entry = DirectoryEntry(
        path=root,
        depth=0,
        is_file=stat.S_ISREG(root_stat.st_mode),
        is_dir=stat.S_ISDIR(root_stat.st_mode),
    )
    yield root_entry
    if not root_entry.is_dir:
        return

    # Each frame holds a directory, its depth, and the inode chain leading to it.
    stack: list[tuple[Path, int, frozenset[tuple[int, int]]]] = [
        (root, 1, frozenset({_identity(root_stat)}))
    ]
    while stack:
        directory, depth, ancestry = stack.pop()
        children = _scan_children(directory)
        if children is None:
            continue

        pending: list[tuple[Path, int, frozenset[tuple[int, int]]]] = []
        for child in children:
            try:
                entry = _describe(child, depth, follow_links)
            except OSError as exc:
                _warn_unreadable(Path(child.path), exc)
                continue

            if entry.is_dir:
                try:
                    identity = _identity(child.stat(follow_symlinks=follow_links))
                except OSError as exc:
                    _warn_unreadable(entry.path, exc)
                    continue
                if identity in ancestry:
                    _warn_unreadable(entry.path, "symbolic link cycle detected")
                    continue
                pending.append((entry.path, depth + 1, ancestry | {identity}))

            yield entry

        stack.extend(reversed(pending))


def iter_files(root: Path, *, follow_links: bool = False) -> Iterator[DirectoryEntry]:
    """Yield only the regular files beneath ``root``."""
    for entry in walk(root, follow_links=follow_links):
        if entry.is_file:
            yield entry
