from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """One item produced by the tolerant walker."""

    path: Path
    depth: int
    is_file: bool
    is_dir: bool

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class TagQuery:
    """Front matter key plus the pattern its value must contain a match for."""

    key: str
    pattern: re.Pattern[str]

    @classmethod
    def compile(cls, key: str, value: str) -> TagQuery:
        if not key:
            raise ConfigurationError("Front matter key must not be empty")
        try:
            pattern = re.compile(value)
        except re.error as exc:
            raise ConfigurationError(f"Invalid value pattern {value!r}: {exc}") from exc
        return cls(key=key, pattern=pattern)

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass(slots=True)
class SelectionStats:
    entries_walked: int = 0
    markdown_checked: int = 0
    tagged: int = 0
    attachments: int = 0
    errors: List[str] = field(default_factory=list)

    def register_error(self, message: str) -> None:
        self.errors.append(message)

    def merge(self, other: SelectionStats) -> SelectionStats:
        return SelectionStats(
            entries_walked=self.entries_walked + other.entries_walked,
            markdown_checked=self.markdown_checked + other.markdown_checked,
            tagged=self.tagged + other.tagged,
            attachments=self.attachments + other.attachments,
            errors=[*self.errors, *other.errors],
        )


@dataclass(slots=True)
class Selection:
    """Files chosen by the tag pass and the attachment pass.

    Iterating yields the union of both passes in discovery order, tag pass
    first, with duplicates collapsed by path.
    """

    base_dir: Path
    tagged: List[Path] = field(default_factory=list)
    attachments: List[Path] = field(default_factory=list)
    stats: SelectionStats = field(default_factory=SelectionStats)

    @property
    def paths(self) -> List[Path]:
        return list(dict.fromkeys([*self.tagged, *self.attachments]))

    def __iter__(self) -> Iterator[Path]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __contains__(self, path: object) -> bool:
        return path in self.tagged or path in self.attachments


@dataclass(frozen=True, slots=True)
class MirrorResult:
    added: Tuple[str, ...] = ()
    updated: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    staged: int = 0
    duplicates: int = 0
    dry_run: bool = False

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def updated_count(self) -> int:
        return len(self.updated)

    @property
    def removed_count(self) -> int:
        return len(self.removed)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated or self.removed)
