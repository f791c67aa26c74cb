"""YAML front matter parsing and tag matching for markdown files.

A markdown file is "tagged" when its leading front matter block holds the
query key with a value whose text contains a match for the query pattern.
Files without front matter, with a malformed block, or without the key are
simply not tagged. Only unreadable files and values that cannot be turned
into text are errors.
"""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import FrontMatterReadError, FrontMatterValueError
from .models import TagQuery

LOGGER = logging.getLogger(__name__)

DEFAULT_DELIMITER = "---"


class FrontMatterParser:
    """Extracts the leading delimited YAML block from markdown content.

    Instances hold no per-file state; build one per run and share it across
    worker threads.
    """

    def __init__(self, delimiter: str = DEFAULT_DELIMITER) -> None:
        if not delimiter or delimiter != delimiter.strip():
            raise ValueError(f"Invalid front matter delimiter: {delimiter!r}")
        self.delimiter = delimiter

    def extract_block(self, content: str) -> Optional[str]:
        lines = content.strip().splitlines()
        if not lines or lines[0].rstrip() != self.delimiter:
            return None
        for index, line in enumerate(lines[1:], start=1):
            if line.rstrip() == self.delimiter:
                return "\n".join(lines[1:index])
        return None

    def parse(self, content: str) -> Optional[Dict[str, Any]]:
        """Return the front matter mapping, or None when there is none."""
        block = self.extract_block(content)
        if block is None:
            return None
        try:
            data = yaml.safe_load(block)
        except (yaml.YAMLError, ValueError, TypeError) as exc:
            # Constructors raise plain ValueError for values such as 2023-02-30.
            LOGGER.debug("Ignoring malformed front matter: %s", exc)
            return None
        if not isinstance(data, dict):
            return None
        return data


def coerce_value(value: Any) -> str:
    """Render a scalar front matter value as text.

    Raises TypeError for sequences, mappings and other structured values.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} value cannot be matched as text")


def read_markdown(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FrontMatterReadError(f"Unable to read {path}: {exc}", path) from exc


def contains_tag(path: Path, query: TagQuery, parser: FrontMatterParser) -> bool:
    """Check whether ``path`` has front matter matching ``query``.

    Raises:
        FrontMatterReadError: the file could not be read.
        FrontMatterValueError: the key holds a list, mapping or other
            structured value.
    """
    front_matter = parser.parse(read_markdown(path))
    if front_matter is None:
        return False

    value = front_matter.get(query.key)
    if value is None:
        return False

    try:
        text = coerce_value(value)
    except TypeError as exc:
        raise FrontMatterValueError(
            f"Front matter key '{query.key}' in {path}: {exc}", path, key=query.key
        ) from exc

    return query.matches(text)
