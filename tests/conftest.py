from __future__ import annotations

import os
import textwrap
from pathlib import Path

import pytest


def _write_note(path: Path, front_matter: str | None, body: str = "Body text.\n") -> Path:
    """Write a markdown file, optionally with a ``---`` delimited front matter block."""
    path.parent.mkdir(parents=True, exist_ok=True)
    content = body
    if front_matter is not None:
        content = f"---\n{textwrap.dedent(front_matter).strip()}\n---\n{body}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def write_note():
    return _write_note


@pytest.fixture
def notes_tree(tmp_path: Path) -> Path:
    """A small notes vault with tagged, untagged and attachment files."""
    root = tmp_path / "notes"
    _write_note(root / "hello.md", "tag: hello-world")
    _write_note(root / "untagged.md", None)
    _write_note(root / "other.md", "tag: goodbye")
    _write_note(root / "journal" / "day.md", "tag: hello again")
    (root / "attachment" / "x").mkdir(parents=True)
    (root / "attachment" / "x" / "y.png").write_bytes(b"\x89PNG")
    (root / "other").mkdir()
    (root / "other" / "y.png").write_bytes(b"\x89PNG")
    return root


@pytest.fixture
def skip_if_root() -> None:
    if hasattr(os, "geteuid") and os.geteuid() == 0:
        pytest.skip("permission checks do not apply to root")
