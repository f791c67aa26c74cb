"""Exception hierarchy for selection and mirroring failures."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence


class SmeltError(RuntimeError):
    """Base class for all errors raised by smelt."""


class ConfigurationError(SmeltError, ValueError):
    """Raised when run configuration is invalid, before any filesystem work starts."""


class FrontMatterError(SmeltError):
    """Raised when a markdown file's front matter cannot be checked."""

    def __init__(self, message: str, path: Path, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path
        self.key = key


class FrontMatterReadError(FrontMatterError):
    """Raised when a markdown file cannot be read."""


class FrontMatterValueError(FrontMatterError):
    """Raised when a front matter value cannot be coerced to text."""


class MirrorError(SmeltError):
    """Base class for staging and synchronization failures."""


class PathEscapesBaseError(MirrorError):
    """Raised when a selected path is not rooted under the base directory."""

    def __init__(self, path: Path, base_dir: Path) -> None:
        super().__init__(f"{path} is not under base directory {base_dir}")
        self.path = path
        self.base_dir = base_dir


class StagingError(MirrorError):
    """Raised when the staging view cannot be built."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class MirrorExecutionError(MirrorError):
    """Raised when the mirror primitive reports failure."""

    def __init__(
        self,
        message: str,
        command: Sequence[str] = (),
        returncode: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
