"""smelt core package.

smelt finds markdown notes whose YAML front matter carries a given tag,
optionally pulls in whole attachment directories, and prints the selection
or mirrors exactly that selection into a destination tree.

- **walker**: Fault-tolerant recursive directory traversal
- **file_discovery**: Markdown filter, attachment matcher, and per-pass finders
- **frontmatter**: Front matter parsing and tag matching
- **selection**: Selection pipeline combining the tag and attachment passes
- **mirror**: Hard-linked staging view and tree mirror backends
- **config**: Settings dataclasses and YAML config loading
- **cli**: Command line entry point

The main entry points are ``select`` and ``mirror``.
"""

from .errors import (
    ConfigurationError,
    FrontMatterReadError,
    FrontMatterValueError,
    MirrorExecutionError,
    PathEscapesBaseError,
    SmeltError,
    StagingError,
)
from .frontmatter import FrontMatterParser, contains_tag
from .mirror import LocalMirror, RsyncMirror, mirror
from .models import MirrorResult, Selection, TagQuery
from .selection import select
from .version import __version__

__all__ = [
    "__version__",
    "ConfigurationError",
    "FrontMatterParser",
    "FrontMatterReadError",
    "FrontMatterValueError",
    "LocalMirror",
    "MirrorExecutionError",
    "MirrorResult",
    "PathEscapesBaseError",
    "RsyncMirror",
    "Selection",
    "SmeltError",
    "StagingError",
    "TagQuery",
    "contains_tag",
    "mirror",
    "select",
]
