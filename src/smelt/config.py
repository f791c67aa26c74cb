from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError
from .frontmatter import DEFAULT_DELIMITER, FrontMatterParser
from .mirror import LocalMirror, MirrorBackend, RsyncMirror
from .models import TagQuery
from .selection import DEFAULT_WORKERS
from .utils import load_yaml_file

ACTION_PRINT = "print"
ACTION_RSYNC = "rsync"
BACKENDS = ("rsync", "local")


@dataclass
class MirrorSettings:
    backend: str = "rsync"  # rsync | local
    rsync_binary: str = "rsync"
    extra_args: list[str] = field(default_factory=list)
    staging_dir: Path | None = None
    dry_run: bool = False

    def build_backend(self) -> MirrorBackend:
        if self.backend == "local":
            return LocalMirror(dry_run=self.dry_run)
        return RsyncMirror(binary=self.rsync_binary, extra_args=tuple(self.extra_args), dry_run=self.dry_run)


@dataclass
class Settings:
    source_dir: Path
    key: str
    value: str
    action: str  # print | rsync
    destination_dir: Path | None = None
    include_attachment: str | None = None
    workers: int = DEFAULT_WORKERS
    follow_links: bool = False
    front_matter_delimiter: str = DEFAULT_DELIMITER
    mirror: MirrorSettings = field(default_factory=MirrorSettings)

    def tag_query(self) -> TagQuery:
        return TagQuery.compile(self.key, self.value)

    def attachment_pattern(self) -> re.Pattern[str] | None:
        if self.include_attachment is None:
            return None
        try:
            return re.compile(self.include_attachment)
        except re.error as exc:
            raise ConfigurationError(
                f"Invalid attachment directory pattern {self.include_attachment!r}: {exc}"
            ) from exc

    def parser(self) -> FrontMatterParser:
        try:
            return FrontMatterParser(self.front_matter_delimiter)
        except ValueError as exc:
            raise ConfigurationError(f"'front_matter_delimiter': {exc}") from exc


def _clean_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _optional_path(value: Any) -> Path | None:
    text = _clean_str(value)
    return Path(text).expanduser() if text else None


def _ensure_string_list(value: Any, *, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationError(f"'{field_name}' must be provided as a list of strings")
    result: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str):
            raise ConfigurationError(f"'{field_name}[{index}]' must be a string")
        result.append(item)
    return result


def _build_mirror_settings(data: Mapping[str, Any]) -> MirrorSettings:
    if not isinstance(data, Mapping):
        raise ConfigurationError("'mirror' must be provided as a mapping when specified")

    backend = str(data.get("backend", "rsync")).strip().lower()
    if backend not in BACKENDS:
        raise ConfigurationError(f"'mirror.backend' must be one of {', '.join(BACKENDS)}, got: {backend}")

    rsync_binary = _clean_str(data.get("rsync_binary")) or "rsync"

    return MirrorSettings(
        backend=backend,
        rsync_binary=rsync_binary.strip(),
        extra_args=_ensure_string_list(data.get("extra_args"), field_name="mirror.extra_args"),
        staging_dir=_optional_path(data.get("staging_dir")),
        dry_run=bool(data.get("dry_run", False)),
    )


def _resolve_action(data: Mapping[str, Any]) -> tuple[str, Path | None]:
    printing = bool(data.get("print", False))
    destination = _optional_path(data.get("destination_dir"))
    action = _clean_str(data.get("action"))

    if printing and destination is not None:
        raise ConfigurationError("Choose exactly one action: print or rsync to a destination, not both")
    if printing:
        return ACTION_PRINT, None
    if destination is not None:
        return ACTION_RSYNC, destination
    if action is not None:
        action = action.strip().lower()
        if action == ACTION_PRINT:
            return ACTION_PRINT, None
        if action == ACTION_RSYNC:
            raise ConfigurationError("'destination_dir' is required for the rsync action")
        raise ConfigurationError(f"'action' must be '{ACTION_PRINT}' or '{ACTION_RSYNC}', got: {action}")
    raise ConfigurationError("No action specified: pass --print or --rsync-to DEST")


def build_settings(data: Mapping[str, Any], overrides: Mapping[str, Any] | None = None) -> Settings:
    """Build validated settings from config file data and CLI overrides.

    Overrides whose value is None are ignored so unset CLI flags fall back to
    the config file. Patterns are compiled here so syntax errors surface
    before any filesystem work.
    """
    merged: dict[str, Any] = dict(data)
    mirror_data = data.get("mirror") or {}
    if not isinstance(mirror_data, Mapping):
        raise ConfigurationError("'mirror' must be provided as a mapping when specified")
    mirror_raw: dict[str, Any] = dict(mirror_data)

    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key.startswith("mirror."):
            mirror_raw[key.split(".", 1)[1]] = value
        else:
            merged[key] = value

    # Print on the command line beats a destination from the config file.
    if (overrides or {}).get("print"):
        merged.pop("destination_dir", None)
    elif (overrides or {}).get("destination_dir") is not None:
        merged.pop("print", None)

    source_dir = _optional_path(merged.get("source_dir"))
    if source_dir is None:
        raise ConfigurationError("Source directory is required")
    key = _clean_str(merged.get("key"))
    if key is None:
        raise ConfigurationError("Front matter key is required (--key)")
    value = merged.get("value")
    if value is None:
        raise ConfigurationError("Front matter value pattern is required (--value)")

    action, destination = _resolve_action(merged)

    try:
        workers = int(merged.get("workers", DEFAULT_WORKERS))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError("'workers' must be an integer") from exc
    if workers < 1:
        raise ConfigurationError("'workers' must be greater than or equal to 1")

    settings = Settings(
        source_dir=source_dir,
        key=key.strip(),
        value=str(value),
        action=action,
        destination_dir=destination,
        include_attachment=_clean_str(merged.get("include_attachment")),
        workers=workers,
        follow_links=bool(merged.get("follow_links", False)),
        front_matter_delimiter=str(merged.get("front_matter_delimiter", DEFAULT_DELIMITER)),
        mirror=_build_mirror_settings(mirror_raw),
    )

    settings.tag_query()
    settings.attachment_pattern()
    settings.parser()
    return settings


def load_config(path: Path, overrides: Mapping[str, Any] | None = None) -> Settings:
    try:
        data = load_yaml_file(path)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Unable to load config {path}: {exc}") from exc
    return build_settings(data, overrides)
