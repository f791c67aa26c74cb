"""Selective mirroring of a sparse file selection into a destination tree.

Tree mirroring tools only know how to make one directory equal to another.
To mirror an arbitrary subset, the selected files are first hard linked into
a private staging directory at their paths relative to the base directory,
and the staging directory is then mirrored onto the destination with
delete semantics. The staging directory is removed on every exit path;
removing a hard link never touches the original file.
"""

from __future__ import annotations

import dataclasses
import errno
import filecmp
import logging
import os
import re
import shlex
import shutil
import stat
import subprocess
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from .errors import MirrorExecutionError, PathEscapesBaseError, StagingError
from .logging_utils import render_fields_block
from .models import MirrorResult
from .utils import ensure_directory, with_trailing_separator

LOGGER = logging.getLogger(__name__)

STAGING_PREFIX = "smelt-"

# rsync --itemize-changes: "YXcstpoguax path", Y = update type, X = file type
_ITEMIZED_LINE = re.compile(r"^(?P<update>[<>ch.*])(?P<kind>[fdLDS])(?P<flags>\S{7,9}) (?P<path>.+)$")
_DELETING_PREFIX = "*deleting"


class MirrorBackend(Protocol):
    """Makes ``destination`` equal to the contents of ``source``, deleting extras."""

    dry_run: bool

    def sync(self, source: str, destination: Path) -> MirrorResult: ...


class StagingView:
    """Temporary tree of hard links mirroring the layout of ``base_dir``.

    Use as a context manager; the directory and every link in it are removed
    on exit.
    """

    def __init__(self, base_dir: Path, *, parent: Path | None = None) -> None:
        self.base_dir = Path(os.path.abspath(base_dir))
        self.parent = parent
        self.root: Path | None = None
        self.staged = 0
        self.duplicates = 0

    def __enter__(self) -> StagingView:
        try:
            if self.parent is not None:
                ensure_directory(self.parent)
            self.root = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.parent))
        except OSError as exc:
            raise StagingError(f"Unable to create staging directory: {exc}", self.parent) from exc
        LOGGER.debug("Created staging directory %s", self.root)
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        if self.root is None:
            return
        root, self.root = self.root, None
        try:
            shutil.rmtree(root)
        except OSError as exc:
            LOGGER.error(
                render_fields_block(
                    "Staging Cleanup Failed",
                    {"Staging": root, "Error": exc},
                    pad_top=False,
                )
            )
            return
        LOGGER.debug("Removed staging directory %s", root)

    @property
    def source(self) -> str:
        """The staging root with a trailing separator, as handed to the mirror backend."""
        if self.root is None:
            raise StagingError("Staging view is not open")
        return with_trailing_separator(self.root)

    def copy_directory_attributes(self) -> None:
        """Give every staged directory, the root included, the mode and mtime of its source.

        Owner permissions are always kept so the view can still be removed.
        """
        if self.root is None:
            raise StagingError("Staging view is not open")

        for current, _, _ in os.walk(self.root, topdown=False):
            staged = Path(current)
            source = self.base_dir / staged.relative_to(self.root)
            try:
                source_stat = source.stat()
                os.chmod(staged, stat.S_IMODE(source_stat.st_mode) | stat.S_IRWXU)
                os.utime(staged, ns=(source_stat.st_atime_ns, source_stat.st_mtime_ns))
            except OSError as exc:
                raise StagingError(f"Unable to copy attributes of {source} to {staged}: {exc}", staged) from exc

    def relative_path(self, path: Path) -> Path:
        """Return ``path`` relative to the base directory.

        Raises:
            PathEscapesBaseError: ``path`` is not inside the base directory.
        """
        absolute = Path(os.path.abspath(path))
        try:
            relative = absolute.relative_to(self.base_dir)
        except ValueError as exc:
            raise PathEscapesBaseError(Path(path), self.base_dir) from exc
        if not relative.parts:
            raise PathEscapesBaseError(Path(path), self.base_dir)
        return relative

    def add(self, path: Path) -> bool:
        """Hard link ``path`` into the view. Returns False for a duplicate."""
        if self.root is None:
            raise StagingError("Staging view is not open", path)

        target = self.root / self.relative_path(path)
        try:
            ensure_directory(target.parent)
        except OSError as exc:
            raise StagingError(f"Unable to create staging directory {target.parent}: {exc}", target.parent) from exc

        if target.exists() or target.is_symlink():
            LOGGER.warning("File %s already staged, skipping duplicate", target)
            self.duplicates += 1
            return False

        try:
            os.link(path, target)
        except OSError as exc:
            hint = ""
            if exc.errno == errno.EXDEV:
                hint = " (set a staging directory on the same filesystem as the source)"
            raise StagingError(f"Unable to hard link {path} to {target}: {exc}{hint}", Path(path)) from exc

        self.staged += 1
        return True


def parse_itemized_changes(output: str) -> tuple[list[str], list[str], list[str]]:
    """Split rsync ``--itemize-changes`` output into added, updated and removed paths.

    Only regular files count as added or updated; deletions are reported as
    printed, directories keeping their trailing slash.
    """
    added: list[str] = []
    updated: list[str] = []
    removed: list[str] = []

    for line in output.splitlines():
        if line.startswith(_DELETING_PREFIX):
            path = line[len(_DELETING_PREFIX):].strip()
            if path:
                removed.append(path)
            continue

        match = _ITEMIZED_LINE.match(line)
        if not match or match.group("kind") != "f":
            continue
        flags = match.group("flags")
        if set(flags) == {"+"}:
            added.append(match.group("path"))
        elif match.group("update") in "<>c":
            updated.append(match.group("path"))

    return added, updated, removed


@dataclass
class RsyncMirror:
    """Mirror backend that shells out to ``rsync --archive --delete``."""

    binary: str = "rsync"
    extra_args: Sequence[str] = field(default_factory=tuple)
    dry_run: bool = False

    def build_command(self, source: str, destination: Path) -> list[str]:
        command = [self.binary, "--archive", "--delete", "--itemize-changes"]
        if self.dry_run:
            command.append("--dry-run")
        command.extend(self.extra_args)
        command.extend([source, str(destination)])
        return command

    def sync(self, source: str, destination: Path) -> MirrorResult:
        command = self.build_command(source, destination)
        LOGGER.debug("Running %s", shlex.join(command))

        if not self.dry_run:
            try:
                ensure_directory(destination)
            except OSError as exc:
                raise MirrorExecutionError(f"Unable to create destination {destination}: {exc}", command) from exc

        try:
            completed = subprocess.run(command, capture_output=True, text=True, check=False)
        except OSError as exc:
            raise MirrorExecutionError(f"Unable to run {self.binary}: {exc}", command) from exc

        if completed.returncode != 0:
            raise MirrorExecutionError(
                f"{self.binary} exited with status {completed.returncode}",
                command,
                returncode=completed.returncode,
                stderr=completed.stderr.strip(),
            )

        added, updated, removed = parse_itemized_changes(completed.stdout)
        return MirrorResult(
            added=tuple(added),
            updated=tuple(updated),
            removed=tuple(removed),
            dry_run=self.dry_run,
        )


@dataclass
class LocalMirror:
    """In-process mirror backend with the same contract as ``RsyncMirror``.

    New files and files whose bytes differ are copied with ``shutil.copy2``;
    byte-identical files are left alone; destination entries missing from
    the source are removed.
    """

    dry_run: bool = False

    def sync(self, source: str, destination: Path) -> MirrorResult:
        source_root = Path(source)
        try:
            files, dirs = self._scan(source_root)
            removed = self._remove_extraneous(destination, files, dirs)
            added, updated = self._copy_changed(source_root, destination, files, dirs)
        except OSError as exc:
            raise MirrorExecutionError(f"Local mirror into {destination} failed: {exc}") from exc

        return MirrorResult(
            added=tuple(added),
            updated=tuple(updated),
            removed=tuple(removed),
            dry_run=self.dry_run,
        )

    @staticmethod
    def _scan(source_root: Path) -> tuple[set[Path], set[Path]]:
        files: set[Path] = set()
        dirs: set[Path] = set()
        for current, dirnames, filenames in os.walk(source_root):
            current_path = Path(current)
            dirs.update((current_path / name).relative_to(source_root) for name in dirnames)
            files.update((current_path / name).relative_to(source_root) for name in filenames)
        return files, dirs

    def _remove_extraneous(self, destination: Path, files: set[Path], dirs: set[Path]) -> list[str]:
        removed: list[str] = []
        if not destination.is_dir():
            return removed

        for current, dirnames, filenames in os.walk(destination, topdown=False):
            current_path = Path(current)
            for name in filenames:
                path = current_path / name
                relative = path.relative_to(destination)
                if relative in files:
                    continue
                removed.append(relative.as_posix())
                if not self.dry_run:
                    path.unlink()
            for name in dirnames:
                path = current_path / name
                relative = path.relative_to(destination)
                if path.is_symlink():
                    if relative not in files:
                        removed.append(relative.as_posix())
                        if not self.dry_run:
                            path.unlink()
                    continue
                if relative in dirs:
                    continue
                removed.append(f"{relative.as_posix()}/")
                if not self.dry_run:
                    path.rmdir()

        return removed

    def _copy_changed(
        self,
        source_root: Path,
        destination: Path,
        files: Iterable[Path],
        dirs: Iterable[Path],
    ) -> tuple[list[str], list[str]]:
        added: list[str] = []
        updated: list[str] = []

        if not self.dry_run:
            ensure_directory(destination)
            for relative in sorted(dirs):
                ensure_directory(destination / relative)

        for relative in sorted(files):
            source = source_root / relative
            target = destination / relative
            if target.is_symlink():
                updated_entry = True
            elif target.is_file():
                if filecmp.cmp(source, target, shallow=False):
                    continue
                updated_entry = True
            else:
                updated_entry = False

            (updated if updated_entry else added).append(relative.as_posix())
            if self.dry_run:
                continue
            if target.is_symlink():
                target.unlink()
            shutil.copy2(source, target)

        return added, updated


def mirror(
    base_dir: Path,
    selection: Iterable[Path],
    dest_dir: Path,
    *,
    backend: MirrorBackend | None = None,
    staging_dir: Path | None = None,
) -> MirrorResult:
    """Make ``dest_dir`` contain exactly the selected files, by relative path.

    Raises:
        PathEscapesBaseError: a selected path is outside ``base_dir``; the
            destination is left untouched.
        StagingError: the staging view could not be built.
        MirrorExecutionError: the mirror backend failed.
    """
    backend = backend if backend is not None else RsyncMirror()

    with StagingView(base_dir, parent=staging_dir) as staging:
        for path in selection:
            staging.add(path)

        if staging.staged == 0:
            LOGGER.warning("Nothing selected; every entry in %s will be removed", dest_dir)

        staging.copy_directory_attributes()

        LOGGER.info(
            render_fields_block(
                "Mirroring Selection",
                {
                    "Source": staging.base_dir,
                    "Destination": dest_dir,
                    "Staged Files": staging.staged,
                    "Duplicates": staging.duplicates,
                    "Backend": type(backend).__name__,
                    "Dry Run": backend.dry_run,
                },
            )
        )

        result = backend.sync(staging.source, dest_dir)

    return dataclasses.replace(result, staged=staging.staged, duplicates=staging.duplicates)
