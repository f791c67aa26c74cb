from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence, TextIO

from rich.console import Console

from .banner import build_banner_info, print_startup_banner
from .command_help import SMELT_COMMAND_HELP
from .config import ACTION_PRINT, BACKENDS, Settings, build_settings, load_config
from .errors import ConfigurationError, MirrorError, MirrorExecutionError, PathEscapesBaseError
from .help_formatter import formatter_for
from .logging_utils import configure_logging, render_fields_block
from .mirror import mirror
from .models import Selection
from .run_summary import log_mirror_summary
from .selection import select
from .utils import env_bool, env_path
from .version import __version__

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smelt",
        description=(
            "Find markdown files whose YAML front matter carries a tag, "
            "then print them or rsync exactly that selection to a destination."
        ),
        formatter_class=formatter_for(SMELT_COMMAND_HELP),
    )
    parser.add_argument("source_dir", nargs="?", type=Path, metavar="SRC", help="Source directory")
    parser.add_argument("-k", "--key", help="Front matter key to look up")
    parser.add_argument(
        "-v",
        "--value",
        help="Regular expression searched for in the key's value (anchor it for an exact match)",
    )
    parser.add_argument(
        "-i",
        "--include-attachment",
        metavar="ATTACHMENT_DIR",
        help="Also select every file beneath directories whose path matches this regular expression",
    )

    action = parser.add_mutually_exclusive_group()
    action.add_argument("-p", "--print", action="store_true", default=None, help="Print selected file paths")
    action.add_argument(
        "-r",
        "--rsync-to",
        dest="destination_dir",
        type=Path,
        metavar="DEST",
        help="Mirror the selection into DEST, deleting anything no longer selected",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=env_path("SMELT_CONFIG"),
        help="YAML config file providing defaults (env: SMELT_CONFIG)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Report what a sync would change without touching the destination (env: SMELT_DRY_RUN)",
    )
    parser.add_argument("--backend", choices=BACKENDS, help="Mirror backend (default: rsync)")
    parser.add_argument("--rsync-binary", help="rsync executable to run")
    parser.add_argument(
        "--staging-dir",
        type=Path,
        help="Parent directory for the hard-linked staging view; must share a filesystem with SRC",
    )
    parser.add_argument("--workers", type=int, help="Threads used for front matter checks")
    parser.add_argument(
        "--follow-links",
        action="store_true",
        default=None,
        help="Follow symbolic links while walking SRC",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-level", choices=LOG_LEVELS, help="Log level (default: INFO)")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    dry_run = args.dry_run if args.dry_run is not None else env_bool("SMELT_DRY_RUN")
    return {
        "source_dir": args.source_dir,
        "key": args.key,
        "value": args.value,
        "include_attachment": args.include_attachment,
        "print": args.print,
        "destination_dir": args.destination_dir,
        "workers": args.workers,
        "follow_links": args.follow_links,
        "mirror.backend": args.backend,
        "mirror.rsync_binary": args.rsync_binary,
        "mirror.staging_dir": args.staging_dir,
        "mirror.dry_run": dry_run,
    }


def load_settings(args: argparse.Namespace) -> Settings:
    overrides = _overrides_from_args(args)
    if args.config is not None:
        settings = load_config(args.config, overrides)
    else:
        settings = build_settings({}, overrides)

    if not settings.source_dir.is_dir():
        raise ConfigurationError(f"Source directory does not exist: {settings.source_dir}")

    # Leftover links from an interrupted run would otherwise be selected again.
    staging_dir = settings.mirror.staging_dir
    if staging_dir is not None:
        source = settings.source_dir.resolve()
        staging = staging_dir.resolve()
        if staging == source or source in staging.parents:
            raise ConfigurationError(
                f"Staging directory {staging_dir} must not be inside source directory {settings.source_dir}"
            )
    return settings


def _resolve_log_level(args: argparse.Namespace) -> int:
    if args.verbose:
        return logging.DEBUG
    if args.log_level:
        return getattr(logging, args.log_level)
    return logging.INFO


def print_selection(selection: Selection, stream: TextIO) -> None:
    for path in selection:
        stream.write(f"{path}\n")
    stream.flush()


def _mirror_failure_fields(settings: Settings, exc: MirrorError) -> dict[str, object]:
    fields: dict[str, object] = {
        "Source": settings.source_dir,
        "Destination": settings.destination_dir,
        "Key": settings.key,
        "Pattern": settings.value,
        "Error": exc,
    }
    if isinstance(exc, PathEscapesBaseError):
        fields["Path"] = exc.path
    if isinstance(exc, MirrorExecutionError):
        if exc.command:
            fields["Command"] = " ".join(exc.command)
        if exc.returncode is not None:
            fields["Exit Code"] = exc.returncode
        if exc.stderr:
            fields["Stderr"] = exc.stderr
    return fields


def run(args: argparse.Namespace, *, stdout: TextIO | None = None) -> int:
    configure_logging(_resolve_log_level(args), log_file=args.log_file)

    try:
        settings = load_settings(args)
        query = settings.tag_query()
        attachment_pattern = settings.attachment_pattern()
        parser = settings.parser()
    except ConfigurationError as exc:
        LOGGER.error(render_fields_block("Configuration Error", {"Error": exc}, pad_top=False))
        return EXIT_CONFIG_ERROR

    if settings.action != ACTION_PRINT:
        print_startup_banner(build_banner_info(settings, verbose=args.verbose), Console(stderr=True))

    selection = select(
        settings.source_dir,
        query,
        attachment_pattern,
        parser=parser,
        workers=settings.workers,
        follow_links=settings.follow_links,
    )

    if settings.action == ACTION_PRINT:
        print_selection(selection, stdout or sys.stdout)
        return EXIT_OK

    try:
        result = mirror(
            settings.source_dir,
            selection,
            settings.destination_dir,
            backend=settings.mirror.build_backend(),
            staging_dir=settings.mirror.staging_dir,
        )
    except MirrorError as exc:
        LOGGER.error(render_fields_block("Mirror Failed", _mirror_failure_fields(settings, exc)))
        return EXIT_FAILURE

    log_mirror_summary(selection, result, verbose=args.verbose)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
