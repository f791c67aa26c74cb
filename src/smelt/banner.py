from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import Settings
from .version import __version__


@dataclass
class BannerInfo:
    version: str
    dry_run: bool
    verbose: bool
    source_dir: str
    destination_dir: str
    key: str
    value: str
    attachment_pattern: str | None
    backend: str
    workers: int


def build_banner_info(settings: Settings, verbose: bool = False) -> BannerInfo:
    """Build a BannerInfo instance from settings and runtime flags."""
    return BannerInfo(
        version=__version__,
        dry_run=settings.mirror.dry_run,
        verbose=verbose,
        source_dir=str(settings.source_dir),
        destination_dir=str(settings.destination_dir) if settings.destination_dir else "(none)",
        key=settings.key,
        value=settings.value,
        attachment_pattern=settings.include_attachment,
        backend=settings.mirror.backend,
        workers=settings.workers,
    )


def print_startup_banner(info: BannerInfo, console: Console) -> None:
    """Print a styled startup banner showing version and run configuration."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="cyan bold", no_wrap=True)
    table.add_column("Value", style="white")

    table.add_row("Version", f"[bold]{info.version}[/bold]")

    mode_parts = []
    if info.dry_run:
        mode_parts.append("[yellow]DRY-RUN[/yellow]")
    if info.verbose:
        mode_parts.append("[cyan]VERBOSE[/cyan]")
    if mode_parts:
        table.add_row("Mode", " ".join(mode_parts))

    table.add_row("Source", escape(info.source_dir))
    table.add_row("Destination", escape(info.destination_dir))
    table.add_row("Tag", escape(f"{info.key} ~ /{info.value}/"))
    table.add_row("Attachments", escape(f"/{info.attachment_pattern}/") if info.attachment_pattern else "[dim]disabled[/dim]")
    table.add_row("Backend", info.backend)
    table.add_row("Workers", str(info.workers))

    panel = Panel(
        table,
        title="[bold white]SMELT[/bold white]",
        border_style="blue",
        padding=(1, 2),
    )

    console.print()
    console.print(panel)
    console.print()
