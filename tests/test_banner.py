from __future__ import annotations

from io import StringIO
from pathlib import Path

from rich.console import Console

from smelt.banner import BannerInfo, build_banner_info, print_startup_banner
from smelt.config import build_settings


def _render(info: BannerInfo) -> str:
    output = StringIO()
    console = Console(file=output, force_terminal=False, width=120)
    print_startup_banner(info, console)
    return output.getvalue()


def _info(**overrides) -> BannerInfo:
    values = dict(
        version="1.2.3",
        dry_run=False,
        verbose=False,
        source_dir="/notes",
        destination_dir="/site",
        key="publish_to",
        value="^blog$",
        attachment_pattern=None,
        backend="rsync",
        workers=4,
    )
    values.update(overrides)
    return BannerInfo(**values)


def test_build_banner_info_from_settings() -> None:
    settings = build_settings(
        {
            "source_dir": "/notes",
            "key": "publish_to",
            "value": "blog",
            "destination_dir": "/site",
            "include_attachment": "attachment",
            "workers": 3,
            "mirror": {"backend": "local", "dry_run": True},
        }
    )

    info = build_banner_info(settings, verbose=True)

    assert info.source_dir == str(Path("/notes"))
    assert info.destination_dir == str(Path("/site"))
    assert info.attachment_pattern == "attachment"
    assert info.backend == "local"
    assert info.dry_run is True
    assert info.verbose is True
    assert info.workers == 3


def test_banner_shows_run_configuration() -> None:
    rendered = _render(_info())

    assert "SMELT" in rendered
    assert "1.2.3" in rendered
    assert "/notes" in rendered
    assert "/site" in rendered
    assert "publish_to ~ /^blog$/" in rendered
    assert "disabled" in rendered
    assert "DRY-RUN" not in rendered


def test_banner_shows_modes() -> None:
    rendered = _render(_info(dry_run=True, verbose=True, attachment_pattern="/attachment$"))

    assert "DRY-RUN" in rendered
    assert "VERBOSE" in rendered
    assert "/attachment$/" in rendered


def test_banner_escapes_markup_in_patterns() -> None:
    """Square brackets in a regex must not be swallowed as rich markup."""
    rendered = _render(_info(value="[bold]x"))
    assert "[bold]x" in rendered
