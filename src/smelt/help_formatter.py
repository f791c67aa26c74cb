from __future__ import annotations

import argparse
import shutil
from collections.abc import Callable

from rich.console import Console
from rich.text import Text

from .command_help import CommandHelp


class RichHelpFormatter(argparse.HelpFormatter):
    """
    Argparse help formatter that appends rich-styled examples and tips.

    When stdout is not a terminal the standard argparse output is returned
    unchanged, so piped help stays plain text.
    """

    def __init__(
        self,
        prog: str,
        indent_increment: int = 2,
        max_help_position: int = 28,
        width: int | None = None,
        console: Console | None = None,
    ) -> None:
        if width is None:
            width = min(shutil.get_terminal_size().columns, 120)

        super().__init__(
            prog=prog,
            indent_increment=indent_increment,
            max_help_position=max_help_position,
            width=width,
        )

        self.console = console or Console()
        self._examples: list[tuple[str, str]] = []
        self._tips: list[str] = []

    def add_examples(self, examples: list[tuple[str, str]]) -> None:
        self._examples = examples

    def add_tips(self, tips: list[str]) -> None:
        self._tips = tips

    def format_help(self) -> str:
        standard_help = super().format_help()
        if not self.console.is_terminal:
            return standard_help

        parts = [standard_help.rstrip(), ""]
        if self._examples:
            parts.append(self._render_examples())
        if self._tips:
            parts.append(self._render_tips())
        return "\n".join(parts)

    def _render_examples(self) -> str:
        with self.console.capture() as capture:
            self.console.print(Text("Examples:", style="bold bright_cyan"))
            for index, (description, command) in enumerate(self._examples, 1):
                desc_text = Text()
                desc_text.append(f"  {index}. ", style="dim cyan")
                desc_text.append(description, style="bright_white")
                self.console.print(desc_text)
                self.console.print(Text(f"     $ {command}", style="bright_yellow"))
        return capture.get()

    def _render_tips(self) -> str:
        with self.console.capture() as capture:
            self.console.print(Text("Tips:", style="bold bright_cyan"))
            for tip in self._tips:
                tip_text = Text()
                tip_text.append("  * ", style="bright_yellow")
                tip_text.append(tip, style="bright_white")
                self.console.print(tip_text)
        return capture.get()


def formatter_for(help_content: CommandHelp) -> Callable[[str], RichHelpFormatter]:
    """Return an argparse ``formatter_class`` carrying ``help_content``."""

    def factory(prog: str) -> RichHelpFormatter:
        formatter = RichHelpFormatter(prog)
        formatter.add_examples(help_content.examples)
        formatter.add_tips(help_content.tips)
        return formatter

    return factory
