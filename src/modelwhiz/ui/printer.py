"""Printer: centralizes console output for ModelWhiz views.

- Provides output sections that automatically insert a trailing blank line.
- Provides a live status line for long-running waits (evaluation polling).
- Delegates actual rendering to rich.console.Console, but keeps formatting
  decisions out of CLI business logic.
"""

from contextlib import contextmanager, suppress

from rich.console import Console
from rich.status import Status


class Printer:
    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._section_started = False

    @contextmanager
    def section(self, color: str = "cyan", shape: str = "⏺", add_dot: bool = True):
        """Context manager for a block of output with a dot prefix on its
        first line and a blank line after it.

        Args:
            color: Color for the dot prefix
            shape: Glyph used as the prefix
            add_dot: Whether to add a dot prefix
        """
        self._section_started = False

        class SectionPrinter:
            def __init__(self, printer, color, shape, add_dot):
                self.printer = printer
                self.color = color
                self.shape = shape
                self.add_dot = add_dot

            def print(self, *args, **kwargs):
                # Rich renderables (tables, panels) draw their own structure
                is_rich_object = args and hasattr(args[0], "__rich_console__")

                if (
                    not self.printer._section_started
                    and self.add_dot
                    and not is_rich_object
                    and args
                ):
                    first, *rest = str(args[0]).split("\n", 1)
                    text = f"[{self.color}]{self.shape}[/{self.color}] {first}"
                    if rest:
                        text += "\n" + rest[0]
                    self.printer.console.print(text, *args[1:], **kwargs)
                else:
                    self.printer.console.print(*args, **kwargs)
                self.printer._section_started = True

        try:
            yield SectionPrinter(self, color, shape, add_dot)
        finally:
            with suppress(Exception):
                self.add_separator()

    @contextmanager
    def status(self, message: str, spinner: str = "dots"):
        """Show a spinner with a message that can be updated while waiting."""
        status = Status(message, console=self.console, spinner=spinner)
        status.start()
        try:
            yield status
        finally:
            status.stop()

    def print(self, *args, **kwargs) -> None:
        """Direct print passthrough to the underlying console.

        Use this for simple output that doesn't need section management.
        For organized output with dots and separation, use section().
        """
        self.console.print(*args, **kwargs)

    def add_separator(self) -> None:
        self.console.print("")

    def show_message(self, message: str, style: str | None = None) -> None:
        """Show a one-line notification outside any section.

        Args:
            message: The message to display
            style: Optional Rich style
        """
        if style:
            self.console.print(message, style=style)
        else:
            self.console.print(message)
