"""Terminal output for lwcli.

Everything a command produces for the user goes through here. Data meant for
pipes (integration tables, ``config show``, raw API bodies) is written to
stdout; status lines, hints, warnings and errors go to stderr,
so ``lwcli integration list --csv > integrations.csv`` stays clean.

Rich rendering is used only when stdout is a terminal and colour has not
been turned off by ``--no-color``, ``NO_COLOR`` or ``TERM=dumb``.

The root callback builds one :class:`OutputManager` and installs it with
:func:`set_output`; commands call the module-level helpers (:func:`info`,
:func:`error`, :func:`print_table`, ...) instead of carrying it around.
"""

from __future__ import annotations

import csv
import io
import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How data written to stdout is rendered.

    ``AUTO`` becomes ``RICH`` on a colour terminal and ``PLAIN`` anywhere
    else. ``CSV`` applies to tables only; other payloads print as plain text.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"
    CSV = "csv"


class OutputManager:
    """Routes command output to stdout or stderr in the selected format.

    Args:
        format: Requested format; ``AUTO`` is resolved at construction time.
        no_color: Never emit colour or Rich markup.
        quiet: Drop informational stderr lines (warnings and errors still print).
        verbose: Show ``debug`` lines.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format != OutputFormat.AUTO:
            self._format = format
        elif _is_tty() and not self._no_color:
            self._format = OutputFormat.RICH
        else:
            self._format = OutputFormat.PLAIN

        rich_stdout = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # --- stdout ---

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def format_response(self, data: Any, content_type: str = "application/json") -> None:
        """Print an API payload (a dict, a list, or a JSON string) to stdout.

        JSON strings are decoded first so every format sees the structure.
        *content_type* is accepted for callers that pass a response's header
        through; bodies are always highlighted as JSON in rich mode.
        """
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                pass

        if self._format == OutputFormat.JSON:
            if isinstance(data, str):
                self.print_data(data)
            else:
                self.print_data(_dump_json(data))
        elif self._format == OutputFormat.RICH:
            if isinstance(data, (dict, list)):
                self._stdout.print(Syntax(_dump_json(data), "json", theme="monokai", word_wrap=True))
            else:
                self._stdout.print(str(data))
        else:
            for line in _plain_lines(data):
                self.print_data(line)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Print *rows* under *headers*.

        JSON gives a list of objects keyed by header, CSV a quoted
        single-line-per-record document, plain a tab-separated listing and
        rich a boxed table carrying *title*.
        """
        if self._format == OutputFormat.JSON:
            self.print_data(_dump_json([dict(zip(headers, row)) for row in rows]))
        elif self._format == OutputFormat.CSV:
            self.print_data(render_csv(headers, rows).rstrip("\n"))
        elif self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
        else:
            table = Table(title=title, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # --- stderr ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diagnostic(message, f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        self._diagnostic(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        self._diagnostic(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def suggest(self, message: str) -> None:
        """Hint at the next command to run, e.g. after writing ``main.tf``."""
        if not self._quiet:
            self._diagnostic(f"→ {message}", f"[dim]→ {message}[/dim]")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diagnostic(f"[debug] {message}", f"[dim]{escape('[debug]')} {message}[/dim]")

    def progress(self, message: str) -> None:
        """Status line for a slow step. Shown only when stdout is a terminal."""
        if not self._quiet and _is_tty():
            self._diagnostic(message, f"[dim]{message}[/dim]")

    def _diagnostic(self, text: str, markup: str) -> None:
        if self._no_color:
            print(text, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)


def render_csv(headers: list[str], rows: list[list[str]]) -> str:
    """Render a table as CSV, one line per record.

    Newlines inside cells are dropped rather than quoted so each record stays
    on a single line.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    records = [headers, *rows] if headers else rows
    for record in records:
        writer.writerow([cell.replace("\n", "") for cell in record])
    return buffer.getvalue()


def _dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    # NO_COLOR disables colour whatever its value, even empty.
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; used between tests."""
    global _output
    _output = None


def format_response(data: Any, content_type: str = "application/json") -> None:
    get_output().format_response(data, content_type)


def print_data(text: str) -> None:
    get_output().print_data(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)


def progress(message: str) -> None:
    get_output().progress(message)
