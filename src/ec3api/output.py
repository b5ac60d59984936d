"""Terminal output for the ``ec3`` CLI and diagnostics for the library.

Data and diagnostics never share a stream.  Material tables, category
trees, JSON and compiled queries are written to stdout (or to the ``-o``
file) so they can be piped.  Retry notices, cache hits and misses,
warnings and errors are written to stderr.

Library modules do not print directly.  They call :func:`get_output`, so
an application embedding :mod:`ec3api` controls verbosity by installing
its own :class:`OutputManager` with :func:`set_output`.

Rich styling is used only when stdout is a terminal.  ``NO_COLOR``,
``TERM=dumb`` and ``--no-color`` switch it off.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from ec3api.models import CategoryTree


class OutputFormat(str, Enum):
    """How stdout data is rendered.  ``AUTO`` picks ``RICH`` on a colour terminal."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Renders results to stdout and diagnostics to stderr.

    Args:
        format: Rendering for materials, trees and tables.  ``AUTO`` is
            resolved once, here.
        no_color: Never emit ANSI styling, on either stream.
        quiet: Drop :meth:`info` and :meth:`success` messages.
        verbose: Show :meth:`debug` messages.
        output_file: Append data to this file instead of stdout.  Rich
            styling is never written to a file.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        self._format = format
        if format == OutputFormat.AUTO:
            colour_tty = _is_tty() and not self._no_color
            self._format = OutputFormat.RICH if colour_tty else OutputFormat.PLAIN

        rich = self._format == OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        """The resolved output format."""
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def _styled(self) -> bool:
        return self._format == OutputFormat.RICH and not self._output_file

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Write *text* as one line of data."""
        line = text if text.endswith("\n") else text + "\n"
        if self._output_file:
            with open(self._output_file, "a", encoding="utf-8") as f:
                f.write(line)
            return
        sys.stdout.write(line)
        sys.stdout.flush()

    def print_json(self, data: Any) -> None:
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._styled:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self.print_data(text)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Render *rows* as a rich table, JSON objects keyed by *headers*, or TSV."""
        if self._format == OutputFormat.JSON:
            self.print_json([dict(zip(headers, row)) for row in rows])
            return
        if not self._styled:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def print_tree(self, root: CategoryTree) -> None:
        """Print a category taxonomy.

        * **Rich mode** -- a :class:`~rich.tree.Tree` labelled with name
          and declared unit.
        * **JSON mode** -- the nested model dump.
        * **Plain mode** -- one ``name<TAB>id<TAB>unit`` line per node,
          indented two spaces per level.
        """
        if self._format == OutputFormat.JSON:
            self.print_json(root.model_dump(mode="json"))
        elif not self._styled:
            self._print_plain_tree(root, depth=0)
        else:
            tree = Tree(f"[bold]{root.name}[/bold]")
            self._add_rich_branches(tree, root)
            self._stdout.print(tree)

    def _print_plain_tree(self, node: CategoryTree, depth: int) -> None:
        self.print_data(f"{'  ' * depth}{node.name}\t{node.id}\t{node.declared_unit}")
        for child in node.children:
            self._print_plain_tree(child, depth + 1)

    def _add_rich_branches(self, branch: Tree, node: CategoryTree) -> None:
        for child in node.children:
            label = f"{child.name} [dim]({child.declared_unit})[/dim]"
            self._add_rich_branches(branch.add(label), child)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def _emit(self, message: str, label: str = "", style: str = "") -> None:
        """Write one diagnostic line to stderr, styled unless colour is off."""
        if self._no_color:
            sys.stderr.write(f"{label}{message}\n")
            sys.stderr.flush()
        elif style:
            head = f"[{style}]{escape(label)}[/{style}]" if label else ""
            body = message if label else f"[{style}]{message}[/{style}]"
            self._stderr.print(head + body)
        else:
            self._stderr.print(message)

    def info(self, message: str) -> None:
        """Progress note; hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(message)

    def success(self, message: str) -> None:
        """Completion note in green; hidden by ``--quiet``."""
        if not self._quiet:
            self._emit(message, style="green")

    def warning(self, message: str) -> None:
        """Retries, cache write failures and the like.  Shown even when quiet."""
        self._emit(message, label="Warning: ", style="yellow")

    def error(self, message: str) -> None:
        self._emit(message, label="Error: ", style="bold red")

    def debug(self, message: str) -> None:
        """Cache hits/misses and request details; needs ``--verbose``."""
        if self._verbose:
            self._emit(message, label="[debug] ", style="dim")


def _is_tty() -> bool:
    """True when stdout is an interactive terminal."""
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    return os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global output instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager`."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None`` (used by tests)."""
    global _output
    _output = None


def info(message: str) -> None:
    """Print an informational message via the global manager."""
    get_output().info(message)


def success(message: str) -> None:
    """Print a success message via the global manager."""
    get_output().success(message)


def warning(message: str) -> None:
    """Print a warning via the global manager."""
    get_output().warning(message)


def error(message: str) -> None:
    """Print an error via the global manager."""
    get_output().error(message)


def debug(message: str) -> None:
    """Print a debug message via the global manager."""
    get_output().debug(message)
