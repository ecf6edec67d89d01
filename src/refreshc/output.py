"""Rich console output utilities for refreshc.

This module provides formatted console output with Rich,
supporting colored success/error messages and respecting the
NO_COLOR environment variable. Messages are printed literally: paths
and compiler text may contain square brackets, which are escaped
rather than parsed as Rich markup.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from pathlib import Path

    from refreshc.container import ShaderContainer

# Rich automatically respects NO_COLOR, but we also support --no-color flag
_force_no_color = os.environ.get("NO_COLOR") is not None


def create_console(no_color: bool = False) -> Console:
    """Create a Rich Console instance with appropriate color settings.

    Args:
        no_color: If True, disable colored output. Also respects NO_COLOR env var.

    Returns:
        Configured Console instance.
    """
    force_terminal = None
    if no_color or _force_no_color:
        force_terminal = False
    return Console(
        force_terminal=force_terminal,
        no_color=no_color or _force_no_color,
        highlight=False,
    )


# Default console instance
console = create_console()


def success(message: str, **kwargs: Any) -> None:
    """Print a success message with green checkmark.

    Args:
        message: The message to display.
        **kwargs: Additional arguments passed to console.print().

    Example:
        >>> success("Wrote blit.frag.refresh")
        ✓ Wrote blit.frag.refresh
    """
    console.print(f"[green]✓[/green] {escape(message)}", **kwargs)


def error(message: str, **kwargs: Any) -> None:
    """Print an error message with red X.

    Args:
        message: The error message to display.
        **kwargs: Additional arguments passed to console.print().
    """
    console.print(f"[red]✗[/red] {escape(message)}", **kwargs)


def info(message: str, **kwargs: Any) -> None:
    """Print an informational message.

    Args:
        message: The message to display.
        **kwargs: Additional arguments passed to console.print().

    Example:
        >>> info("Compiling shaders/blit.frag")
        Compiling shaders/blit.frag
    """
    console.print(escape(message), **kwargs)


def print_container(path: Path, container: ShaderContainer) -> None:
    """Print the records of a shader container as a table.

    Args:
        path: File the container was read from (used as the title).
        container: Parsed container.
    """
    table = Table(title=escape(str(path)), show_header=True, header_style="bold")
    table.add_column("Tag", justify="right", width=3)
    table.add_column("Backend", min_width=8)
    table.add_column("Size", justify="right")

    for record in container.records:
        table.add_row(
            str(int(record.backend)),
            record.backend.label,
            f"{len(record.data)} bytes",
        )

    console.print(table)


def set_no_color(no_color: bool) -> None:
    """Update the global console to enable/disable colors.

    Args:
        no_color: If True, disable colored output.

    Note:
        This updates the module-level console instance.
    """
    global console
    console = create_console(no_color=no_color)
