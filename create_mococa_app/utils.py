"""Shared helpers: console output, name normalisation and subprocess calls.

All user-facing output goes through the module-level Rich ``console`` so that
tests can capture or silence it in one place.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 600,
) -> tuple[int, str, str]:
    """Run a command asynchronously and capture its output.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timed-out command returns
        ``-1`` with an explanatory stderr string.

    Raises:
        FileNotFoundError: If the program itself cannot be found.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=str(cwd) if cwd else None,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def normalize_project_name(name: str) -> str:
    """Convert an arbitrary project name to a lowercase, hyphenated slug.

    Runs of anything other than ``[a-z0-9]`` collapse to a single hyphen and
    leading/trailing hyphens are stripped.  The result may be empty.

    Examples::

        normalize_project_name("My App!!") -> "my-app"
        normalize_project_name("  __acme__ ") -> "acme"
    """
    result = re.sub(r"[^a-z0-9]+", "-", name.strip().lower())
    return result.strip("-")


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_header(title: str) -> None:
    """Print a full-width rule with the tool title."""
    console.print()
    console.print(Rule(f"[bold bright_blue] {escape(title)} [/bold bright_blue]", style="bright_blue"))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(escape(key), escape(str(value)))

    console.print(table)
    console.print()


def print_step(message: str) -> None:
    """Print an indented progress step."""
    console.print(f"  [cyan]{escape(message)}[/cyan]")


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
