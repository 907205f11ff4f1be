"""Console output for seqera-batch commands.

Thin wrapper around :mod:`rich`.  All user-facing status lines flow
through here; modules keep ``logger.*`` calls for diagnostics.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from seqera_batch.config.validation import ValidationIssue

# Shared console; force_terminal=None lets Rich detect the TTY.
console = Console(stderr=False, force_terminal=None)
# Errors from commands whose stdout is the payload.
err_console = Console(stderr=True, force_terminal=None)

_PASS = "[bold green]✓[/]"
_FAIL = "[bold red]✗[/]"
_ARROW = "[bold cyan]›[/]"


def phase(title: str) -> None:
    """Bold section header (e.g. ``VALIDATE``, ``COMPILE``)."""
    console.print()
    console.print(f"[bold blue]── {title} ──[/]")


def ok(msg: str) -> None:
    console.print(f"  {_PASS} {msg}")


def fail(msg: str, *, stderr: bool = False) -> None:
    (err_console if stderr else console).print(f"  {_FAIL} [red]{msg}[/]")


def step(msg: str) -> None:
    console.print(f"  {_ARROW} {msg}")


def detail(key: str, value: str) -> None:
    """Key-value pair, indented."""
    console.print(f"    [bold]{key}[/]: {value}")


def validation_issues(issues: Iterable[ValidationIssue], *, stderr: bool = False) -> None:
    """One red line per issue, field name first."""
    for issue in issues:
        fail(f"{issue.field}: {issue.reason}", stderr=stderr)


def artifacts_table(written: Mapping[str, Path]) -> None:
    """Table of artifact key → path."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Artifact")
    table.add_column("Path")
    for key in sorted(written):
        table.add_row(key, str(written[key]))
    console.print(table)


def error_panel(title: str, body: str) -> None:
    """Red-bordered error panel."""
    console.print()
    console.print(
        Panel(
            body,
            title=f"[bold red]{title}[/]",
            border_style="red",
            padding=(1, 2),
        )
    )
