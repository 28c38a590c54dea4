"""
CLI UX utilities built on rich and questionary.

Environment handling:
- Automatically detects TTY vs pipe/CI
- Respects NO_COLOR and FORCE_COLOR environment variables
"""

from __future__ import annotations

import os
import sys

import questionary
from questionary import Style as QStyle
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from sandboxer.pipeline.run import DeploymentRun, StageRecord, format_elapsed

# Nord color palette (https://www.nordtheme.com/)
SANDBOXER_THEME = Theme(
    {
        "info": "#88C0D0",
        "success": "#A3BE8C",
        "warning": "#EBCB8B",
        "error": "#BF616A bold",
        "highlight": "#B48EAD",
        "muted": "#D8DEE9",
    }
)


def _is_interactive() -> bool:
    """Check if we're in an interactive terminal environment."""
    ci_vars = ["CI", "GITHUB_ACTIONS", "JENKINS_URL", "GITLAB_CI", "CIRCLECI", "TRAVIS"]
    if any(os.environ.get(var) for var in ci_vars):
        return False
    return sys.stdout.isatty()


console = Console(
    theme=SANDBOXER_THEME,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)

PROMPT_STYLE = QStyle(
    [
        ("qmark", "fg:#88C0D0 bold"),
        ("question", "bold"),
        ("answer", "fg:#A3BE8C"),
    ]
)


# === Output Formatting ===


def success(message: str) -> None:
    console.print(f"[success]✓ {message}[/success]")


def error(message: str) -> None:
    console.print(f"[error]✗ {message}[/error]")


def warning(message: str) -> None:
    console.print(f"[warning]⚠ {message}[/warning]")


def info(message: str) -> None:
    console.print(f"[info]ℹ {message}[/info]")


def header(title: str) -> None:
    """Print a section header."""
    console.print()
    console.print(Panel(f"[bold]{title}[/bold]", border_style="cyan"))


def print_table(title: str, columns: list[str], rows: list[list[str]]) -> None:
    """Print a formatted table."""
    table = Table(title=title)
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*row)
    console.print(table)


def stage_done(record: StageRecord) -> None:
    """Report a finished stage, with its elapsed time when non-zero."""
    elapsed = format_elapsed(record.elapsed)
    suffix = f" [muted]{elapsed}[/muted]" if elapsed else ""
    console.print(f"[success]✓[/success] {record.title}{suffix}")


def show_run(run: DeploymentRun) -> None:
    """Summarize a completed run: per-stage timing and the log location."""
    rows = [[record.title, format_elapsed(record.elapsed)] for record in run.stages]
    print_table(f"{run.kind} finished", ["Stage", "Elapsed"], rows)
    info(f"Log: {run.log_path}")


# === Interactive Prompts ===


def confirm(message: str, default: bool = False) -> bool:
    """Ask for yes/no confirmation."""
    if not _is_interactive():
        return False
    return questionary.confirm(message, default=default, style=PROMPT_STYLE).ask() or False
