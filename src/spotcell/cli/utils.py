"""Shared CLI utilities — Rich console, error handling, output checks."""

from __future__ import annotations

import functools
import logging
import traceback
from pathlib import Path
from typing import Any, Callable

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

console = Console()

# Set by the --verbose flag on the top-level CLI group.
verbose: bool = False


def configure_logging(verbose_logging: bool) -> None:
    """Route library logging through Rich; DEBUG with --verbose, else WARNING."""
    logging.basicConfig(
        level=logging.DEBUG if verbose_logging else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def error_handler(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator wrapping CLI commands with standard error handling.

    Catches SpotCellError (exit 1) and unexpected exceptions (exit 2).
    With --verbose, unexpected errors include the full traceback.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        from spotcell.core.exceptions import SpotCellError

        try:
            return func(*args, **kwargs)
        except SystemExit:
            raise
        except SpotCellError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise SystemExit(1)
        except Exception as e:
            if verbose:
                console.print(f"[red]Internal error:[/red] {e}")
                console.print(traceback.format_exc())
            else:
                console.print(
                    f"[red]Internal error:[/red] {type(e).__name__}: {e}\n"
                    "[dim]Use --verbose for the full traceback.[/dim]"
                )
            raise SystemExit(2)

    return wrapper


def check_output_file(path: Path, overwrite: bool) -> None:
    """Exit with code 1 if ``path`` is a directory, has no parent, or exists without --overwrite."""
    if path.is_dir():
        console.print(f"[red]Error:[/red] Output path is a directory: {path}")
        raise SystemExit(1)
    if not path.parent.exists():
        console.print(f"[red]Error:[/red] Parent directory does not exist: {path.parent}")
        raise SystemExit(1)
    if path.exists() and not overwrite:
        console.print(
            f"[red]Error:[/red] Output file already exists: {path}\n"
            "Use --overwrite to replace it."
        )
        raise SystemExit(1)


def make_progress() -> Progress:
    """Create a Rich progress bar for CLI operations."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    )
