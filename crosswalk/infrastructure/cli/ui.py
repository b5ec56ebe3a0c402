"""Presentation helpers for the CLI."""

from collections.abc import Callable
from datetime import datetime
import functools

from rich.console import Console
from rich.markup import escape
from rich.table import Table
import typer

from crosswalk.config import get_logger
from crosswalk.infrastructure.persistence.repositories import CacheStats

console = Console()
logger = get_logger(__name__)


def command_error_handler[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Log a failing command with its traceback and exit with code 1.

    ``typer.Exit`` and ``typer.Abort`` pass through untouched.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise
            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(
                    f"\n[bold red]✗ Error during {operation}:[/bold red] {escape(str(e))}"
                )
                raise typer.Exit(code=1) from e

    return wrapper


def _format_timestamp(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S UTC") if value else "-"


def display_cache_stats(stats: CacheStats) -> None:
    table = Table(title="Match Cache", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Entries", str(stats.total_entries))
    table.add_row("Oldest entry", _format_timestamp(stats.oldest_entry))
    table.add_row("Newest entry", _format_timestamp(stats.newest_entry))

    console.print(table)
