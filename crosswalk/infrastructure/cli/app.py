"""crosswalk CLI - main application entry point."""

from typing import Annotated

import typer

from crosswalk import __version__
from crosswalk.config import get_logger, log_startup_info, setup_loguru_logger
from crosswalk.infrastructure.cli import cache_commands
from crosswalk.infrastructure.cli.ui import console

logger = get_logger(__name__)

app = typer.Typer(
    help=f"crosswalk v{__version__} - reconcile a music catalog against another",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)

app.add_typer(
    cache_commands.app,
    name="cache",
    help="Manage the match cache",
    rich_help_panel="🗄️ Maintenance",
)


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(f"[bold bright_blue]crosswalk[/bold bright_blue] [dim]v{__version__}[/dim]")


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize crosswalk CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)
    log_startup_info()


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
