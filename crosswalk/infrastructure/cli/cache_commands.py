"""Match cache maintenance commands."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated

import typer

from crosswalk.config import get_logger, resilient_operation, settings
from crosswalk.domain.entities import EntityKind
from crosswalk.infrastructure.cli.ui import (
    command_error_handler,
    console,
    display_cache_stats,
)
from crosswalk.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
    init_db,
)
from crosswalk.infrastructure.persistence.repositories import CacheStats, MatchCache

logger = get_logger(__name__)

app = typer.Typer(
    help="Inspect and prune the match cache",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@asynccontextmanager
async def open_cache() -> AsyncIterator[MatchCache]:
    """Cache bound to the configured database, disposed on exit."""
    engine = create_db_engine(settings.database.url)
    try:
        await init_db(engine)
        yield MatchCache(create_session_factory(engine))
    finally:
        await engine.dispose()


@resilient_operation("cache_stats")
async def _cache_stats() -> CacheStats:
    async with open_cache() as cache:
        return await cache.stats()


@resilient_operation("cache_clear")
async def _clear_cache(kind: EntityKind | None) -> int:
    async with open_cache() as cache:
        return await cache.clear(kind)


@resilient_operation("cache_evict")
async def _evict_cache(days: int) -> int:
    async with open_cache() as cache:
        return await cache.evict_older_than(days)


@app.command(name="stats")
@command_error_handler
def stats() -> None:
    """Show the number of cached outcomes and their age range."""
    display_cache_stats(asyncio.run(_cache_stats()))


@app.command(name="clear")
@command_error_handler
def clear(
    kind: Annotated[
        EntityKind | None,
        typer.Option("--kind", "-k", help="Only clear entries of this kind"),
    ] = None,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")
    ] = False,
) -> None:
    """Delete cached outcomes so the next run queries the catalog again."""
    scope = f"{kind} entries" if kind else "all entries"
    if not yes and not typer.confirm(f"Clear {scope} from the match cache?"):
        raise typer.Abort()

    removed = asyncio.run(_clear_cache(kind))
    console.print(f"[green]✓[/green] Removed {removed} cache entries")


@app.command(name="evict")
@command_error_handler
def evict(
    days: Annotated[
        int | None,
        typer.Option(
            "--days",
            "-d",
            min=0,
            help="Retention window in days (defaults to the configured retention)",
        ),
    ] = None,
) -> None:
    """Delete cached outcomes older than the retention window."""
    retention = settings.cache.retention_days if days is None else days
    removed = asyncio.run(_evict_cache(retention))
    console.print(
        f"[green]✓[/green] Evicted {removed} cache entries older than {retention} days"
    )
