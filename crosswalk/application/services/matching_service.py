"""High-level matching service.

``MatchingService`` is the public surface of the engine. It owns one matcher
per entity kind, all sharing a single catalog adapter (and therefore a single
rate limiter) and a single match cache.

Uses dependency injection for the catalog and cache; ``create_matching_service``
wires the production versions from settings.
"""

from collections.abc import Iterable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crosswalk.application.matchers import (
    AlbumMatcher,
    ArtistMatcher,
    ProgressCallback,
    TrackMatcher,
)
from crosswalk.config import Settings, get_logger, settings as default_settings
from crosswalk.domain.entities import (
    EntityKind,
    SourceAlbum,
    SourceArtist,
    SourceTrack,
)
from crosswalk.domain.matching import (
    CatalogClient,
    MatchResult,
    MatchStatistics,
    get_statistics,
)
from crosswalk.infrastructure.connectors import RateLimitedCatalog
from crosswalk.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from crosswalk.infrastructure.persistence.repositories import CacheStats, MatchCache

logger = get_logger(__name__)


class MatchingService:
    """Reconciles source catalog entities against the target catalog.

    Args:
        catalog: Target catalog client every matcher queries through
        cache: Match cache shared by all matchers
        config: Application settings (defaults to the global settings)
    """

    def __init__(
        self,
        catalog: CatalogClient,
        cache: MatchCache,
        config: Settings | None = None,
    ) -> None:
        self.catalog = catalog
        self.cache = cache
        self.config = config or default_settings

        matching = self.config.matching
        self.tracks = TrackMatcher(catalog, cache, matching)
        self.albums = AlbumMatcher(catalog, cache, matching)
        self.artists = ArtistMatcher(catalog, cache, matching)

    async def match_track(self, track: SourceTrack) -> MatchResult:
        return await self.tracks.match_one(track)

    async def match_album(self, album: SourceAlbum) -> MatchResult:
        return await self.albums.match_one(album)

    async def match_artist(self, artist: SourceArtist) -> MatchResult:
        return await self.artists.match_one(artist)

    async def match_tracks(
        self,
        tracks: Iterable[SourceTrack],
        on_progress: ProgressCallback | None = None,
    ) -> list[MatchResult]:
        return await self.tracks.match_all(tracks, on_progress)

    async def match_albums(
        self,
        albums: Iterable[SourceAlbum],
        on_progress: ProgressCallback | None = None,
    ) -> list[MatchResult]:
        return await self.albums.match_all(albums, on_progress)

    async def match_artists(
        self,
        artists: Iterable[SourceArtist],
        on_progress: ProgressCallback | None = None,
    ) -> list[MatchResult]:
        return await self.artists.match_all(artists, on_progress)

    def get_statistics(self, results: Iterable[MatchResult]) -> MatchStatistics:
        """Method and confidence band breakdown of a batch."""
        return get_statistics(results)

    async def clear_cache(self, kind: EntityKind | None = None) -> int:
        return await self.cache.clear(kind)

    async def evict_cache(self, days: int | None = None) -> int:
        """Drop cache entries older than ``days`` (defaults to the retention window)."""
        retention = self.config.cache.retention_days if days is None else days
        return await self.cache.evict_older_than(retention)

    async def cache_stats(self) -> CacheStats:
        return await self.cache.stats()


def create_matching_service(
    client: CatalogClient,
    config: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> MatchingService:
    """Wire a service with a rate-limited catalog adapter and the SQLite cache.

    Args:
        client: Raw target catalog client
        config: Settings to use (defaults to the global settings)
        session_factory: Cache session factory (defaults to one bound to
            ``config.database.url``). The schema must already exist; see
            ``init_db``.
    """
    config = config or default_settings
    catalog = RateLimitedCatalog.from_config(client, config.rate_limit)

    if session_factory is None:
        session_factory = create_session_factory(create_db_engine(config.database.url))

    logger.debug(
        "Created matching service",
        requests_per_second=config.rate_limit.requests_per_second,
        burst_size=config.rate_limit.burst_size,
        concurrency=config.matching.concurrency,
    )
    return MatchingService(catalog, MatchCache(session_factory), config)
