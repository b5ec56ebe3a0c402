"""Rate-limited adapter around a target catalog client.

``RateLimitedCatalog`` implements the ``CatalogClient`` protocol itself, so the
matchers never know whether they talk to a raw client (tests) or to the
throttled production path. Every call is routed through the shared
``RateLimiter`` and retried with exponential backoff before giving up.
"""

from collections.abc import Awaitable, Callable
from typing import Any

from attrs import define, field
import backoff

from crosswalk.config import get_logger
from crosswalk.config.settings import RateLimitConfig
from crosswalk.domain.entities import TargetCandidate
from crosswalk.domain.matching import CatalogClient, CatalogError, QueueClearedError
from crosswalk.infrastructure.connectors.rate_limiter import RateLimiter

logger = get_logger(__name__).bind(service="catalog")


@define(frozen=True, slots=True)
class RateLimitedCatalog:
    """Catalog client whose calls all pass through one rate limiter.

    Attributes:
        client: The underlying target catalog client
        limiter: Limiter shared by every caller of this catalog
        retry_count: Extra attempts after a failed call (0 disables retries)
        retry_base_delay: Base delay for exponential backoff (seconds)
        retry_max_delay: Cap on a single backoff delay (seconds)
    """

    client: CatalogClient
    limiter: RateLimiter
    retry_count: int = 2
    retry_base_delay: float = 0.5
    retry_max_delay: float = 10.0
    logger_instance: Any = field(factory=lambda: logger)

    @classmethod
    def from_config(
        cls, client: CatalogClient, config: RateLimitConfig
    ) -> "RateLimitedCatalog":
        """Build the adapter and its limiter from rate limit settings."""
        limiter = RateLimiter(
            requests_per_second=config.requests_per_second,
            burst_size=config.burst_size,
            max_queue_size=config.max_queue_size,
        )
        return cls(
            client=client,
            limiter=limiter,
            retry_count=config.retry_count,
            retry_base_delay=config.retry_base_delay,
            retry_max_delay=config.retry_max_delay,
        )

    async def lookup_by_unique_id(self, code: str) -> TargetCandidate | None:
        return await self._call(
            "lookup_by_unique_id", lambda: self.client.lookup_by_unique_id(code)
        )

    async def search_tracks(self, query: str, limit: int) -> list[TargetCandidate]:
        return await self._call(
            "search_tracks", lambda: self.client.search_tracks(query, limit)
        )

    async def search_albums(self, query: str, limit: int) -> list[TargetCandidate]:
        return await self._call(
            "search_albums", lambda: self.client.search_albums(query, limit)
        )

    async def search_artists(self, query: str, limit: int) -> list[TargetCandidate]:
        return await self._call(
            "search_artists", lambda: self.client.search_artists(query, limit)
        )

    def _on_backoff(self, details):
        """Log backoff event."""
        self.logger_instance.warning(
            f"Backing off {details['operation']} (attempt {details['tries']})",
            retry_delay=f"{details['wait']:.2f}s",
        )

    def _on_giveup(self, details):
        """Log when we give up retrying."""
        exception = details.get("exception")
        self.logger_instance.error(
            f"All {details['tries']} attempts failed for {details['operation']}",
            elapsed_time=f"{details['elapsed']:.2f}s",
            error=str(exception) if exception else "Unknown error",
            error_type=type(exception).__name__ if exception else "Unknown",
        )

    async def _call[T](
        self, operation_name: str, request: Callable[[], Awaitable[T]]
    ) -> T:
        """Run ``request`` through the limiter, retrying failures with backoff.

        Raises:
            CatalogError: When every attempt failed
        """

        @backoff.on_exception(
            backoff.expo,
            Exception,
            max_tries=self.retry_count + 1,  # +1 because first attempt counts
            factor=self.retry_base_delay,
            max_value=self.retry_max_delay,
            jitter=backoff.full_jitter,
            giveup=lambda e: isinstance(e, QueueClearedError),
            on_backoff=lambda details: self._on_backoff(
                {**details, "operation": operation_name}
            ),
            on_giveup=lambda details: self._on_giveup(
                {**details, "operation": operation_name}
            ),
        )
        async def attempt() -> T:
            return await self.limiter.execute(request)

        try:
            return await attempt()
        except CatalogError:
            raise
        except Exception as e:
            raise CatalogError(f"{operation_name} failed: {e}") from e
