"""Protocols for the collaborators of the matching engine.

These protocols define contracts for the target catalog client and the match
cache without depending on external implementations, following the
dependency inversion principle.
"""

from typing import Protocol, runtime_checkable

from crosswalk.domain.entities import EntityKind, TargetCandidate

from .types import CacheEntry


class CatalogError(Exception):
    """A call to the target catalog failed (network, bad response, malformed payload)."""


class QueueClearedError(CatalogError):
    """A queued catalog call was dropped before it was dispatched."""


@runtime_checkable
class CatalogClient(Protocol):
    """Query surface of the target catalog used by the matchers.

    Implementations own their request timeouts. Every call is expected to be
    rate limited by the caller.
    """

    async def lookup_by_unique_id(self, code: str) -> TargetCandidate | None:
        """Exact lookup by unique recording code (ISRC); ``None`` when not found."""
        ...

    async def search_tracks(self, query: str, limit: int) -> list[TargetCandidate]:
        """Free-text track search, in the catalog's relevance order."""
        ...

    async def search_albums(self, query: str, limit: int) -> list[TargetCandidate]:
        """Free-text album search, in the catalog's relevance order."""
        ...

    async def search_artists(self, query: str, limit: int) -> list[TargetCandidate]:
        """Free-text artist search, in the catalog's relevance order."""
        ...


class MatchCacheStore(Protocol):
    """Durable store of completed match outcomes."""

    async def get(self, kind: EntityKind, source_id: str) -> CacheEntry | None: ...

    async def get_by_unique_id(
        self, kind: EntityKind, code: str
    ) -> CacheEntry | None: ...

    async def put(self, entry: CacheEntry) -> None: ...
