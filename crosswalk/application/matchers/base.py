"""Waterfall matching as an explicit state machine.

Every matcher walks the same fixed sequence of tiers::

    CACHE -> UNIQUE_ID -> EXACT -> FUZZY -> UNMATCHED

Each state has a handler that either returns a terminal ``MatchResult`` or
``None`` to fall through to the next state the matcher declares in ``tiers``.
``UNMATCHED`` always terminates. Subclasses supply the entity-specific parts:
how to query the catalog, what counts as an exact match and how to score a
candidate.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from enum import StrEnum
from typing import Any, ClassVar

from attrs import define, field
from sqlalchemy.exc import SQLAlchemyError

from crosswalk.config import get_logger
from crosswalk.config.settings import MatchingConfig
from crosswalk.domain.entities import EntityKind, SourceEntity, TargetCandidate
from crosswalk.domain.matching import (
    CONFIDENCE_THRESHOLD_LOW,
    EXACT_CONFIDENCE,
    UNIQUE_ID_CONFIDENCE,
    CacheEntry,
    CatalogClient,
    ConfidenceEvidence,
    MatchCacheStore,
    MatchMethod,
    MatchResult,
    rank_candidates,
)

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int, str], None]

# Cache lookups and writes degrade to miss / no-op on these
_CACHE_ERRORS = (SQLAlchemyError, ValueError, TypeError)


class MatchState(StrEnum):
    CACHE = "cache"
    UNIQUE_ID = "unique_id"
    EXACT = "exact"
    FUZZY = "fuzzy"
    UNMATCHED = "unmatched"


STATE_ORDER: tuple[MatchState, ...] = tuple(MatchState)


@define(slots=True)
class MatchAttempt[S]:
    """Mutable scratch state for one walk through the waterfall."""

    source: S
    suggestions: list[TargetCandidate] = field(factory=list)
    visited: list[MatchState] = field(factory=list)


class WaterfallMatcher[S: SourceEntity]:
    """Base class for the track, album and artist matchers.

    Args:
        catalog: Target catalog client; in production a ``RateLimitedCatalog``
        cache: Match cache, or None to always query the catalog
        config: Search limits, suggestion count and batch concurrency
    """

    kind: ClassVar[EntityKind]
    tiers: ClassVar[frozenset[MatchState]] = frozenset(
        {MatchState.CACHE, MatchState.EXACT, MatchState.FUZZY, MatchState.UNMATCHED}
    )
    requires_artist: ClassVar[bool] = True
    keeps_suggestions: ClassVar[bool] = False

    def __init__(
        self,
        catalog: CatalogClient,
        cache: MatchCacheStore | None = None,
        config: MatchingConfig | None = None,
    ) -> None:
        self.catalog = catalog
        self.cache = cache
        self.config = config or MatchingConfig()
        self.handlers: dict[
            MatchState, Callable[[MatchAttempt[S]], Awaitable[MatchResult | None]]
        ] = {
            MatchState.CACHE: self.check_cache,
            MatchState.UNIQUE_ID: self.match_unique_id,
            MatchState.EXACT: self.match_exact,
            MatchState.FUZZY: self.match_fuzzy,
            MatchState.UNMATCHED: self.give_up,
        }

    # -------------------------------------------------------------------------
    # Entity-specific hooks
    # -------------------------------------------------------------------------

    def build_query(self, source: S) -> str:
        return f"{source.name} {source.primary_artist}".strip()

    async def search(self, query: str, limit: int) -> list[TargetCandidate]:
        raise NotImplementedError

    def is_exact(self, source: S, candidate: TargetCandidate) -> bool:
        raise NotImplementedError

    def score(self, source: S, candidate: TargetCandidate) -> ConfidenceEvidence:
        raise NotImplementedError

    def is_valid(self, source: Any) -> bool:
        """Reject entities with a blank name, or no artist where one is required."""
        name = getattr(source, "name", None)
        if not isinstance(name, str) or not name.strip():
            return False
        if self.requires_artist:
            return any(
                isinstance(artist, str) and artist.strip()
                for artist in getattr(source, "artists", ())
            )
        return True

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def next_state(self, state: MatchState) -> MatchState:
        """The next state after ``state`` that this matcher declares in ``tiers``."""
        if state is MatchState.UNMATCHED:
            raise ValueError("UNMATCHED is terminal")
        for candidate in STATE_ORDER[STATE_ORDER.index(state) + 1 :]:
            if candidate in self.tiers:
                return candidate
        return MatchState.UNMATCHED

    async def run(self, source: S) -> MatchResult:
        """Walk the waterfall for one source entity.

        Live outcomes are written to the cache before being returned; cache
        hits and rejected sources are not.
        """
        if not self.is_valid(source):
            logger.warning(
                "Rejecting malformed source entity",
                kind=self.kind,
                source_id=getattr(source, "id", None),
            )
            return MatchResult.unmatched(source, note="invalid_source")

        attempt = MatchAttempt(source=source)
        state = MatchState.CACHE
        while True:
            attempt.visited.append(state)
            result = await self.handlers[state](attempt)
            if result is not None:
                break
            state = self.next_state(state)

        if state is not MatchState.CACHE:
            await self._store(result)

        logger.debug(
            "{} {}: {}",
            self.kind.title(),
            result.status,
            source.label,
            method=result.method,
            confidence=round(result.confidence, 3),
            path=[s.value for s in attempt.visited],
        )
        return result

    async def match_one(self, source: S) -> MatchResult:
        """``run`` that never raises; unexpected errors degrade to unmatched."""
        try:
            return await self.run(source)
        except Exception as e:
            logger.exception(
                "Unexpected error while matching",
                kind=self.kind,
                source_id=getattr(source, "id", None),
                error=str(e),
            )
            return MatchResult.unmatched(source, note="error")

    async def match_all(
        self,
        entities: Iterable[S],
        on_progress: ProgressCallback | None = None,
    ) -> list[MatchResult]:
        """Match a batch, returning one result per entity in input order.

        Up to ``config.concurrency`` entities are in flight at once.
        ``on_progress(current, total, label)`` fires as each entity completes.
        """
        sources = list(entities)
        total = len(sources)
        results: list[MatchResult | None] = [None] * total
        semaphore = asyncio.Semaphore(self.config.concurrency)
        completed = 0

        logger.info(
            f"Matching {total} {self.kind}s",
            total=total,
            concurrency=self.config.concurrency,
        )

        async def process(index: int, source: S) -> None:
            nonlocal completed
            async with semaphore:
                results[index] = await self.match_one(source)
            completed += 1
            if on_progress is None:
                return
            try:
                on_progress(completed, total, _label(source))
            except Exception as e:
                logger.warning(
                    "Progress callback failed",
                    kind=self.kind,
                    current=completed,
                    total=total,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        await asyncio.gather(*(process(i, s) for i, s in enumerate(sources)))
        return [r for r in results if r is not None]

    # -------------------------------------------------------------------------
    # State handlers
    # -------------------------------------------------------------------------

    async def check_cache(self, attempt: MatchAttempt[S]) -> MatchResult | None:
        """Previously recorded outcome for this entity or its unique id."""
        source = attempt.source
        if self.cache is None:
            return None

        try:
            entry = await self.cache.get(self.kind, source.id)
            if entry is None and source.unique_id:
                entry = await self.cache.get_by_unique_id(self.kind, source.unique_id)
            if entry is None:
                return None
            return entry.to_result(source)
        except _CACHE_ERRORS as e:
            logger.warning(
                "Cache lookup failed, treating as miss",
                kind=self.kind,
                source_id=source.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def match_unique_id(self, attempt: MatchAttempt[S]) -> MatchResult | None:
        source = attempt.source
        code = source.unique_id
        if not code:
            return None

        candidate = await self._catalog_call(
            MatchState.UNIQUE_ID,
            source,
            lambda: self.catalog.lookup_by_unique_id(code),
            None,
        )
        if candidate is None:
            return None
        return MatchResult.matched(
            source, candidate, MatchMethod.UNIQUE_ID, UNIQUE_ID_CONFIDENCE
        )

    async def match_exact(self, attempt: MatchAttempt[S]) -> MatchResult | None:
        """First search result, in search order, passing ``is_exact``."""
        source = attempt.source
        query = self.build_query(source)
        candidates = await self._catalog_call(
            MatchState.EXACT,
            source,
            lambda: self.search(query, self.config.exact_search_limit),
            [],
        )
        for candidate in candidates:
            if self.is_exact(source, candidate):
                return MatchResult.matched(
                    source, candidate, MatchMethod.EXACT, EXACT_CONFIDENCE
                )
        return None

    async def match_fuzzy(self, attempt: MatchAttempt[S]) -> MatchResult | None:
        """Best-scoring search result, accepted at or above the low threshold."""
        source = attempt.source
        query = self.build_query(source)
        candidates = await self._catalog_call(
            MatchState.FUZZY,
            source,
            lambda: self.search(query, self.config.fuzzy_search_limit),
            [],
        )
        ranked = rank_candidates(source, candidates, self.score)
        if self.keeps_suggestions:
            attempt.suggestions = [
                candidate for candidate, _ in ranked[: self.config.suggestion_limit]
            ]
        if not ranked:
            return None

        best, evidence = ranked[0]
        if evidence.score < CONFIDENCE_THRESHOLD_LOW:
            logger.debug(
                "No confident fuzzy match for {}", source.label, **evidence.as_dict()
            )
            return None

        return MatchResult.matched(
            source, best, MatchMethod.FUZZY, min(evidence.score, 1.0)
        )

    async def give_up(self, attempt: MatchAttempt[S]) -> MatchResult:
        return MatchResult.unmatched(attempt.source, suggestions=attempt.suggestions)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _catalog_call[T](
        self,
        state: MatchState,
        source: S,
        request: Callable[[], Awaitable[T]],
        default: T,
    ) -> T:
        """Run a catalog request; any failure is logged and becomes ``default``."""
        try:
            return await request()
        except Exception as e:
            logger.warning(
                f"Catalog call failed in {state} tier, treating as miss",
                kind=self.kind,
                source_id=source.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return default

    async def _store(self, result: MatchResult) -> None:
        if self.cache is None or result.note is not None:
            return
        try:
            await self.cache.put(CacheEntry.from_result(result))
        except _CACHE_ERRORS as e:
            logger.warning(
                "Cache write failed, result not cached",
                kind=self.kind,
                source_id=result.source.id,
                error=str(e),
                error_type=type(e).__name__,
            )


def _label(source: Any) -> str:
    return getattr(source, "label", None) or str(getattr(source, "id", ""))
