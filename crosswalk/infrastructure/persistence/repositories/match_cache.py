"""SQLAlchemy-backed store of completed match outcomes.

Entries are keyed by ``(kind, source_id)`` with a secondary lookup on
``(kind, unique_id)``. Each public method opens its own session, so one
``MatchCache`` can be shared by concurrently running matchers.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from attrs import asdict, define
from sqlalchemy import delete, func, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crosswalk.config import get_logger
from crosswalk.domain.entities import EntityKind, TargetCandidate
from crosswalk.domain.matching import CacheEntry
from crosswalk.infrastructure.persistence.database.db_connection import get_session
from crosswalk.infrastructure.persistence.database.db_models import DBMatchCacheEntry
from crosswalk.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class CacheStats:
    """Size and age range of the cache."""

    total_entries: int
    oldest_entry: datetime | None
    newest_entry: datetime | None


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _candidate_to_json(candidate: TargetCandidate) -> dict[str, Any]:
    data = asdict(candidate)
    data["artists"] = list(candidate.artists)
    return data


def _candidate_from_json(data: dict[str, Any]) -> TargetCandidate:
    return TargetCandidate(**data)


class MatchCacheMapper:
    """Bidirectional mapping between ``CacheEntry`` and ``DBMatchCacheEntry``."""

    @staticmethod
    def to_domain(row: DBMatchCacheEntry) -> CacheEntry:
        return CacheEntry(
            kind=row.kind,
            source_id=row.source_id,
            unique_id=row.unique_id,
            target=_candidate_from_json(row.target) if row.target else None,
            method=row.method,
            confidence=row.confidence,
            suggestions=tuple(
                _candidate_from_json(s) for s in (row.suggestions or [])
            ),
            cached_at=_as_utc(row.cached_at),
        )

    @staticmethod
    def to_values(entry: CacheEntry) -> dict[str, Any]:
        return {
            "kind": entry.kind.value,
            "source_id": entry.source_id,
            "unique_id": entry.unique_id,
            "target": _candidate_to_json(entry.target) if entry.target else None,
            "method": entry.method.value,
            "confidence": entry.confidence,
            "suggestions": [_candidate_to_json(s) for s in entry.suggestions],
            "cached_at": entry.cached_at,
        }


class MatchCache:
    """Persistent cache of match outcomes.

    Storage errors propagate as ``SQLAlchemyError``; callers decide whether a
    failed lookup is a miss.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.mapper = MatchCacheMapper()

    @db_operation("get_cache_entry")
    async def get(self, kind: EntityKind, source_id: str) -> CacheEntry | None:
        """Entry for one source entity, or None."""
        stmt = select(DBMatchCacheEntry).where(
            DBMatchCacheEntry.kind == EntityKind(kind).value,
            DBMatchCacheEntry.source_id == source_id,
        )
        async with get_session(self.session_factory) as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return self.mapper.to_domain(row) if row else None

    @db_operation("get_cache_entry_by_unique_id")
    async def get_by_unique_id(self, kind: EntityKind, code: str) -> CacheEntry | None:
        """Newest entry recorded for a unique identifier code, or None."""
        if not code:
            return None
        stmt = (
            select(DBMatchCacheEntry)
            .where(
                DBMatchCacheEntry.kind == EntityKind(kind).value,
                DBMatchCacheEntry.unique_id == code,
            )
            .order_by(DBMatchCacheEntry.cached_at.desc(), DBMatchCacheEntry.id.desc())
            .limit(1)
        )
        async with get_session(self.session_factory) as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return self.mapper.to_domain(row) if row else None

    @db_operation("put_cache_entry")
    async def put(self, entry: CacheEntry) -> None:
        """Insert or replace the entry for ``(kind, source_id)``."""
        values = self.mapper.to_values(entry)
        stmt = sqlite_insert(DBMatchCacheEntry).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["kind", "source_id"],
            set_={
                key: stmt.excluded[key]
                for key in values
                if key not in ("kind", "source_id")
            },
        )
        async with get_session(self.session_factory) as session:
            await session.execute(stmt)

    @db_operation("clear_cache")
    async def clear(self, kind: EntityKind | None = None) -> int:
        """Delete every entry, or only those of one kind. Returns rows removed."""
        stmt = delete(DBMatchCacheEntry)
        if kind is not None:
            stmt = stmt.where(DBMatchCacheEntry.kind == EntityKind(kind).value)
        async with get_session(self.session_factory) as session:
            result = await session.execute(stmt)
            removed = result.rowcount or 0

        logger.info(f"Cleared {removed} cache entries", kind=kind or "all")
        return removed

    @db_operation("evict_cache_entries")
    async def evict_older_than(self, days: int) -> int:
        """Delete entries cached more than ``days`` days ago."""
        if days < 0:
            raise ValueError(f"Retention must be non-negative, got {days} days")
        cutoff = datetime.now(UTC) - timedelta(days=days)
        stmt = delete(DBMatchCacheEntry).where(DBMatchCacheEntry.cached_at < cutoff)
        async with get_session(self.session_factory) as session:
            result = await session.execute(stmt)
            removed = result.rowcount or 0

        logger.info(f"Evicted {removed} cache entries older than {days} days")
        return removed

    @db_operation("cache_stats")
    async def stats(self) -> CacheStats:
        stmt = select(
            func.count(DBMatchCacheEntry.id),
            func.min(DBMatchCacheEntry.cached_at),
            func.max(DBMatchCacheEntry.cached_at),
        )
        async with get_session(self.session_factory) as session:
            total, oldest, newest = (await session.execute(stmt)).one()

        return CacheStats(
            total_entries=total or 0,
            oldest_entry=_as_utc(oldest),
            newest_entry=_as_utc(newest),
        )
