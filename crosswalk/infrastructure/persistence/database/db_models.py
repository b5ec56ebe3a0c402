"""SQLAlchemy database models for the match cache.

Uses SQLAlchemy 2.0 declarative patterns with typed ``Mapped`` columns.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    Index,
    MetaData,
    String,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from crosswalk.config import get_logger

logger = get_logger(__name__)

# Define naming convention for constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class CrosswalkDBBase(AsyncAttrs, DeclarativeBase):
    """Base class for all database models."""

    metadata = metadata

    id: Mapped[int] = mapped_column(primary_key=True)


class DBMatchCacheEntry(CrosswalkDBBase):
    """Completed match outcome for one source entity.

    ``target`` and ``suggestions`` hold serialized target candidates.
    """

    __tablename__ = "match_cache"

    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    source_id: Mapped[str] = mapped_column(String(255), nullable=False)
    unique_id: Mapped[str | None] = mapped_column(String(32))
    target: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    suggestions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    cached_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("kind", "source_id"),
        Index(None, "kind", "unique_id"),
    )


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create the schema if it does not exist yet.

    Safe to call repeatedly; existing tables and data are left untouched.
    """
    from crosswalk.infrastructure.persistence.database.db_connection import get_engine

    engine = engine or get_engine()
    try:
        async with engine.begin() as conn:
            await conn.run_sync(CrosswalkDBBase.metadata.create_all)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    else:
        logger.debug("Database schema initialization complete")
