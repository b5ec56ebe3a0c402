"""crosswalk domain layer - pure business logic with no infrastructure dependencies."""

from . import entities, matching

from .entities import (
    EntityKind,
    SourceAlbum,
    SourceArtist,
    SourceTrack,
    TargetCandidate,
)
from .matching import (
    CacheEntry,
    MatchMethod,
    MatchResult,
    MatchStatus,
    get_statistics,
)

__all__ = [
    "entities",
    "matching",
    # Entities
    "EntityKind",
    "SourceAlbum",
    "SourceArtist",
    "SourceTrack",
    "TargetCandidate",
    # Matching types
    "CacheEntry",
    "MatchMethod",
    "MatchResult",
    "MatchStatus",
    "get_statistics",
]
