"""Matching algorithms and types for cross-catalog entity reconciliation."""

from .algorithms import (
    clean_title,
    duration_close,
    edit_distance,
    extract_featured_artists,
    normalize,
    rank_candidates,
    release_year,
    score_album_candidate,
    score_artist_candidate,
    score_track_candidate,
    similarity,
)
from .protocols import CatalogClient, CatalogError, MatchCacheStore, QueueClearedError
from .statistics import MatchStatistics, get_statistics
from .types import (
    CONFIDENCE_THRESHOLD_HIGH,
    CONFIDENCE_THRESHOLD_LOW,
    CONFIDENCE_THRESHOLD_MEDIUM,
    EXACT_CONFIDENCE,
    UNIQUE_ID_CONFIDENCE,
    CacheEntry,
    ConfidenceEvidence,
    MatchMethod,
    MatchResult,
    MatchStatus,
)

__all__ = [
    "CONFIDENCE_THRESHOLD_HIGH",
    "CONFIDENCE_THRESHOLD_LOW",
    "CONFIDENCE_THRESHOLD_MEDIUM",
    "EXACT_CONFIDENCE",
    "UNIQUE_ID_CONFIDENCE",
    "CacheEntry",
    "CatalogClient",
    "CatalogError",
    "ConfidenceEvidence",
    "MatchCacheStore",
    "MatchMethod",
    "MatchResult",
    "MatchStatistics",
    "MatchStatus",
    "QueueClearedError",
    "clean_title",
    "duration_close",
    "edit_distance",
    "extract_featured_artists",
    "get_statistics",
    "normalize",
    "rank_candidates",
    "release_year",
    "score_album_candidate",
    "score_artist_candidate",
    "score_track_candidate",
    "similarity",
]
