"""Pure domain types for catalog matching and confidence scoring.

These types represent the core concepts in the matching domain with no
infrastructure dependencies.
"""

from datetime import UTC, datetime
from enum import StrEnum
import math
from typing import Any

from attrs import define, field

from crosswalk.domain.entities import EntityKind, SourceEntity, TargetCandidate

# Fixed confidences for authoritative tiers
UNIQUE_ID_CONFIDENCE = 1.0
EXACT_CONFIDENCE = 0.99

# Confidence bands; fuzzy matches below the low band are rejected
CONFIDENCE_THRESHOLD_HIGH = 0.95
CONFIDENCE_THRESHOLD_MEDIUM = 0.85
CONFIDENCE_THRESHOLD_LOW = 0.70


class MatchStatus(StrEnum):
    MATCHED = "matched"
    UNMATCHED = "unmatched"


class MatchMethod(StrEnum):
    """Waterfall tier that produced a result."""

    UNIQUE_ID = "unique_id"
    EXACT = "exact"
    FUZZY = "fuzzy"
    UNMATCHED = "unmatched"


@define(frozen=True, slots=True)
class ConfidenceEvidence:
    """Evidence used to calculate a fuzzy confidence score.

    Captures the per-signal similarities behind the weighted ``score`` so a
    reviewer can see why a candidate ranked where it did. Signals that do not
    apply to an entity kind stay ``None``.
    """

    score: float
    title_similarity: float = 0.0
    artist_similarity: float | None = None
    duration_score: float | None = None
    album_similarity: float | None = None
    year_score: float | None = None

    def as_dict(self) -> dict[str, Any]:
        """Rounded view for logging."""
        return {
            key: round(value, 3)
            for key, value in (
                ("score", self.score),
                ("title_similarity", self.title_similarity),
                ("artist_similarity", self.artist_similarity),
                ("duration_score", self.duration_score),
                ("album_similarity", self.album_similarity),
                ("year_score", self.year_score),
            )
            if value is not None
        }


@define(frozen=True, slots=True)
class MatchResult:
    """Outcome of matching one source entity against the target catalog.

    Invariants (checked on construction):
    - matched ⇔ a target is present ⇔ confidence > 0
    - unique_id results carry confidence 1.0, exact results 0.99
    - fuzzy results are only accepted at or above the 0.70 floor
    - suggestions only accompany unmatched results

    Use ``MatchResult.matched`` / ``MatchResult.unmatched`` to build one.
    """

    source: SourceEntity
    target: TargetCandidate | None
    status: MatchStatus = field(converter=MatchStatus)
    method: MatchMethod = field(converter=MatchMethod)
    confidence: float = field(converter=float)
    suggestions: tuple[TargetCandidate, ...] = field(factory=tuple, converter=tuple)
    note: str | None = None

    def __attrs_post_init__(self) -> None:
        matched = self.status is MatchStatus.MATCHED
        if matched != (self.target is not None) or matched != (self.confidence > 0):
            raise ValueError(
                f"Inconsistent match result: status={self.status}, "
                f"target={'set' if self.target else 'none'}, confidence={self.confidence}"
            )
        if matched == (self.method is MatchMethod.UNMATCHED):
            raise ValueError(f"Method {self.method} does not fit status {self.status}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Confidence {self.confidence} outside [0, 1]")
        if self.method is MatchMethod.UNIQUE_ID and not math.isclose(
            self.confidence, UNIQUE_ID_CONFIDENCE
        ):
            raise ValueError("Unique identifier matches must have confidence 1.0")
        if self.method is MatchMethod.EXACT and not math.isclose(
            self.confidence, EXACT_CONFIDENCE
        ):
            raise ValueError("Exact matches must have confidence 0.99")
        if self.method is MatchMethod.FUZZY and self.confidence < CONFIDENCE_THRESHOLD_LOW:
            raise ValueError(
                f"Fuzzy confidence {self.confidence} below floor {CONFIDENCE_THRESHOLD_LOW}"
            )
        if matched and self.suggestions:
            raise ValueError("Suggestions are only attached to unmatched results")

    @classmethod
    def matched(
        cls,
        source: SourceEntity,
        target: TargetCandidate,
        method: MatchMethod,
        confidence: float,
    ) -> "MatchResult":
        return cls(
            source=source,
            target=target,
            status=MatchStatus.MATCHED,
            method=method,
            confidence=confidence,
        )

    @classmethod
    def unmatched(
        cls,
        source: SourceEntity,
        suggestions: tuple[TargetCandidate, ...] | list[TargetCandidate] = (),
        note: str | None = None,
    ) -> "MatchResult":
        return cls(
            source=source,
            target=None,
            status=MatchStatus.UNMATCHED,
            method=MatchMethod.UNMATCHED,
            confidence=0.0,
            suggestions=tuple(suggestions),
            note=note,
        )

    @property
    def is_matched(self) -> bool:
        return self.status is MatchStatus.MATCHED


@define(frozen=True, slots=True)
class CacheEntry:
    """Persisted outcome of a completed match attempt.

    Keyed by ``(kind, source_id)`` and secondarily by ``(kind, unique_id)`` so
    a second source entity with the same recording code reuses the outcome.
    """

    kind: EntityKind = field(converter=EntityKind)
    source_id: str
    unique_id: str | None
    target: TargetCandidate | None
    method: MatchMethod = field(converter=MatchMethod)
    confidence: float = field(converter=float)
    suggestions: tuple[TargetCandidate, ...] = field(factory=tuple, converter=tuple)
    cached_at: datetime = field(factory=lambda: datetime.now(UTC))

    @classmethod
    def from_result(cls, result: MatchResult) -> "CacheEntry":
        return cls(
            kind=result.source.kind,
            source_id=result.source.id,
            unique_id=result.source.unique_id,
            target=result.target,
            method=result.method,
            confidence=result.confidence,
            suggestions=result.suggestions,
        )

    def to_result(self, source: SourceEntity) -> MatchResult:
        """Rebuild the cached outcome as a result for ``source``."""
        return MatchResult(
            source=source,
            target=self.target,
            status=MatchStatus.MATCHED if self.target else MatchStatus.UNMATCHED,
            method=self.method,
            confidence=self.confidence,
            suggestions=() if self.target else self.suggestions,
        )
