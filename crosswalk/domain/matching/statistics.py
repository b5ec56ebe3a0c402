"""Aggregate statistics over a batch of match results."""

from collections import Counter
from collections.abc import Iterable
from typing import Any

from attrs import define, field

from .types import (
    CONFIDENCE_THRESHOLD_HIGH,
    CONFIDENCE_THRESHOLD_LOW,
    CONFIDENCE_THRESHOLD_MEDIUM,
    MatchMethod,
    MatchResult,
    MatchStatus,
)


@define(frozen=True, slots=True)
class MatchStatistics:
    """Counts by method and confidence band for a batch of results.

    Bands: high ≥ 0.95, medium [0.85, 0.95), low [0.70, 0.85).
    """

    total: int = 0
    by_method: dict[MatchMethod, int] = field(factory=dict)
    unmatched: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def matched(self) -> int:
        return self.total - self.unmatched

    def as_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_method": {str(method): count for method, count in self.by_method.items()},
            "unmatched": self.unmatched,
            "confidence": {"high": self.high, "medium": self.medium, "low": self.low},
        }


def get_statistics(results: Iterable[MatchResult]) -> MatchStatistics:
    """Pure aggregation over ``results``; no side effects."""
    results = list(results)
    methods = Counter(result.method for result in results)

    return MatchStatistics(
        total=len(results),
        by_method={method: methods.get(method, 0) for method in MatchMethod},
        unmatched=sum(1 for r in results if r.status is MatchStatus.UNMATCHED),
        high=sum(1 for r in results if r.confidence >= CONFIDENCE_THRESHOLD_HIGH),
        medium=sum(
            1
            for r in results
            if CONFIDENCE_THRESHOLD_MEDIUM <= r.confidence < CONFIDENCE_THRESHOLD_HIGH
        ),
        low=sum(
            1
            for r in results
            if CONFIDENCE_THRESHOLD_LOW <= r.confidence < CONFIDENCE_THRESHOLD_MEDIUM
        ),
    )
