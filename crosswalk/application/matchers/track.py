"""Track matcher: the only kind with a unique identifier fast path."""

from typing import ClassVar

from crosswalk.domain.entities import EntityKind, SourceTrack, TargetCandidate
from crosswalk.domain.matching import (
    ConfidenceEvidence,
    clean_title,
    duration_close,
    normalize,
    score_track_candidate,
)
from crosswalk.domain.matching.algorithms import artist_in

from .base import MatchState, WaterfallMatcher


class TrackMatcher(WaterfallMatcher[SourceTrack]):
    """Matches source tracks by ISRC, then exact metadata, then fuzzy scoring.

    Unmatched tracks carry the top-ranked fuzzy candidates as suggestions.
    """

    kind = EntityKind.TRACK
    tiers: ClassVar[frozenset[MatchState]] = frozenset(MatchState)
    keeps_suggestions = True

    async def search(self, query: str, limit: int) -> list[TargetCandidate]:
        return await self.catalog.search_tracks(query, limit)

    def is_exact(self, source: SourceTrack, candidate: TargetCandidate) -> bool:
        """Same cleaned title and primary artist, durations within 2 seconds.

        The source's primary artist may also appear anywhere in the candidate's
        artist list.
        """
        if source.duration_ms is None or candidate.duration_ms is None:
            return False
        if not duration_close(source.duration_ms, candidate.duration_ms):
            return False

        if normalize(clean_title(source.name)) != normalize(clean_title(candidate.name)):
            return False

        if normalize(source.primary_artist) == normalize(candidate.primary_artist):
            return True
        return artist_in(source.primary_artist, candidate.artists)

    def score(self, source: SourceTrack, candidate: TargetCandidate) -> ConfidenceEvidence:
        return score_track_candidate(source, candidate)
