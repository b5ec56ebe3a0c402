"""Artist matcher."""

from crosswalk.domain.entities import EntityKind, SourceArtist, TargetCandidate
from crosswalk.domain.matching import (
    ConfidenceEvidence,
    normalize,
    score_artist_candidate,
)

from .base import WaterfallMatcher


class ArtistMatcher(WaterfallMatcher[SourceArtist]):
    """Matches source artists by normalized name, then name similarity."""

    kind = EntityKind.ARTIST
    requires_artist = False

    def build_query(self, source: SourceArtist) -> str:
        return source.name.strip()

    async def search(self, query: str, limit: int) -> list[TargetCandidate]:
        return await self.catalog.search_artists(query, limit)

    def is_exact(self, source: SourceArtist, candidate: TargetCandidate) -> bool:
        return normalize(source.name) == normalize(candidate.name)

    def score(self, source: SourceArtist, candidate: TargetCandidate) -> ConfidenceEvidence:
        return score_artist_candidate(source, candidate)
