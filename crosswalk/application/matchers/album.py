"""Album matcher."""

from crosswalk.domain.entities import EntityKind, SourceAlbum, TargetCandidate
from crosswalk.domain.matching import (
    ConfidenceEvidence,
    normalize,
    release_year,
    score_album_candidate,
)
from crosswalk.domain.matching.algorithms import EXACT_YEAR_TOLERANCE, artist_in

from .base import WaterfallMatcher


class AlbumMatcher(WaterfallMatcher[SourceAlbum]):
    """Matches source albums by exact title/artist/year, then fuzzy scoring."""

    kind = EntityKind.ALBUM

    async def search(self, query: str, limit: int) -> list[TargetCandidate]:
        return await self.catalog.search_albums(query, limit)

    def is_exact(self, source: SourceAlbum, candidate: TargetCandidate) -> bool:
        if normalize(source.name) != normalize(candidate.name):
            return False

        if not artist_in(source.primary_artist, candidate.artists):
            return False

        # Re-releases are often dated a year apart; unknown years do not block
        source_year = release_year(source.release_date)
        candidate_year = release_year(candidate.release_date)
        if source_year is not None and candidate_year is not None:
            return abs(source_year - candidate_year) <= EXACT_YEAR_TOLERANCE
        return True

    def score(self, source: SourceAlbum, candidate: TargetCandidate) -> ConfidenceEvidence:
        return score_album_candidate(source, candidate)
