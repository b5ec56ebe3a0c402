"""Tests for artist matching."""

import pytest

from crosswalk.domain.matching import MatchMethod, MatchStatus
from tests.fixtures.catalog import candidate, make_artist


def _artist(name, id="tgt-artist"):
    return candidate(id=id, name=name, artists=[], duration_ms=None)


class TestArtistMatcher:
    async def test_normalized_name_is_exact(self, artist_matcher, catalog):
        catalog.artists = [_artist("Guns N' Roses")]

        result = await artist_matcher.run(make_artist(name="Guns N Roses"))

        assert result.method is MatchMethod.EXACT
        assert result.confidence == 0.99
        assert catalog.calls == [("search_artists", "Guns N Roses", 10)]

    async def test_close_spelling_is_fuzzy(self, artist_matcher, catalog):
        catalog.artists = [_artist("Radiohead")]

        result = await artist_matcher.run(make_artist(name="Radiohed"))

        assert result.method is MatchMethod.FUZZY
        assert result.confidence == pytest.approx(1 - 1 / 9)

    async def test_best_candidate_wins(self, artist_matcher, catalog):
        catalog.artists = [_artist("Portishead", id="p"), _artist("Radiohead", id="r")]

        result = await artist_matcher.run(make_artist(name="Radiohaed"))

        assert result.target.id == "r"

    async def test_dissimilar_names_are_unmatched(self, artist_matcher, catalog):
        catalog.artists = [_artist("The Beatles")]

        result = await artist_matcher.run(make_artist(name="Beatles"))

        assert result.status is MatchStatus.UNMATCHED
        assert result.suggestions == ()

    async def test_blank_name_is_rejected(self, artist_matcher):
        result = await artist_matcher.run(make_artist(name=""))

        assert result.note == "invalid_source"
