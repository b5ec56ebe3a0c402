"""Application layer fixtures: matchers wired to the fake catalog and real cache."""

import pytest

from crosswalk.application.matchers import AlbumMatcher, ArtistMatcher, TrackMatcher


@pytest.fixture
def track_matcher(catalog, match_cache, matching_config):
    return TrackMatcher(catalog, match_cache, matching_config)


@pytest.fixture
def album_matcher(catalog, match_cache, matching_config):
    return AlbumMatcher(catalog, match_cache, matching_config)


@pytest.fixture
def artist_matcher(catalog, match_cache, matching_config):
    return ArtistMatcher(catalog, match_cache, matching_config)
