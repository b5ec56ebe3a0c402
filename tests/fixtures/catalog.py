"""Fake target catalog and entity builders shared across tests."""

from crosswalk.domain.entities import (
    SourceAlbum,
    SourceArtist,
    SourceTrack,
    TargetCandidate,
)
from crosswalk.domain.matching import CatalogError


class FakeCatalogClient:
    """In-memory ``CatalogClient`` that records every call.

    Searches return the configured list truncated to ``limit``, ignoring the
    query. Methods named in ``failing`` raise ``CatalogError`` instead.
    """

    def __init__(
        self,
        tracks=None,
        albums=None,
        artists=None,
        by_unique_id=None,
        failing=(),
    ):
        self.tracks = list(tracks or [])
        self.albums = list(albums or [])
        self.artists = list(artists or [])
        self.by_unique_id = dict(by_unique_id or {})
        self.failing = set(failing)
        self.calls: list[tuple[str, str, int | None]] = []

    async def lookup_by_unique_id(self, code):
        self._record("lookup_by_unique_id", code, None)
        return self.by_unique_id.get(code)

    async def search_tracks(self, query, limit):
        self._record("search_tracks", query, limit)
        return self.tracks[:limit]

    async def search_albums(self, query, limit):
        self._record("search_albums", query, limit)
        return self.albums[:limit]

    async def search_artists(self, query, limit):
        self._record("search_artists", query, limit)
        return self.artists[:limit]

    def calls_to(self, method):
        return [call for call in self.calls if call[0] == method]

    def _record(self, method, query, limit):
        self.calls.append((method, query, limit))
        if method in self.failing:
            raise CatalogError(f"{method} unavailable")


def make_track(**overrides) -> SourceTrack:
    values = {
        "id": "src-track-1",
        "name": "Let It Be",
        "artists": ["The Beatles"],
        "isrc": None,
        "duration_ms": 243000,
        "album": "Let It Be",
    }
    values.update(overrides)
    return SourceTrack(**values)


def make_album(**overrides) -> SourceAlbum:
    values = {
        "id": "src-album-1",
        "name": "OK Computer",
        "artists": ["Radiohead"],
        "release_date": "1997-05-21",
    }
    values.update(overrides)
    return SourceAlbum(**values)


def make_artist(**overrides) -> SourceArtist:
    values = {"id": "src-artist-1", "name": "Radiohead"}
    values.update(overrides)
    return SourceArtist(**values)


def candidate(**overrides) -> TargetCandidate:
    values = {
        "id": "tgt-1",
        "name": "Let It Be",
        "artists": ["The Beatles"],
        "duration_ms": 243000,
    }
    values.update(overrides)
    return TargetCandidate(**values)
