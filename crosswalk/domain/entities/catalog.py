"""Catalog entities on both sides of a reconciliation.

Source entities are extracted from the catalog being migrated and never change
afterwards. Target candidates are transient search results from the catalog
being matched against.
"""

from enum import StrEnum

from attrs import define, field, validators


class EntityKind(StrEnum):
    """Kinds of catalog entity the engine can reconcile."""

    TRACK = "track"
    ALBUM = "album"
    ARTIST = "artist"


def _artist_names(value) -> tuple[str, ...]:
    """Coerce an artist name sequence into an immutable tuple."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@define(frozen=True, slots=True)
class SourceTrack:
    """A recording in the source catalog."""

    id: str = field(validator=validators.instance_of(str))
    name: str = field(validator=validators.instance_of(str))
    artists: tuple[str, ...] = field(factory=tuple, converter=_artist_names)
    isrc: str | None = None
    duration_ms: int | None = None
    album: str | None = None

    kind = EntityKind.TRACK

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def unique_id(self) -> str | None:
        return self.isrc or None

    @property
    def label(self) -> str:
        return f"{self.primary_artist} - {self.name}" if self.artists else self.name


@define(frozen=True, slots=True)
class SourceAlbum:
    """A release in the source catalog."""

    id: str = field(validator=validators.instance_of(str))
    name: str = field(validator=validators.instance_of(str))
    artists: tuple[str, ...] = field(factory=tuple, converter=_artist_names)
    release_date: str | None = None

    kind = EntityKind.ALBUM

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def unique_id(self) -> str | None:
        return None

    @property
    def label(self) -> str:
        return f"{self.primary_artist} - {self.name}" if self.artists else self.name


@define(frozen=True, slots=True)
class SourceArtist:
    """An artist in the source catalog."""

    id: str = field(validator=validators.instance_of(str))
    name: str = field(validator=validators.instance_of(str))

    kind = EntityKind.ARTIST

    @property
    def artists(self) -> tuple[str, ...]:
        return (self.name,)

    @property
    def primary_artist(self) -> str:
        return self.name

    @property
    def unique_id(self) -> str | None:
        return None

    @property
    def label(self) -> str:
        return self.name


SourceEntity = SourceTrack | SourceAlbum | SourceArtist


@define(frozen=True, slots=True)
class TargetCandidate:
    """A search or lookup result from the target catalog.

    The same shape is used for tracks, albums and artists; fields that do not
    apply to a kind stay ``None``. ``artists`` is ordered, primary artist first.
    """

    id: str = field(converter=str)
    name: str = field(validator=validators.instance_of(str))
    artists: tuple[str, ...] = field(factory=tuple, converter=_artist_names)
    isrc: str | None = None
    duration_ms: int | None = None
    release_date: str | None = None
    album: str | None = None

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""
