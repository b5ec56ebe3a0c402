"""Core domain entities representing catalog concepts."""

from .catalog import (
    EntityKind,
    SourceAlbum,
    SourceArtist,
    SourceEntity,
    SourceTrack,
    TargetCandidate,
)

__all__ = [
    "EntityKind",
    "SourceAlbum",
    "SourceArtist",
    "SourceEntity",
    "SourceTrack",
    "TargetCandidate",
]
