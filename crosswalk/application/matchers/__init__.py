"""Waterfall matchers for tracks, albums and artists."""

from .album import AlbumMatcher
from .artist import ArtistMatcher
from .base import STATE_ORDER, MatchAttempt, MatchState, ProgressCallback, WaterfallMatcher
from .track import TrackMatcher

__all__ = [
    "STATE_ORDER",
    "AlbumMatcher",
    "ArtistMatcher",
    "MatchAttempt",
    "MatchState",
    "ProgressCallback",
    "TrackMatcher",
    "WaterfallMatcher",
]
