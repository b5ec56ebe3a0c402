"""Pure algorithms for cross-catalog matching and confidence scoring.

These functions contain no I/O and implement the core business logic for
deciding how well a target catalog candidate matches a source entity. None of
them raise on arbitrary strings: ``None`` is treated as an empty string.
"""

from collections.abc import Callable, Iterable, Sequence
import re

from rapidfuzz.distance import Levenshtein

from crosswalk.domain.entities import (
    SourceAlbum,
    SourceArtist,
    SourceTrack,
    TargetCandidate,
)

from .types import ConfidenceEvidence

# Tolerances
EXACT_DURATION_TOLERANCE_SECONDS = 2
FUZZY_DURATION_TOLERANCE_SECONDS = 5
FUZZY_DURATION_DECAY_MS = 30_000
EXACT_YEAR_TOLERANCE = 1

# Neutral score for a signal that cannot be compared
NEUTRAL_SCORE = 0.5

TRACK_WEIGHTS = {"title": 0.5, "artist": 0.3, "duration": 0.1, "album": 0.1}
ALBUM_WEIGHTS = {"title": 0.6, "artist": 0.3, "year": 0.1}

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_YEAR = re.compile(r"^\s*(\d{4})")

# Applied in order; each removes one kind of title qualifier
TITLE_VARIATION_PATTERNS = [
    re.compile(r"\s*\(remaster(?:ed)?\)", re.IGNORECASE),
    re.compile(r"\s*\([^()]*?remaster[^()]*?\)", re.IGNORECASE),
    re.compile(r"\s*\(radio edit\)", re.IGNORECASE),
    re.compile(r"\s*\(live\)", re.IGNORECASE),
    re.compile(r"\s*\([^()]*?version\)", re.IGNORECASE),
    re.compile(r"\s*-\s*(?:\d{4}\s+)?remaster(?:ed)?(?:\s+\d{4})?", re.IGNORECASE),
    re.compile(r"\s*\[[^\[\]]*?\]"),
]

FEATURED_ARTIST_PATTERNS = [
    re.compile(r"\(feat\.?\s+([^)]+)\)", re.IGNORECASE),
    re.compile(r"\(ft\.?\s+([^)]+)\)", re.IGNORECASE),
    re.compile(r"\(featuring\s+([^)]+)\)", re.IGNORECASE),
]


# =============================================================================
# STRING PRIMITIVES
# =============================================================================


def normalize(value: str | None) -> str:
    """Lowercase, strip everything but ``[a-z0-9]`` and whitespace, collapse spaces."""
    if not value:
        return ""
    lowered = _NON_ALNUM.sub("", str(value).lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def edit_distance(a: str | None, b: str | None) -> int:
    """Levenshtein distance with unit insertion, deletion and substitution costs.

    The strings are compared as given; callers normalize first when needed.
    """
    return Levenshtein.distance(a or "", b or "")


def similarity(a: str | None, b: str | None) -> float:
    """Similarity in [0, 1] of two strings after normalization.

    Equal normalized strings score 1.0 (including two strings that normalize
    to empty); otherwise an empty side scores 0.0.
    """
    normalized_a = normalize(a)
    normalized_b = normalize(b)

    if normalized_a == normalized_b:
        return 1.0
    if not normalized_a or not normalized_b:
        return 0.0

    max_length = max(len(normalized_a), len(normalized_b))
    return 1.0 - edit_distance(normalized_a, normalized_b) / max_length


def duration_close(
    duration1_ms: int,
    duration2_ms: int,
    tolerance_seconds: float = EXACT_DURATION_TOLERANCE_SECONDS,
) -> bool:
    """Whether two millisecond durations differ by at most ``tolerance_seconds``."""
    return abs(duration1_ms - duration2_ms) <= tolerance_seconds * 1000


def clean_title(title: str | None) -> str:
    """Strip remaster, live, radio edit, version and bracketed qualifiers.

    ``"Title (2011 Remaster)"`` and ``"Title"`` clean to the same string.
    Only meant for track titles.
    """
    cleaned = title or ""
    for pattern in TITLE_VARIATION_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    return cleaned.strip()


def extract_featured_artists(title: str | None) -> list[str]:
    """Names credited as featured in a title, e.g. ``"Song (feat. A & B)"``."""
    artists: list[str] = []
    for pattern in FEATURED_ARTIST_PATTERNS:
        for match in pattern.finditer(title or ""):
            artists.extend(
                name.strip() for name in re.split(r"[,&]", match.group(1)) if name.strip()
            )
    return artists


def release_year(date: str | None) -> int | None:
    """Leading four-digit year of a ``YYYY[-MM[-DD]]`` date, if any."""
    if not date:
        return None
    match = _YEAR.match(str(date))
    return int(match.group(1)) if match else None


# =============================================================================
# SIGNAL SCORES
# =============================================================================


def duration_score(duration1_ms: int | None, duration2_ms: int | None) -> float:
    """1.0 within the fuzzy tolerance, then linear decay to 0 at a 30s difference."""
    if duration1_ms is None or duration2_ms is None:
        return NEUTRAL_SCORE
    if duration_close(duration1_ms, duration2_ms, FUZZY_DURATION_TOLERANCE_SECONDS):
        return 1.0
    return max(0.0, 1.0 - abs(duration1_ms - duration2_ms) / FUZZY_DURATION_DECAY_MS)


def release_year_score(year1: int | None, year2: int | None) -> float:
    """Closeness of two release years; re-releases a year apart still score high."""
    if year1 is None or year2 is None:
        return NEUTRAL_SCORE

    diff = abs(year1 - year2)
    if diff == 0:
        return 1.0
    if diff == 1:
        return 0.9
    if diff <= 3:
        return 0.7
    return 0.3


def artist_in(name: str, candidates: Iterable[str]) -> bool:
    """Whether ``name`` equals any of ``candidates`` after normalization."""
    target = normalize(name)
    return any(normalize(candidate) == target for candidate in candidates)


# =============================================================================
# CONFIDENCE SCORING
# =============================================================================


def score_track_candidate(
    source: SourceTrack, candidate: TargetCandidate
) -> ConfidenceEvidence:
    """Weighted track confidence: title 0.5, artist 0.3, duration 0.1, album 0.1."""
    title_similarity = similarity(clean_title(source.name), clean_title(candidate.name))
    artist_similarity = similarity(source.primary_artist, candidate.primary_artist)
    duration = duration_score(source.duration_ms, candidate.duration_ms)
    album_similarity = (
        similarity(source.album, candidate.album)
        if source.album and candidate.album
        else NEUTRAL_SCORE
    )

    score = (
        title_similarity * TRACK_WEIGHTS["title"]
        + artist_similarity * TRACK_WEIGHTS["artist"]
        + duration * TRACK_WEIGHTS["duration"]
        + album_similarity * TRACK_WEIGHTS["album"]
    )

    return ConfidenceEvidence(
        score=score,
        title_similarity=title_similarity,
        artist_similarity=artist_similarity,
        duration_score=duration,
        album_similarity=album_similarity,
    )


def score_album_candidate(
    source: SourceAlbum, candidate: TargetCandidate
) -> ConfidenceEvidence:
    """Weighted album confidence: title 0.6, best artist 0.3, release year 0.1."""
    title_similarity = similarity(source.name, candidate.name)
    artist_similarity = max(
        (similarity(source.primary_artist, artist) for artist in candidate.artists),
        default=0.0,
    )
    year = release_year_score(
        release_year(source.release_date), release_year(candidate.release_date)
    )

    score = (
        title_similarity * ALBUM_WEIGHTS["title"]
        + artist_similarity * ALBUM_WEIGHTS["artist"]
        + year * ALBUM_WEIGHTS["year"]
    )

    return ConfidenceEvidence(
        score=score,
        title_similarity=title_similarity,
        artist_similarity=artist_similarity,
        year_score=year,
    )


def score_artist_candidate(
    source: SourceArtist, candidate: TargetCandidate
) -> ConfidenceEvidence:
    """Artist confidence is plain name similarity."""
    name_similarity = similarity(source.name, candidate.name)
    return ConfidenceEvidence(score=name_similarity, title_similarity=name_similarity)


def rank_candidates[S](
    source: S,
    candidates: Sequence[TargetCandidate],
    scorer: Callable[[S, TargetCandidate], ConfidenceEvidence],
) -> list[tuple[TargetCandidate, ConfidenceEvidence]]:
    """Score every candidate, best first. Equal scores keep search order."""
    scored = [(candidate, scorer(source, candidate)) for candidate in candidates]
    return sorted(scored, key=lambda pair: pair[1].score, reverse=True)
