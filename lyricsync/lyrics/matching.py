"""
Fuzzy matching of fallback search results against the playing track

LRCLIB is searched by metadata, so its results have to be validated before
their lyrics are trusted. Every candidate is compared to the track on four
axes and combined into one composite score:

    score = 4 * track + 3 * artist + 2 * duration + 1 * album (+ 0.5 if synced)

Track name weighs most, artist second, duration acts as a sanity check and
album is a bonus. Scoring alone never accepts a candidate: `is_acceptable`
applies hard thresholds on the individual similarities and the duration gap.

All functions here are pure.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

from ..utils.helpers import calculate_similarity

# Weights of the composite score
TRACK_WEIGHT = 4.0
ARTIST_WEIGHT = 3.0
DURATION_WEIGHT = 2.0
ALBUM_WEIGHT = 1.0
SYNCED_BONUS = 0.5

# Candidates further off than this are never accepted, whatever their score
MAX_DURATION_DELTA = 15.0

_FEATURING_PATTERNS = [
    re.compile(r'\(feat\..*?\)'),
    re.compile(r'\[feat\..*?\]'),
    re.compile(r'\(ft\..*?\)'),
    re.compile(r'\[ft\..*?\]'),
]
_REMASTER_SUFFIX = re.compile(r'\s-\s.*remaster.*')
_NON_ALPHANUMERIC = re.compile(r'[\W_]+')
_ARTIST_SEPARATORS = re.compile(r'[,&]| x | feat\. | ft\. ', re.IGNORECASE)


def normalize_string(value: str) -> str:
    """
    Reduce a title or name to its comparable core

    Lower-cases, removes "(feat. ...)"/"[ft. ...]" annotations and trailing
    " - ... Remastered ..." suffixes, then drops everything that is not a
    letter or digit.
    """
    normalized = (value or "").lower()
    for pattern in _FEATURING_PATTERNS:
        normalized = pattern.sub('', normalized)
    normalized = _REMASTER_SUFFIX.sub('', normalized)
    return _NON_ALPHANUMERIC.sub('', normalized)


def string_similarity(a: str, b: str) -> float:
    """Similarity of two strings after normalization"""
    return calculate_similarity(normalize_string(a), normalize_string(b))


def split_artists(value: str) -> List[str]:
    """Split a credit like "A & B feat. C" into normalized, non-empty artist tokens"""
    tokens = (normalize_string(token) for token in _ARTIST_SEPARATORS.split(value or ""))
    return [token for token in tokens if token]


def calculate_artist_similarity(a: str, b: str) -> float:
    """
    Compare two artist credits

    The result is the better of the direct similarity of the whole credits
    and the best similarity between any artist of one credit and any artist
    of the other, so "A & B" matches "B, A" and a shared collaborator counts.
    """
    direct = string_similarity(a, b)

    tokens_a = split_artists(a)
    tokens_b = split_artists(b)
    if not tokens_a or not tokens_b:
        return direct

    best_token = max(
        calculate_similarity(token_a, token_b)
        for token_a in tokens_a
        for token_b in tokens_b
    )
    return max(direct, best_token)


def duration_score(delta_seconds: float) -> float:
    """Step score for how far a candidate's duration is from the track's"""
    delta = abs(delta_seconds)
    if delta <= 2:
        return 1.0
    if delta <= 5:
        return 0.8
    if delta <= 10:
        return 0.5
    return 0.0


def composite_score(
    track_similarity: float,
    artist_similarity: float,
    duration_delta_seconds: float,
    album_similarity: float,
    has_timed_lyrics: bool
) -> float:
    score = (
        TRACK_WEIGHT * track_similarity
        + ARTIST_WEIGHT * artist_similarity
        + DURATION_WEIGHT * duration_score(duration_delta_seconds)
        + ALBUM_WEIGHT * album_similarity
    )
    if has_timed_lyrics:
        score += SYNCED_BONUS
    return score


@dataclass(frozen=True)
class MatchQuery:
    """What the playing track looks like"""
    track_name: str
    artist_name: str
    album_name: str
    duration: float


@dataclass
class MatchCandidate:
    """
    A scored search result

    Attributes:
        candidate_id: Provider's result identifier
        track_similarity: Normalized track name similarity (0-1)
        artist_similarity: Artist credit similarity (0-1)
        album_similarity: Normalized album name similarity (0-1)
        duration_delta_seconds: Absolute duration difference in seconds
        has_timed_lyrics: Whether the result carries time-stamped lyrics
        score: Composite score
        result: The raw result the candidate was built from
    """
    candidate_id: Any
    track_similarity: float
    artist_similarity: float
    album_similarity: float
    duration_delta_seconds: float
    has_timed_lyrics: bool
    score: float
    result: Any = None

    def is_acceptable(self) -> bool:
        return is_acceptable(
            self.track_similarity,
            self.artist_similarity,
            self.album_similarity,
            self.duration_delta_seconds
        )

    def describe(self) -> str:
        return (
            f"score={self.score:.2f} track={self.track_similarity:.2f} "
            f"artist={self.artist_similarity:.2f} album={self.album_similarity:.2f} "
            f"delta={self.duration_delta_seconds:.1f}s"
        )


def is_acceptable(
    track_similarity: float,
    artist_similarity: float,
    album_similarity: float,
    duration_delta_seconds: float
) -> bool:
    """
    Hard acceptance thresholds for a candidate

    The duration must be within 15 seconds, and either the track and artist
    both match well, or the track matches very well and the artist or the
    album (for "Various Artists" style credits) matches reasonably.
    """
    if abs(duration_delta_seconds) >= MAX_DURATION_DELTA:
        return False

    return (
        (track_similarity > 0.8 and artist_similarity > 0.7)
        or (track_similarity > 0.9 and artist_similarity > 0.5)
        or (track_similarity > 0.9 and album_similarity > 0.8)
    )


def score_candidate(
    query: MatchQuery,
    candidate_id: Any,
    track_name: str,
    artist_name: str,
    album_name: str,
    duration: float,
    has_timed_lyrics: bool,
    result: Any = None
) -> MatchCandidate:
    track_similarity = string_similarity(query.track_name, track_name)
    artist_similarity = calculate_artist_similarity(query.artist_name, artist_name)
    album_similarity = string_similarity(query.album_name, album_name)
    delta = abs(float(duration or 0) - float(query.duration or 0))

    return MatchCandidate(
        candidate_id=candidate_id,
        track_similarity=track_similarity,
        artist_similarity=artist_similarity,
        album_similarity=album_similarity,
        duration_delta_seconds=delta,
        has_timed_lyrics=has_timed_lyrics,
        score=composite_score(track_similarity, artist_similarity, delta, album_similarity, has_timed_lyrics),
        result=result
    )


def rank(candidates: Iterable[MatchCandidate]) -> List[MatchCandidate]:
    """Order by score, best first; equal scores keep their discovery order"""
    return sorted(candidates, key=lambda candidate: candidate.score, reverse=True)


def best_match(candidates: Iterable[MatchCandidate]) -> Optional[MatchCandidate]:
    """
    Highest ranked candidate if it passes the acceptance thresholds

    Only the top candidate is considered; a lower-ranked acceptable one is
    not promoted.
    """
    ranked = rank(candidates)
    if not ranked or not ranked[0].is_acceptable():
        return None
    return ranked[0]
