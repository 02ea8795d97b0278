"""
Lyrics package: models, providers, matching and parsing

Key components:
- models: the closed set of lyrics documents (Static, Line, Syllable) and
  their wire format
- PrimaryLyricsProvider: the primary lyrics service
- LrclibProvider: LRCLIB fallback search with fuzzy match scoring
- matching: pure similarity and composite score functions
- lrc: LRC transcript parsing

The resolution pipeline lives in lyricsync.lyrics.processor and is imported
from there; it depends on the engine state, which itself depends on the
models exported here.

Usage:
    provider = LrclibProvider(http)
    candidate, lyrics = await provider.find_best(query)
"""

from .models import (
    LyricsType,
    TextLine,
    Interlude,
    LineVocal,
    Syllable,
    SyllableVocal,
    SyllableVocalSet,
    StaticLyrics,
    LineSyncedLyrics,
    SyllableSyncedLyrics,
    ProviderLyrics,
    TransformedLyrics,
    LyricsTransformer,
    PassthroughTransformer,
    lyrics_from_dict,
    lyrics_to_dict,
    lyrics_type_of,
    display_lines
)
from .lrc import parse_lrc, parse_synced_lyrics, parse_plain_lyrics, has_timestamps
from .matching import MatchQuery, MatchCandidate, score_candidate, rank, best_match
from .primary import PrimaryLyricsProvider
from .lrclib import LrclibProvider, LrclibResult

__all__ = [
    # Models
    'LyricsType',
    'TextLine',
    'Interlude',
    'LineVocal',
    'Syllable',
    'SyllableVocal',
    'SyllableVocalSet',
    'StaticLyrics',
    'LineSyncedLyrics',
    'SyllableSyncedLyrics',
    'ProviderLyrics',
    'TransformedLyrics',
    'LyricsTransformer',
    'PassthroughTransformer',
    'lyrics_from_dict',
    'lyrics_to_dict',
    'lyrics_type_of',
    'display_lines',

    # Parsing
    'parse_lrc',
    'parse_synced_lyrics',
    'parse_plain_lyrics',
    'has_timestamps',

    # Matching
    'MatchQuery',
    'MatchCandidate',
    'score_candidate',
    'rank',
    'best_match',

    # Providers
    'PrimaryLyricsProvider',
    'LrclibProvider',
    'LrclibResult',
]
