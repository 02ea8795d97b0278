"""
LRCLIB fallback provider

LRCLIB is searched by metadata rather than by track id, so one lookup is
several searches with progressively looser parameters, all sent at once:

1. track + artist + album
2. track + artist
3. track + album (helps artists whose names LRCLIB spells differently)
4. track only
5. free text "track artist"

Results from all strategies are merged by LRCLIB id (first occurrence wins,
so discovery order is strategy order then result order), scored against the
playing track, and the top candidate is used only if it passes the
acceptance thresholds. A failed strategy contributes nothing; it never fails
the lookup.

Requests go through an asyncio-throttle Throttler so bursts of track changes
stay within LRCLIB's fair-use limits.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from asyncio_throttle import Throttler

from .lrc import parse_plain_lyrics, parse_synced_lyrics
from .matching import MatchCandidate, MatchQuery, best_match, rank, score_candidate
from .models import ProviderLyrics
from ..config.settings import get_settings
from ..exceptions import ProviderError
from ..utils.http import AsyncHttpClient
from ..utils.logger import get_logger, log_performance

logger = get_logger(__name__)


@dataclass
class LrclibResult:
    """One LRCLIB search result"""
    id: Any
    track_name: str
    artist_name: str
    album_name: str
    duration: float
    instrumental: bool = False
    plain_lyrics: Optional[str] = None
    synced_lyrics: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> 'LrclibResult':
        """
        Build a result from LRCLIB's JSON

        Raises:
            KeyError: If the record has no id
            ValueError: If the id is not a number or string, or a text field
                holds something other than a string
        """
        record_id = data['id']
        if isinstance(record_id, bool) or not isinstance(record_id, (int, str)):
            raise ValueError(f"id is {type(record_id).__name__}, not a number or string")

        duration = data.get('duration')
        return cls(
            id=record_id,
            track_name=_text_field(data, 'trackName') or "",
            artist_name=_text_field(data, 'artistName') or "",
            album_name=_text_field(data, 'albumName') or "",
            duration=float(duration) if isinstance(duration, (int, float)) else 0.0,
            instrumental=bool(data.get('instrumental', False)),
            plain_lyrics=_text_field(data, 'plainLyrics') or None,
            synced_lyrics=_text_field(data, 'syncedLyrics') or None
        )

    @property
    def has_timed_lyrics(self) -> bool:
        return bool(self.synced_lyrics)


def _text_field(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{key} is {type(value).__name__}, not a string")
    return value


def build_search_strategies(query: MatchQuery) -> List[Dict[str, str]]:
    """Search parameter sets, strictest first"""
    return [
        {'track_name': query.track_name, 'artist_name': query.artist_name, 'album_name': query.album_name},
        {'track_name': query.track_name, 'artist_name': query.artist_name},
        {'track_name': query.track_name, 'album_name': query.album_name},
        {'track_name': query.track_name},
        {'q': f"{query.track_name} {query.artist_name}"},
    ]


class LrclibProvider:
    """
    Searches LRCLIB and picks the best matching lyrics

    Args:
        http: Shared HTTP client
        base_url: LRCLIB root, defaults to the configured instance
        throttler: Request throttler, defaults to the configured rate
    """

    def __init__(
        self,
        http: AsyncHttpClient,
        base_url: Optional[str] = None,
        throttler: Optional[Throttler] = None
    ):
        settings = get_settings()
        self.http = http
        self.base_url = (base_url or settings.services.lrclib_url).rstrip('/')
        self.throttler = throttler or Throttler(
            rate_limit=settings.services.lrclib_rate_limit,
            period=settings.services.lrclib_rate_period
        )

    async def _request(self, params: Dict[str, str]) -> Any:
        async with self.throttler:
            return await self.http.get_json(f"{self.base_url}/api/search", params=params)

    async def _run_strategy(self, params: Dict[str, str]) -> List[Dict[str, Any]]:
        try:
            results = await self._request(params)
        except ProviderError as e:
            logger.warning(f"LRCLIB search failed for {params}: {e}")
            return []

        if not isinstance(results, list):
            logger.debug(f"LRCLIB returned a non-list response for {params}")
            return []
        return results

    @log_performance
    async def search(self, query: MatchQuery) -> List[LrclibResult]:
        """
        Run every search strategy concurrently and merge the results

        Returns:
            Unique results (by LRCLIB id) in discovery order
        """
        batches = await asyncio.gather(
            *(self._run_strategy(params) for params in build_search_strategies(query))
        )

        merged: Dict[Any, LrclibResult] = {}
        for batch in batches:
            for record in batch:
                if not isinstance(record, dict):
                    continue
                try:
                    result = LrclibResult.from_api(record)
                except (KeyError, TypeError, ValueError) as e:
                    logger.debug(f"Skipping malformed LRCLIB record: {e}")
                    continue
                merged.setdefault(result.id, result)

        return list(merged.values())

    def score(self, query: MatchQuery, results: List[LrclibResult]) -> List[MatchCandidate]:
        """Score results against the query, best first"""
        return rank(
            score_candidate(
                query,
                candidate_id=result.id,
                track_name=result.track_name,
                artist_name=result.artist_name,
                album_name=result.album_name,
                duration=result.duration,
                has_timed_lyrics=result.has_timed_lyrics,
                result=result
            )
            for result in results
        )

    async def find_best(self, query: MatchQuery) -> Tuple[Optional[MatchCandidate], Optional[ProviderLyrics]]:
        """
        Find and parse the lyrics of the best acceptable match

        Synced lyrics are preferred; when the accepted result has no usable
        synced transcript its plain lyrics become static lyrics.

        Returns:
            (candidate, lyrics); (None, None) when nothing acceptable was found
        """
        results = await self.search(query)
        if not results:
            logger.info(f"LRCLIB: no results for '{query.track_name}' by {query.artist_name}")
            return None, None

        candidates = self.score(query, results)
        chosen = best_match(candidates)
        if chosen is None:
            top = candidates[0]
            logger.info(
                f"LRCLIB: no good match, best was '{top.result.track_name}' by "
                f"{top.result.artist_name} ({top.describe()})"
            )
            return None, None

        result: LrclibResult = chosen.result
        logger.info(
            f"LRCLIB: selected '{result.track_name}' by {result.artist_name} ({chosen.describe()})"
        )

        lyrics: Optional[ProviderLyrics] = None
        if result.synced_lyrics:
            lyrics = parse_synced_lyrics(result.synced_lyrics)
        if lyrics is None and result.plain_lyrics:
            lyrics = parse_plain_lyrics(result.plain_lyrics)

        return chosen, lyrics
