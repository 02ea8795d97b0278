"""
Lyrics resolution pipeline with caching, fallback search and stale-result protection

This module turns "the current song changed" into "these are the lyrics to
display". It coordinates the primary lyrics service, the LRCLIB fallback,
the lyrics transformer and three expiring caches, and publishes the outcome
into the engine state only while the song it was resolving is still current.

Resolution Stages:

1. Reset:
   - Current lyrics are cleared and song_lyrics_loaded fires so views show
     a loading state
   - Items that are not streamed tracks publish "no lyrics" immediately

2. Primary Lyrics:
   - Provider lyrics cache lookup by track id (skipped on forced refresh)
   - Fetch from the primary service; failures are logged and treated as
     "no primary lyrics"
   - The outcome is cached, False included, so a miss is not re-queried

3. Fallback Eligibility:
   - The fallback flag is enabled
   - The primary outcome is absent, Line or Static (Syllable is never
     downgraded)
   - Song details have finished loading and are available

4. Fallback Lyrics:
   - LRCLIB cache lookup (a cached False skips the search)
   - Five concurrent searches, scoring, and acceptance thresholds
   - Static fallback lyrics never replace timed or static primary lyrics
   - The accepted lyrics, or False, are cached

5. Transformation:
   - The surviving lyrics are transformed for display
   - The transformed result, or False, is cached per track

6. Publish:
   - Only when the epoch captured at stage 1 is still current

Concurrency:
Resolutions are never cancelled. When the song changes mid-flight the old
resolution keeps running, may still write caches, and is discarded at the
publish step by the TrackEpochGuard.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .lrclib import LrclibProvider
from .matching import MatchQuery
from .models import (
    LyricsTransformer,
    LyricsType,
    ProviderLyrics,
    TransformedLyrics,
    lyrics_from_dict,
    lyrics_to_dict,
    lyrics_type_of
)
from .primary import PrimaryLyricsProvider
from ..cache.backends import StorageBackend
from ..cache.store import Expiration, ExpireStore, InstantStore
from ..config.settings import get_settings
from ..exceptions import ProviderError
from ..spotify.models import Song, StreamedSong
from ..state import EngineEvents, EngineState
from ..sync.epoch import TrackEpoch, TrackEpochGuard
from ..utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_SETTINGS_NAMESPACE = "lyricsync/LrclibFallback"
FALLBACK_ENABLED_KEY = "Enabled"

# Lyrics outcome as stored in caches: lyrics, or False for "checked, nothing found"
LyricsOutcome = Union[ProviderLyrics, bool]


@dataclass
class LyricsStores:
    """The three expiring caches the pipeline reads and writes"""
    provider: ExpireStore
    transformed: ExpireStore
    lrclib: ExpireStore


def create_lyrics_stores(backend: StorageBackend) -> LyricsStores:
    """Build the lyrics caches with the configured versions and lifetimes"""
    cache = get_settings().cache
    return LyricsStores(
        provider=ExpireStore(
            namespace="Player_ProviderLyrics",
            version=cache.provider_lyrics_version,
            expiration=Expiration.parse(cache.provider_lyrics_expiration),
            backend=backend,
            encode=lyrics_to_dict,
            decode=lyrics_from_dict
        ),
        transformed=ExpireStore(
            namespace="Player_TransformedLyrics",
            version=cache.transformed_lyrics_version,
            expiration=Expiration.parse(cache.transformed_lyrics_expiration),
            backend=backend,
            encode=lambda transformed: transformed.to_dict(),
            decode=TransformedLyrics.from_dict
        ),
        lrclib=ExpireStore(
            namespace="Player_LrclibLyrics",
            version=cache.lrclib_lyrics_version,
            expiration=Expiration.parse(cache.lrclib_lyrics_expiration),
            backend=backend,
            encode=lyrics_to_dict,
            decode=lyrics_from_dict
        ),
    )


def create_fallback_settings_store(backend: StorageBackend) -> InstantStore:
    """InstantStore holding the LRCLIB fallback flag"""
    settings = get_settings()
    return InstantStore(
        namespace=FALLBACK_SETTINGS_NAMESPACE,
        version=settings.cache.fallback_settings_version,
        defaults={FALLBACK_ENABLED_KEY: settings.services.lrclib_enabled_default},
        backend=backend
    )


def is_fallback_improvement(primary: LyricsOutcome, fallback: ProviderLyrics) -> bool:
    """
    Whether fallback lyrics may replace the primary outcome

    Anything beats no lyrics. When the primary service returned Static or
    Line lyrics, only timed fallback lyrics are taken.
    """
    primary_type = lyrics_type_of(primary)
    if primary_type is None:
        return True
    if primary_type is LyricsType.SYLLABLE:
        return False
    return fallback.type is not LyricsType.STATIC


class LyricsResolutionPipeline:
    """
    Resolves and publishes the lyrics of the engine's current song

    Args:
        state: Engine state the result is published into
        events: Engine events; song_lyrics_loaded fires on every publish
        epochs: Guard deciding whether a finished resolution is still wanted
        primary: Primary lyrics service client
        lrclib: LRCLIB fallback search
        transformer: Turns provider lyrics into display-ready lyrics
        stores: Lyrics caches
        fallback_settings: Store holding the fallback flag
        wait_for_details: Awaitable hook returning once song details for the
            current song finished loading; None means do not wait
    """

    def __init__(
        self,
        state: EngineState,
        events: EngineEvents,
        epochs: TrackEpochGuard,
        primary: PrimaryLyricsProvider,
        lrclib: LrclibProvider,
        transformer: LyricsTransformer,
        stores: LyricsStores,
        fallback_settings: InstantStore,
        wait_for_details: Optional[Callable[[], Awaitable[None]]] = None
    ):
        self.state = state
        self.events = events
        self.epochs = epochs
        self.primary = primary
        self.lrclib = lrclib
        self.transformer = transformer
        self.stores = stores
        self.fallback_settings = fallback_settings
        self.wait_for_details = wait_for_details

        self.stats = {
            'resolutions': 0,
            'resolution_failures': 0,
            'provider_cache_hits': 0,
            'primary_failures': 0,
            'fallback_searches': 0,
            'fallback_used': 0,
            'transform_failures': 0,
            'stale_results': 0,
        }

    @property
    def fallback_enabled(self) -> bool:
        return bool(self.fallback_settings.items.get(FALLBACK_ENABLED_KEY, True))

    async def load_song_lyrics(
        self,
        force_refresh: bool = False,
        epoch: Optional[TrackEpoch] = None,
        song: Optional[Song] = None
    ) -> None:
        """
        Resolve lyrics for a song and publish them

        Never raises: provider, cache and transform failures, and anything
        unexpected while resolving, publish song_lyrics=None with
        have_song_lyrics_loaded=True.

        Args:
            force_refresh: Skip every cache read; results are still written back
            epoch: Epoch the song was switched to; the current song and epoch
                are used when omitted
            song: Song to resolve for the given epoch
        """
        if epoch is None:
            epoch = self.epochs.current()
            song = self.state.song
        self.stats['resolutions'] += 1

        if self.epochs.is_current(epoch):
            self.state.song_lyrics = None
            self.state.have_song_lyrics_loaded = False
            self.events.song_lyrics_loaded.fire()

        if not isinstance(song, StreamedSong):
            self._publish(epoch, None)
            return

        try:
            lyrics = await self._resolve(song, epoch, force_refresh)
        except Exception as e:
            logger.error(f"Failed to resolve lyrics for {song.id}: {e.__class__.__name__}: {e}")
            self.stats['resolution_failures'] += 1
            lyrics = None
        self._publish(epoch, lyrics)

    async def _resolve(
        self,
        song: StreamedSong,
        epoch: TrackEpoch,
        force_refresh: bool
    ) -> Optional[TransformedLyrics]:
        provider_lyrics = await self._load_provider_lyrics(song, force_refresh)
        stored_transformed = None if force_refresh else await self.stores.transformed.get_item(song.id)

        if await self._is_fallback_eligible(provider_lyrics, epoch):
            fallback_lyrics = await self._load_fallback_lyrics(song, provider_lyrics, force_refresh)
            if fallback_lyrics is not None:
                transformed = await self._transform(fallback_lyrics)
                if transformed is not None:
                    await self.stores.transformed.set_item(song.id, transformed)
                    self.stats['fallback_used'] += 1
                    return transformed

        if stored_transformed is not None:
            return stored_transformed or None

        transformed = None
        if provider_lyrics is not False:
            transformed = await self._transform(provider_lyrics)
        await self.stores.transformed.set_item(song.id, transformed or False)
        return transformed

    async def _load_provider_lyrics(self, song: StreamedSong, force_refresh: bool) -> LyricsOutcome:
        if not force_refresh:
            cached = await self.stores.provider.get_item(song.id)
            if cached is not None:
                self.stats['provider_cache_hits'] += 1
                return cached

        try:
            lyrics = await self.primary.fetch(song.id)
        except ProviderError as e:
            logger.warning(f"Failed to load lyrics for {song.id}: {e}")
            self.stats['primary_failures'] += 1
            lyrics = None

        outcome = lyrics if lyrics is not None else False
        await self.stores.provider.set_item(song.id, outcome)
        return outcome

    async def _is_fallback_eligible(self, provider_lyrics: LyricsOutcome, epoch: TrackEpoch) -> bool:
        if not self.fallback_enabled:
            return False
        if lyrics_type_of(provider_lyrics) is LyricsType.SYLLABLE:
            return False

        if self.wait_for_details is not None:
            await self.wait_for_details()

        # Details now belong to a newer song
        if not self.epochs.is_current(epoch):
            return False

        return self.state.have_song_details_loaded and self.state.song_details is not None

    async def _load_fallback_lyrics(
        self,
        song: StreamedSong,
        provider_lyrics: LyricsOutcome,
        force_refresh: bool
    ) -> Optional[ProviderLyrics]:
        # Captured before the first suspension point
        details = self.state.song_details

        if not force_refresh:
            cached = await self.stores.lrclib.get_item(song.id)
            if cached is False:
                logger.debug(f"LRCLIB: cached miss for {song.id}")
                return None
            if cached is not None:
                return cached

        query = MatchQuery(
            track_name=details.name,
            artist_name=details.primary_artist_name,
            album_name=details.album_name,
            duration=song.duration
        )
        self.stats['fallback_searches'] += 1
        _, lyrics = await self.lrclib.find_best(query)

        if lyrics is not None and is_fallback_improvement(provider_lyrics, lyrics):
            await self.stores.lrclib.set_item(song.id, lyrics)
            return lyrics

        if lyrics is not None:
            logger.info(
                f"LRCLIB: {lyrics.type.value} lyrics would not improve on "
                f"{lyrics_type_of(provider_lyrics).value} lyrics for {song.id}"
            )
        await self.stores.lrclib.set_item(song.id, False)
        return None

    async def _transform(self, lyrics: ProviderLyrics) -> Optional[TransformedLyrics]:
        try:
            return await self.transformer.transform(lyrics)
        except Exception as e:
            # Transformers are pluggable; any failure means nothing displayable
            logger.error(f"Failed to transform {lyrics.type.value} lyrics: {e}")
            self.stats['transform_failures'] += 1
            return None

    def _publish(self, epoch: TrackEpoch, lyrics: Optional[TransformedLyrics]) -> None:
        if not self.epochs.is_current(epoch):
            logger.debug("Song changed while lyrics were loading, discarding result")
            self.stats['stale_results'] += 1
            return

        self.state.song_lyrics = lyrics
        self.state.have_song_lyrics_loaded = True
        self.events.song_lyrics_loaded.fire()

    def get_processing_stats(self) -> Dict[str, Any]:
        return {**self.stats, 'fallback_enabled': self.fallback_enabled}
