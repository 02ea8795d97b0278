"""
Lyrics engine

The LyricsEngine is what a host player talks to. It owns one EngineState
and one set of EngineEvents, and reacts to host notifications:

- on_song_change(song): advance the track epoch, reset state, then load
  song details and lyrics concurrently
- on_play_pause(is_playing): forwarded to the playback clock
- notify_seeked(): immediate position snapshot

Views subscribe to engine.events and read engine.state. Every publish into
the state is guarded by the track epoch, so work that finishes after the
song changed is discarded.

Usage:
    engine = create_engine_from_settings(position_source)
    await engine.start()
    engine.on_song_change(StreamedSong.from_uri(uri, duration=215.0))
    await engine.wait_idle()
    print(engine.state.song_lyrics)
    await engine.stop()
"""

import asyncio
from typing import Any, Awaitable, Dict, Optional, Set

from .cache.backends import StorageBackend, create_backend_from_settings
from .cache.store import InstantStore
from .config.auth import AccessTokenProvider, get_auth
from .config.settings import PlaybackConfig, get_settings
from .exceptions import ProviderError, TrackTypeError
from .lyrics.lrclib import LrclibProvider
from .lyrics.models import LyricsTransformer, PassthroughTransformer
from .lyrics.primary import PrimaryLyricsProvider
from .lyrics.processor import (
    FALLBACK_ENABLED_KEY,
    LyricsResolutionPipeline,
    LyricsStores,
    create_fallback_settings_store,
    create_lyrics_stores
)
from .spotify.client import TrackInformationClient, create_track_information_store
from .spotify.models import DJSong, LocalSong, LocalSongDetails, Song, StreamedSong
from .state import EngineEvents, EngineState
from .sync.clock import PlaybackClockSynchronizer
from .sync.epoch import TrackEpoch, TrackEpochGuard
from .sync.position import PositionSource
from .utils.helpers import format_clock
from .utils.http import AsyncHttpClient
from .utils.logger import get_logger

logger = get_logger(__name__)

# Tracks this long or longer show zero-padded minutes
PADDED_CLOCK_THRESHOLD = 600


class LyricsEngine:
    """
    Coordinates song details, lyrics resolution and the playback clock

    Args:
        track_information: Client for streamed song details
        primary: Primary lyrics service client
        lrclib: LRCLIB fallback search
        stores: Lyrics caches
        fallback_settings: Store holding the fallback flag
        position_source: Authoritative playback position
        transformer: Lyrics transformer, defaults to passing lyrics through
        playback_config: Clock tuning, defaults to the configured values
        http: HTTP client owned by the engine, closed by stop()
    """

    def __init__(
        self,
        track_information: TrackInformationClient,
        primary: PrimaryLyricsProvider,
        lrclib: LrclibProvider,
        stores: LyricsStores,
        fallback_settings: InstantStore,
        position_source: PositionSource,
        transformer: Optional[LyricsTransformer] = None,
        playback_config: Optional[PlaybackConfig] = None,
        http: Optional[AsyncHttpClient] = None
    ):
        self.state = EngineState()
        self.events = EngineEvents()
        self.epochs = TrackEpochGuard()

        self.track_information = track_information
        self.fallback_settings = fallback_settings
        self.pipeline = LyricsResolutionPipeline(
            state=self.state,
            events=self.events,
            epochs=self.epochs,
            primary=primary,
            lrclib=lrclib,
            transformer=transformer or PassthroughTransformer(),
            stores=stores,
            fallback_settings=fallback_settings,
            wait_for_details=self._wait_for_details
        )
        self.clock = PlaybackClockSynchronizer(
            self.state,
            self.events,
            position_source,
            config=playback_config
        )

        self._http = http
        self._tasks: Set[asyncio.Task] = set()
        self._details_task: Optional[asyncio.Task] = None
        self._started = False

    # Lifecycle

    async def start(self) -> None:
        """Load persisted settings and start the playback clock"""
        if self._started:
            return
        await self.fallback_settings.load()
        self.clock.start()
        self._started = True
        logger.debug("Lyrics engine started")

    async def stop(self) -> None:
        """Stop the clock, let in-flight loads finish, release the HTTP session"""
        await self.clock.stop()
        await self.wait_idle()
        if self._http is not None:
            await self._http.close()
        self._started = False
        logger.debug("Lyrics engine stopped")

    async def __aenter__(self) -> 'LyricsEngine':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    def _spawn(self, coroutine: Awaitable[Any]) -> asyncio.Task:
        task = asyncio.ensure_future(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every details and lyrics load started so far has finished"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Host notifications

    def on_song_change(
        self,
        song: Optional[Song],
        local_details: Optional[LocalSongDetails] = None,
        force_refresh: bool = False
    ) -> None:
        """
        Switch to a new playing item

        Must be called from the running event loop. Details and lyrics are
        loaded in the background; song_changed fires before either starts.

        Args:
            song: The new item, None when nothing is playing
            local_details: Metadata the host has for a LocalSong
            force_refresh: Resolve lyrics without reading the lyrics caches
        """
        epoch = self.epochs.advance()

        self.state.song = song
        self.state.song_details = None
        self.state.have_song_details_loaded = False
        self.state.song_lyrics = None
        self.state.have_song_lyrics_loaded = False
        self.clock.on_song_changed()

        logger.debug(f"Song changed to {song.uri if song is not None else 'nothing'}")
        self.events.song_changed.fire()

        self._details_task = self._spawn(self._load_song_details(epoch, song, local_details))
        self._spawn(self.pipeline.load_song_lyrics(force_refresh=force_refresh, epoch=epoch, song=song))

    def on_play_pause(self, is_playing: bool) -> None:
        self.clock.on_play_state_changed(is_playing)

    def notify_seeked(self) -> None:
        self.clock.notify_seeked()

    # Song details

    async def _load_song_details(
        self,
        epoch: TrackEpoch,
        song: Optional[Song],
        local_details: Optional[LocalSongDetails]
    ) -> None:
        details = None

        if isinstance(song, LocalSong):
            details = local_details
        elif isinstance(song, StreamedSong):
            try:
                details = await self.track_information.get_song_details(song)
            except ProviderError as e:
                logger.warning(f"Failed to load song details for {song.id}: {e}")
            except Exception as e:
                logger.error(f"Failed to read song details for {song.id}: {e.__class__.__name__}: {e}")

        if not self.epochs.is_current(epoch):
            return

        self.state.song_details = details
        self.state.have_song_details_loaded = True
        self.events.song_details_loaded.fire()

    async def _wait_for_details(self) -> None:
        task = self._details_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    # Lyrics

    def refresh_current_lyrics(self) -> Optional[asyncio.Task]:
        """
        Resolve the current song's lyrics again, bypassing every cache

        Returns:
            The running resolution, or None when no streamed song is active
        """
        if not isinstance(self.state.song, StreamedSong):
            return None

        logger.info(f"Refreshing lyrics for {self.state.song.id}")
        return self._spawn(self.pipeline.load_song_lyrics(
            force_refresh=True,
            epoch=self.epochs.current(),
            song=self.state.song
        ))

    def get_lrclib_fallback_enabled(self) -> bool:
        return self.pipeline.fallback_enabled

    async def set_lrclib_fallback_enabled(self, enabled: bool) -> None:
        self.fallback_settings.items[FALLBACK_ENABLED_KEY] = bool(enabled)
        await self.fallback_settings.save_changes()

    # Clock formatting

    def _require_timed_song(self, what: str) -> float:
        if isinstance(self.state.song, DJSong):
            raise TrackTypeError(
                f"Cannot get {what} of a DJ track",
                details={'uri': self.state.song.uri}
            )
        return self.state.song.duration if self.state.song is not None else 0.0

    def get_duration_string(self) -> str:
        """
        Raises:
            TrackTypeError: If a DJ segment is playing
        """
        duration = self._require_timed_song("duration")
        return format_clock(duration, pad_minutes=duration >= PADDED_CLOCK_THRESHOLD)

    def get_timestamp_string(self) -> str:
        """
        Raises:
            TrackTypeError: If a DJ segment is playing
        """
        duration = self._require_timed_song("timestamp")
        return format_clock(self.state.clock.current_timestamp, pad_minutes=duration >= PADDED_CLOCK_THRESHOLD)

    def get_status(self) -> Dict[str, Any]:
        song = self.state.song
        lyrics = self.state.song_lyrics
        return {
            'song': song.uri if song is not None else None,
            'details_loaded': self.state.have_song_details_loaded,
            'lyrics_loaded': self.state.have_song_lyrics_loaded,
            'lyrics_type': lyrics.type.value if lyrics is not None else None,
            'timestamp': self.state.clock.current_timestamp,
            'is_playing': self.state.clock.is_playing,
            'pipeline': self.pipeline.get_processing_stats(),
        }


def create_engine_from_settings(
    position_source: PositionSource,
    transformer: Optional[LyricsTransformer] = None,
    backend: Optional[StorageBackend] = None,
    token_provider: Optional[AccessTokenProvider] = None
) -> LyricsEngine:
    """
    Build an engine wired to the configured services and cache

    Raises:
        ConfigError: If credentials or the cache backend are misconfigured
    """
    settings = get_settings()
    backend = backend or create_backend_from_settings()
    token_provider = token_provider or get_auth()
    http = AsyncHttpClient(
        timeout=settings.network.request_timeout,
        user_agent=settings.network.user_agent
    )

    return LyricsEngine(
        track_information=TrackInformationClient(
            token_provider,
            http,
            create_track_information_store(backend)
        ),
        primary=PrimaryLyricsProvider(token_provider, http),
        lrclib=LrclibProvider(http),
        stores=create_lyrics_stores(backend),
        fallback_settings=create_fallback_settings_store(backend),
        position_source=position_source,
        transformer=transformer,
        http=http
    )
