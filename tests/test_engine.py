"""Tests for the lyrics engine"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from lyricsync.config.settings import PlaybackConfig
from lyricsync.engine import LyricsEngine
from lyricsync.exceptions import ProviderError, TrackTypeError
from lyricsync.lyrics.models import LyricsType
from lyricsync.lyrics.processor import (
    FALLBACK_ENABLED_KEY,
    create_fallback_settings_store,
    create_lyrics_stores
)
from lyricsync.spotify.models import DJSong, LocalSong, LocalSongDetails, StreamedSong
from lyricsync.sync.position import ManualPositionSource


@pytest.fixture
def engine_parts(memory_backend, song_details):
    track_information = Mock()
    track_information.get_song_details = AsyncMock(return_value=song_details)
    primary = Mock()
    primary.fetch = AsyncMock(return_value=None)
    lrclib = Mock()
    lrclib.find_best = AsyncMock(return_value=(None, None))
    return track_information, primary, lrclib


@pytest.fixture
def engine(engine_parts, memory_backend):
    track_information, primary, lrclib = engine_parts
    return LyricsEngine(
        track_information=track_information,
        primary=primary,
        lrclib=lrclib,
        stores=create_lyrics_stores(memory_backend),
        fallback_settings=create_fallback_settings_store(memory_backend),
        position_source=ManualPositionSource(),
        playback_config=PlaybackConfig()
    )


class TestSongChange:

    @pytest.mark.asyncio
    async def test_loads_details_and_lyrics(self, engine, engine_parts, streamed_song, song_details,
                                            line_lyrics, record_events):
        """Test loads details and lyrics"""
        _, primary, _ = engine_parts
        primary.fetch.return_value = line_lyrics
        recorder = record_events(engine.events)

        engine.on_song_change(streamed_song)
        await engine.wait_idle()

        assert engine.state.song is streamed_song
        assert engine.state.song_details == song_details
        assert engine.state.have_song_details_loaded is True
        assert engine.state.song_lyrics.type is LyricsType.LINE
        assert engine.state.have_song_lyrics_loaded is True

        names = recorder.names()
        assert names[0] == 'song_changed'
        assert recorder.count('song_details_loaded') == 1
        assert recorder.count('song_lyrics_loaded') == 2
        assert names[-1] == 'song_lyrics_loaded'

    @pytest.mark.asyncio
    async def test_song_changed_fires_with_state_reset(self, engine, streamed_song, other_song):
        """Test song changed fires with state reset"""
        seen = []
        engine.on_song_change(streamed_song)
        await engine.wait_idle()

        engine.events.song_changed.connect(lambda: seen.append((
            engine.state.song,
            engine.state.song_details,
            engine.state.have_song_details_loaded,
            engine.state.have_song_lyrics_loaded,
            engine.state.clock.current_timestamp
        )))
        engine.on_song_change(other_song)
        await engine.wait_idle()

        assert seen == [(other_song, None, False, False, 0.0)]

    @pytest.mark.asyncio
    async def test_details_failure_publishes_none(self, engine, engine_parts, streamed_song):
        """Test details failure publishes None"""
        track_information, _, _ = engine_parts
        track_information.get_song_details.side_effect = ProviderError("metadata unavailable", status=503)

        engine.on_song_change(streamed_song)
        await engine.wait_idle()

        assert engine.state.song_details is None
        assert engine.state.have_song_details_loaded is True

    @pytest.mark.asyncio
    async def test_local_song_uses_host_details(self, engine, engine_parts):
        """Test local song uses host details"""
        track_information, primary, _ = engine_parts
        song = LocalSong(uri="spotify:local:Artist:Album:Song:200", duration=200.0)
        details = LocalSongDetails(name="Song", album="Album", artists=["Artist"])

        engine.on_song_change(song, local_details=details)
        await engine.wait_idle()

        assert engine.state.song_details is details
        assert engine.state.song_lyrics is None
        assert engine.state.have_song_lyrics_loaded is True
        track_information.get_song_details.assert_not_called()
        primary.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_nothing_playing(self, engine):
        """Test nothing playing"""
        engine.on_song_change(None)
        await engine.wait_idle()

        assert engine.state.song is None
        assert engine.state.have_song_details_loaded is True
        assert engine.state.have_song_lyrics_loaded is True

    @pytest.mark.asyncio
    async def test_change_mid_fetch_discards_old_details(self, engine, engine_parts, streamed_song,
                                                         other_song, song_details):
        """Test change mid-fetch discards old details"""
        track_information, _, _ = engine_parts
        release = asyncio.Event()

        async def slow_details(song):
            if song is streamed_song:
                await release.wait()
            return song_details

        track_information.get_song_details.side_effect = slow_details

        engine.on_song_change(streamed_song)
        await asyncio.sleep(0)
        engine.on_song_change(None)
        release.set()
        await engine.wait_idle()

        assert engine.state.song is None
        assert engine.state.song_details is None

    @pytest.mark.asyncio
    async def test_fallback_waits_for_details(self, engine, engine_parts, streamed_song, song_details,
                                              line_lyrics):
        """Test fallback waits for details"""
        track_information, _, lrclib = engine_parts
        release = asyncio.Event()

        async def slow_details(song):
            await release.wait()
            return song_details

        track_information.get_song_details.side_effect = slow_details
        lrclib.find_best.return_value = (Mock(), line_lyrics)

        engine.on_song_change(streamed_song)
        await asyncio.sleep(0.01)
        lrclib.find_best.assert_not_called()

        release.set()
        await engine.wait_idle()

        lrclib.find_best.assert_awaited_once()
        assert engine.state.song_lyrics.lyrics == line_lyrics

    @pytest.mark.asyncio
    async def test_back_to_back_changes_resolve_each_song(self, engine, engine_parts, streamed_song,
                                                          other_song, line_lyrics):
        """Test two changes in one tick resolve each song once"""
        track_information, primary, _ = engine_parts
        primary.fetch.return_value = line_lyrics

        engine.on_song_change(streamed_song)
        engine.on_song_change(other_song)
        await engine.wait_idle()

        fetched = [call.args[0] for call in primary.fetch.await_args_list]
        assert sorted(fetched) == sorted([streamed_song.id, other_song.id])
        assert engine.state.song is other_song
        assert engine.state.song_lyrics.lyrics == line_lyrics
        assert engine.state.have_song_lyrics_loaded is True

    @pytest.mark.asyncio
    async def test_unexpected_details_error_finishes_loading(self, engine, engine_parts, streamed_song,
                                                             record_events):
        """Test a crashing details lookup still marks details as loaded"""
        track_information, _, _ = engine_parts
        track_information.get_song_details.side_effect = AttributeError("'str' object has no attribute 'get'")
        recorder = record_events(engine.events)

        engine.on_song_change(streamed_song)
        await engine.wait_idle()

        assert engine.state.song_details is None
        assert engine.state.have_song_details_loaded is True
        assert recorder.count('song_details_loaded') == 1
        assert engine.state.have_song_lyrics_loaded is True


class TestRefresh:

    @pytest.mark.asyncio
    async def test_refresh_without_song_is_noop(self, engine, engine_parts, record_events):
        """Test refresh without a song does nothing"""
        _, primary, _ = engine_parts
        recorder = record_events(engine.events)

        assert engine.refresh_current_lyrics() is None
        await engine.wait_idle()

        assert recorder.calls == []
        primary.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_refresh_refetches_current_song(self, engine, engine_parts, streamed_song, syllable_lyrics):
        """Test refresh refetches current song"""
        _, primary, _ = engine_parts
        engine.on_song_change(streamed_song)
        await engine.wait_idle()
        primary.fetch.return_value = syllable_lyrics

        task = engine.refresh_current_lyrics()
        await task

        assert primary.fetch.await_count == 2
        assert engine.state.song_lyrics.type is LyricsType.SYLLABLE


class TestFallbackSetting:

    @pytest.mark.asyncio
    async def test_defaults_to_enabled(self, engine):
        """Test defaults to enabled"""
        await engine.start()
        try:
            assert engine.get_lrclib_fallback_enabled() is True
        finally:
            await engine.stop()

    @pytest.mark.asyncio
    async def test_disable_is_persisted(self, engine, memory_backend):
        """Test disable is persisted"""
        await engine.set_lrclib_fallback_enabled(False)

        reloaded = create_fallback_settings_store(memory_backend)
        await reloaded.load()

        assert engine.get_lrclib_fallback_enabled() is False
        assert reloaded.items[FALLBACK_ENABLED_KEY] is False

    @pytest.mark.asyncio
    async def test_disabled_fallback_is_not_searched(self, engine, engine_parts, streamed_song):
        """Test disabled fallback is not searched"""
        _, _, lrclib = engine_parts
        await engine.set_lrclib_fallback_enabled(False)

        engine.on_song_change(streamed_song)
        await engine.wait_idle()

        lrclib.find_best.assert_not_called()
        assert engine.state.song_lyrics is None


class TestClockStrings:

    def test_short_track(self, engine):
        """Test short track"""
        engine.state.song = StreamedSong.from_uri("spotify:track:4uLU6hMCjMI75M1A2tKUQC", duration=215.0)
        engine.state.clock.current_timestamp = 65.4

        assert engine.get_duration_string() == "3:35"
        assert engine.get_timestamp_string() == "1:05"

    def test_long_track_pads_minutes(self, engine):
        """Test long track pads minutes"""
        engine.state.song = LocalSong(uri="spotify:local:a:b:c:725", duration=725.0)
        engine.state.clock.current_timestamp = 65.0

        assert engine.get_duration_string() == "12:05"
        assert engine.get_timestamp_string() == "01:05"

    def test_dj_track_has_no_clock(self, engine):
        """Test DJ track has no clock"""
        engine.state.song = DJSong(uri="spotify:track:dj", action="Intro")

        with pytest.raises(TrackTypeError):
            engine.get_duration_string()
        with pytest.raises(TrackTypeError):
            engine.get_timestamp_string()


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_context_manager_runs_clock(self, engine):
        """Test context manager runs clock"""
        async with engine:
            assert engine.clock.is_running
        assert not engine.clock.is_running

    @pytest.mark.asyncio
    async def test_status_reports_pipeline(self, engine, streamed_song):
        """Test status reports pipeline"""
        engine.on_song_change(streamed_song)
        await engine.wait_idle()

        status = engine.get_status()

        assert status['song'] == streamed_song.uri
        assert status['lyrics_loaded'] is True
        assert status['lyrics_type'] is None
        assert status['pipeline']['resolutions'] == 1
        assert status['pipeline']['fallback_enabled'] is True
