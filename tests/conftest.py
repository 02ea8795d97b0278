"""Test configuration and fixtures"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from lyricsync.cache.backends import MemoryBackend
from lyricsync.lyrics.models import (
    LineSyncedLyrics,
    LineVocal,
    PassthroughTransformer,
    StaticLyrics,
    Syllable,
    SyllableSyncedLyrics,
    SyllableVocal,
    SyllableVocalSet,
    TextLine
)
from lyricsync.lyrics.processor import (
    LyricsResolutionPipeline,
    create_fallback_settings_store,
    create_lyrics_stores
)
from lyricsync.spotify.models import StreamedSong, StreamedSongDetails
from lyricsync.state import EngineEvents, EngineState
from lyricsync.sync.epoch import TrackEpochGuard


class FakeClock:
    """Manually advanced clock usable wherever a time.time-like callable is expected"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class EventRecorder:
    """Connects to every engine event and records (name, args) in firing order"""

    def __init__(self, events: EngineEvents):
        self.calls = []
        for name in ('song_changed', 'song_details_loaded', 'song_lyrics_loaded',
                     'time_stepped', 'is_playing_changed'):
            getattr(events, name).connect(lambda *args, name=name: self.calls.append((name, args)))

    def names(self):
        return [name for name, _ in self.calls]

    def count(self, name: str) -> int:
        return self.names().count(name)


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def streamed_song():
    return StreamedSong(
        uri="spotify:track:4uLU6hMCjMI75M1A2tKUQC",
        id="4uLU6hMCjMI75M1A2tKUQC",
        internal_id="a6f2b8c1d3e4f5a6b7c8d9e0f1a2b3c4",
        duration=213.0
    )


@pytest.fixture
def other_song():
    return StreamedSong(
        uri="spotify:track:7GhIk7Il098yCjg4BQjzvb",
        id="7GhIk7Il098yCjg4BQjzvb",
        internal_id="b7a3c9d2e4f5a6b7c8d9e0f1a2b3c4d5",
        duration=180.0
    )


@pytest.fixture
def sample_track_information():
    """Track information document as returned by the metadata endpoint"""
    return {
        'gid': 'a6f2b8c1d3e4f5a6b7c8d9e0f1a2b3c4',
        'name': 'Never Gonna Give You Up - Remastered 2022',
        'duration': 213573,
        'external_id': [{'type': 'isrc', 'id': 'GBARL9300135'}],
        'artist': [
            {'gid': '0123456789abcdef0123456789abcdef', 'name': 'Rick Astley'},
        ],
        'album': {
            'gid': 'fedcba9876543210fedcba9876543210',
            'name': 'Whenever You Need Somebody',
            'artist': [{'gid': '0123456789abcdef0123456789abcdef', 'name': 'Rick Astley'}],
            'date': {'year': 1987, 'month': 11, 'day': 12},
        },
    }


@pytest.fixture
def song_details(sample_track_information):
    return StreamedSongDetails.from_track_information(sample_track_information)


@pytest.fixture
def static_lyrics():
    return StaticLyrics(lines=[TextLine(text="hello"), TextLine(text="world")])


@pytest.fixture
def line_lyrics():
    return LineSyncedLyrics(
        start_time=1.0,
        end_time=6.5,
        content=[
            LineVocal(start_time=1.0, end_time=3.5, text="hello"),
            LineVocal(start_time=3.5, end_time=6.5, text="world"),
        ]
    )


@pytest.fixture
def syllable_lyrics():
    return SyllableSyncedLyrics(
        start_time=0.5,
        end_time=2.0,
        content=[
            SyllableVocalSet(lead=SyllableVocal(
                start_time=0.5,
                end_time=2.0,
                syllables=[
                    Syllable(start_time=0.5, end_time=1.0, text="hel", is_part_of_word=True),
                    Syllable(start_time=1.0, end_time=1.5, text="lo"),
                    Syllable(start_time=1.5, end_time=2.0, text="world"),
                ]
            )),
        ]
    )


@pytest.fixture
def pipeline_harness(memory_backend):
    """
    A resolution pipeline wired to mock providers and in-memory caches

    The primary provider returns None and the fallback finds nothing unless a
    test configures them.
    """
    state = EngineState()
    events = EngineEvents()
    epochs = TrackEpochGuard()

    primary = Mock()
    primary.fetch = AsyncMock(return_value=None)
    lrclib = Mock()
    lrclib.find_best = AsyncMock(return_value=(None, None))

    transformer = Mock()
    transformer.transform = AsyncMock(side_effect=PassthroughTransformer().transform)

    stores = create_lyrics_stores(memory_backend)
    fallback_settings = create_fallback_settings_store(memory_backend)

    pipeline = LyricsResolutionPipeline(
        state=state,
        events=events,
        epochs=epochs,
        primary=primary,
        lrclib=lrclib,
        transformer=transformer,
        stores=stores,
        fallback_settings=fallback_settings
    )

    return SimpleNamespace(
        state=state,
        events=events,
        epochs=epochs,
        primary=primary,
        lrclib=lrclib,
        transformer=transformer,
        stores=stores,
        fallback_settings=fallback_settings,
        pipeline=pipeline,
        recorder=EventRecorder(events),
        backend=memory_backend
    )


@pytest.fixture
def record_events():
    """Factory attaching an EventRecorder to an EngineEvents instance"""
    return EventRecorder
