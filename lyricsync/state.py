"""
Engine state and events

One EngineState record is owned by each LyricsEngine and handed by
reference to the components that read or publish it (details loading, the
lyrics pipeline, the playback clock). Nothing about the current song lives
in module globals.

EngineEvents groups the signals the view layer subscribes to:

- song_changed: the playing item changed (state.song updated)
- song_details_loaded: state.song_details / have_song_details_loaded updated
- song_lyrics_loaded: state.song_lyrics / have_song_lyrics_loaded updated
- time_stepped(delta_time, is_resync): the playback clock moved
- is_playing_changed: state.clock.is_playing flipped
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from .lyrics.models import TransformedLyrics
from .spotify.models import Song, SongDetails
from .utils.events import Signal


@dataclass
class PlaybackClockState:
    """
    The locally displayed playback clock

    Attributes:
        current_timestamp: Displayed position in seconds
        is_playing: Whether playback is running
        last_frame_at: Monotonic time of the previous frame, None before the first
    """
    current_timestamp: float = 0.0
    is_playing: bool = False
    last_frame_at: Optional[float] = None


@dataclass
class EngineState:
    song: Optional[Song] = None
    song_details: Optional[SongDetails] = None
    have_song_details_loaded: bool = False
    song_lyrics: Optional[TransformedLyrics] = None
    have_song_lyrics_loaded: bool = False
    clock: PlaybackClockState = field(default_factory=PlaybackClockState)


@dataclass
class EngineEvents:
    song_changed: Signal[Callable[[], None]] = field(default_factory=lambda: Signal("song_changed"))
    song_details_loaded: Signal[Callable[[], None]] = field(default_factory=lambda: Signal("song_details_loaded"))
    song_lyrics_loaded: Signal[Callable[[], None]] = field(default_factory=lambda: Signal("song_lyrics_loaded"))
    time_stepped: Signal[Callable[[float, bool], None]] = field(default_factory=lambda: Signal("time_stepped"))
    is_playing_changed: Signal[Callable[[], None]] = field(default_factory=lambda: Signal("is_playing_changed"))
