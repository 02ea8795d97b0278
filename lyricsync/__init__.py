"""
lyricsync: lyrics acquisition and playback synchronization for Spotify

lyricsync finds the lyrics of whatever the Spotify player is playing and
keeps a smoothly advancing playback clock aligned with the real playback
position, so a view can highlight the line (or syllable) being sung.

## Core Architecture

**Configuration (`lyricsync/config/`)**
- Layered settings: defaults, YAML config file, environment variables
- Access token providers for the lyrics and metadata services

**Caching (`lyricsync/cache/`)**
- ExpireStore: namespaced, versioned, time-limited key/value cache
- InstantStore: small persistent settings dict
- Memory and JSON file storage backends

**Lyrics (`lyricsync/lyrics/`)**
- Static, line-synced and syllable-synced lyrics models
- Primary lyrics service and LRCLIB fallback providers
- Fuzzy matching of fallback search results
- LRC transcript parsing
- The resolution pipeline tying providers, caches and transformation together

**Spotify (`lyricsync/spotify/`)**
- Models for streamed, local and DJ items and their details
- Cached, coalesced track information client
- Base62 / hex id conversion and URI parsing

**Synchronization (`lyricsync/sync/`)**
- Track epochs discarding results for songs that are no longer playing
- The playback clock synchronizer and its position sources

**Engine (`lyricsync/engine.py`, `lyricsync/state.py`)**
- LyricsEngine reacting to song changes, play/pause and seeks
- EngineState and EngineEvents shared with every component

**Utilities (`lyricsync/utils/`)**
- Colored console and rotating file logging
- Signals, in-flight request coalescing, the aiohttp client, helpers

## Usage

Command line:
    lyricsync lyrics spotify:track:4uLU6hMCjMI75M1A2tKUQC
    lyricsync match -t "Never Gonna Give You Up" -a "Rick Astley" -d 213
    lyricsync fallback disable

Library:
    engine = create_engine_from_settings(position_source)
    async with engine:
        engine.on_song_change(song)
        engine.events.song_lyrics_loaded.connect(render)
"""

__version__ = "v0.9.0-beta"
__author__ = "lyricsync Team"

__all__ = [
    "__version__",
    "__author__",
]
