"""
Spotify integration package

Models for the item the host player is playing, identifier conversions, and
the cached track information client used to load song details.

1. Models Module (models.py):
   - StreamedSong, LocalSong, DJSong: the three kinds of playing item
   - LocalSongDetails, StreamedSongDetails: metadata used for lyrics matching

2. URI Module (uri.py):
   - Base62 id <-> hex gid conversions
   - Parsing of spotify: URIs and open.spotify.com links

3. Client Module (client.py):
   - TrackInformationClient: cached, coalesced track metadata lookups
"""

from .client import TrackInformationClient, create_track_information_store
from .models import (
    Song,
    SongType,
    CoverArt,
    StreamedSong,
    LocalSong,
    DJSong,
    SongDetails,
    LocalSongDetails,
    StreamedSongDetails,
    ArtistDetails,
    AlbumDetails,
    clean_song_name
)
from .uri import SpotifyURI, parse_uri, id_to_hex, hex_to_id

__all__ = [
    # Client
    'TrackInformationClient',
    'create_track_information_store',

    # Songs
    'Song',
    'SongType',
    'CoverArt',
    'StreamedSong',
    'LocalSong',
    'DJSong',

    # Details
    'SongDetails',
    'LocalSongDetails',
    'StreamedSongDetails',
    'ArtistDetails',
    'AlbumDetails',
    'clean_song_name',

    # Identifiers
    'SpotifyURI',
    'parse_uri',
    'id_to_hex',
    'hex_to_id',
]
