"""
Data models for the playing item and its metadata

The host player can be playing one of three kinds of item:

1. **StreamedSong**: a regular catalogue track. It has a base62 id, the hex
   internal id used by metadata endpoints, a duration and cover art. Only
   streamed songs can have lyrics resolved.
2. **LocalSong**: a file from the listener's local library. It has a
   duration but no catalogue id.
3. **DJSong**: a DJ narration segment. It has neither duration nor lyrics,
   and asking for its duration or timestamp is a caller error.

Song details are the metadata the lyrics fallback searches with:

- LocalSongDetails come straight from the host player's item
- StreamedSongDetails are built from the track metadata endpoint's
  "track information" document, with re-release gunk removed from the name

All song models are frozen so a captured reference can be compared by
identity against the current one.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from .uri import hex_to_id, id_to_hex, parse_uri


class SongType(Enum):
    STREAMED = "Streamed"
    LOCAL = "Local"
    DJ = "DJ"


@dataclass(frozen=True)
class CoverArt:
    """Cover image URLs from largest to smallest"""
    large: Optional[str] = None
    big: Optional[str] = None
    default: Optional[str] = None
    small: Optional[str] = None

    @classmethod
    def from_metadata(cls, metadata: Dict[str, Any]) -> 'CoverArt':
        """Build from the player's item metadata (image_xlarge_url and friends)"""
        return cls(
            large=metadata.get('image_xlarge_url'),
            big=metadata.get('image_large_url'),
            default=metadata.get('image_url'),
            small=metadata.get('image_small_url')
        )


@dataclass(frozen=True, eq=False)
class StreamedSong:
    """
    A catalogue track

    Attributes:
        uri: spotify:track:<id>
        id: Base62 track id
        internal_id: 32 character hex gid of the same track
        duration: Length in seconds
        cover_art: Cover image URLs
    """
    uri: str
    id: str
    internal_id: str
    duration: float
    cover_art: CoverArt = field(default_factory=CoverArt)

    type: ClassVar[SongType] = SongType.STREAMED

    @classmethod
    def from_uri(cls, uri: str, duration: float, cover_art: Optional[CoverArt] = None) -> 'StreamedSong':
        """
        Build a streamed song from a track URI or open.spotify.com link

        Raises:
            ValueError: If the value does not reference a track
        """
        parsed = parse_uri(uri)
        if parsed is None or not parsed.is_track:
            raise ValueError(f"Not a Spotify track reference: {uri!r}")
        return cls(
            uri=parsed.uri,
            id=parsed.id,
            internal_id=id_to_hex(parsed.id),
            duration=float(duration),
            cover_art=cover_art or CoverArt()
        )


@dataclass(frozen=True, eq=False)
class LocalSong:
    """A locally stored file; cover_art is a single optional URL"""
    uri: str
    duration: float
    cover_art: Optional[str] = None

    type: ClassVar[SongType] = SongType.LOCAL


@dataclass(frozen=True, eq=False)
class DJSong:
    """A DJ narration segment; action is the narration's display name"""
    uri: str
    action: str
    cover_art: CoverArt = field(default_factory=CoverArt)

    type: ClassVar[SongType] = SongType.DJ


Song = Union[StreamedSong, LocalSong, DJSong]


# Re-release annotations that only get in the way of matching
SONG_NAME_FILTERS = [
    re.compile(r'\s*(?:-|/)\s*(?:(?:Stereo|Mono)\s*)?Remastered(?:\s*\d+)?'),
    re.compile(r'\s*-\s*(?:Stereo|Mono)(?:\s*Version|\s*Mix)?'),
    re.compile(r'\s*\(\s*(?:Stereo|Mono)(?:\s*Mix)?\)?'),
]


def clean_song_name(name: str) -> str:
    """Strip "- Remastered 2009", "- Mono Version", "(Stereo Mix)" and similar"""
    for song_filter in SONG_NAME_FILTERS:
        name = song_filter.sub('', name, count=1)
    return name


@dataclass
class LocalSongDetails:
    name: str
    album: str
    artists: List[str] = field(default_factory=list)

    is_local: ClassVar[bool] = True

    @property
    def primary_artist_name(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def album_name(self) -> str:
        return self.album


@dataclass
class ArtistDetails:
    internal_id: str
    id: str
    name: str

    @classmethod
    def from_track_information(cls, data: Dict[str, Any]) -> 'ArtistDetails':
        return cls(internal_id=data['gid'], id=hex_to_id(data['gid']), name=data['name'])


@dataclass
class AlbumDetails:
    internal_id: str
    id: str
    name: str
    artists: List[ArtistDetails] = field(default_factory=list)
    release_date: Optional[Dict[str, int]] = None


@dataclass
class StreamedSongDetails:
    """
    Metadata of a catalogue track

    Attributes:
        isrc: International Standard Recording Code, None if not listed
        name: Track name with re-release annotations removed
        artists: Credited artists in credit order
        album: The release the track belongs to
        raw: The untouched track information document
    """
    isrc: Optional[str]
    name: str
    artists: List[ArtistDetails]
    album: AlbumDetails
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    is_local: ClassVar[bool] = False

    @property
    def primary_artist_name(self) -> str:
        return self.artists[0].name if self.artists else ""

    @property
    def album_name(self) -> str:
        return self.album.name

    @classmethod
    def from_track_information(cls, data: Dict[str, Any]) -> 'StreamedSongDetails':
        """
        Build details from a track information document

        Raises:
            AttributeError, KeyError, TypeError, ValueError: If the document lacks
                required fields or holds them in the wrong shape
        """
        isrc = next(
            (entry.get('id') for entry in data.get('external_id', []) if entry.get('type') == 'isrc'),
            None
        )

        album = data['album']
        return cls(
            isrc=isrc,
            name=clean_song_name(data['name']),
            artists=[ArtistDetails.from_track_information(artist) for artist in data.get('artist', [])],
            album=AlbumDetails(
                internal_id=album['gid'],
                id=hex_to_id(album['gid']),
                name=album.get('name', ""),
                artists=[ArtistDetails.from_track_information(artist) for artist in album.get('artist', [])],
                release_date=album.get('date')
            ),
            raw=data
        )


SongDetails = Union[LocalSongDetails, StreamedSongDetails]
