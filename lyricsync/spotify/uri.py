"""
Spotify identifier helpers

Spotify exposes the same entity under two identifiers: the public 22
character base62 id used in URIs and URLs, and the 32 character hex "gid"
used by internal endpoints such as track metadata. Both encode the same
128-bit number.
"""

import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

BASE62_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
ID_LENGTH = 22
HEX_LENGTH = 32

_BASE62_INDEX = {character: index for index, character in enumerate(BASE62_ALPHABET)}
_ID_PATTERN = re.compile(r'^[0-9A-Za-z]{22}$')
_HEX_PATTERN = re.compile(r'^[0-9a-fA-F]{32}$')


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(_ID_PATTERN.match(value))


def id_to_hex(spotify_id: str) -> str:
    """
    Convert a base62 id to its 32 character hex gid

    Raises:
        ValueError: If the id is not 22 base62 characters
    """
    if not is_valid_id(spotify_id):
        raise ValueError(f"Invalid Spotify id: {spotify_id!r}")

    number = 0
    for character in spotify_id:
        number = number * 62 + _BASE62_INDEX[character]

    if number >= 1 << 128:
        raise ValueError(f"Spotify id out of range: {spotify_id!r}")

    return f"{number:032x}"


def hex_to_id(gid: str) -> str:
    """
    Convert a 32 character hex gid to its base62 id

    Raises:
        ValueError: If the gid is not 32 hex characters
    """
    if not gid or not _HEX_PATTERN.match(gid):
        raise ValueError(f"Invalid Spotify gid: {gid!r}")

    number = int(gid, 16)
    characters = []
    while number:
        number, remainder = divmod(number, 62)
        characters.append(BASE62_ALPHABET[remainder])

    return ''.join(reversed(characters)).rjust(ID_LENGTH, '0')


@dataclass(frozen=True)
class SpotifyURI:
    """A parsed Spotify URI or open.spotify.com URL"""
    type: str
    id: Optional[str]
    uri: str

    @property
    def is_track(self) -> bool:
        return self.type == 'track'

    @property
    def is_local(self) -> bool:
        return self.type == 'local'


def parse_uri(value: str) -> Optional[SpotifyURI]:
    """
    Parse "spotify:<type>:<id>", "spotify:local:..." or an open.spotify.com URL

    Returns:
        The parsed URI, or None when the value is not a Spotify reference
    """
    value = (value or "").strip()

    if value.startswith('spotify:'):
        parts = value.split(':')
        if len(parts) < 3:
            return None
        kind = parts[1]
        if kind == 'local':
            return SpotifyURI(type='local', id=None, uri=value)
        # spotify:user:<name>:playlist:<id>
        if kind == 'user' and len(parts) >= 5:
            kind, identifier = parts[3], parts[4]
        else:
            identifier = parts[2]
        if not is_valid_id(identifier):
            return None
        return SpotifyURI(type=kind, id=identifier, uri=f"spotify:{kind}:{identifier}")

    parsed = urlparse(value)
    if parsed.scheme in ('http', 'https') and parsed.netloc in ('open.spotify.com', 'play.spotify.com'):
        segments = [segment for segment in parsed.path.split('/') if segment]
        # Localized links look like /intl-de/track/<id>
        if segments and segments[0].startswith('intl-'):
            segments = segments[1:]
        if len(segments) >= 2 and is_valid_id(segments[1]):
            kind, identifier = segments[0], segments[1]
            return SpotifyURI(type=kind, id=identifier, uri=f"spotify:{kind}:{identifier}")

    return None
