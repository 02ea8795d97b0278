"""
Access token providers for the lyrics and metadata endpoints

Both the primary lyrics service and the track metadata endpoint expect a
Spotify bearer token. lyricsync never runs a login flow of its own; it only
consumes tokens through the AccessTokenProvider interface:

- StaticAccessTokenProvider hands out a pre-issued token (for example one
  copied from a running client and supplied via LYRICSYNC_ACCESS_TOKEN)
- SpotifyClientCredentialsProvider mints tokens with spotipy's client
  credentials flow and lets spotipy cache and refresh them

`get_auth()` picks the provider the current settings call for.
"""

import asyncio
from typing import Optional, Protocol

from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from .settings import get_settings
from ..exceptions import ConfigError, ProviderError


class AccessTokenProvider(Protocol):
    """Source of bearer tokens for authenticated requests"""

    async def get_access_token(self) -> str:
        ...


class StaticAccessTokenProvider:
    """Provider returning the same pre-issued token every time"""

    def __init__(self, token: str):
        if not token:
            raise ConfigError("An access token is required")
        self.token = token

    async def get_access_token(self) -> str:
        return self.token


class SpotifyClientCredentialsProvider:
    """
    Provider backed by spotipy's client credentials flow

    spotipy performs blocking HTTP requests, so token retrieval runs in a
    worker thread. spotipy keeps the token in memory and only requests a new
    one shortly before the current one expires.
    """

    def __init__(self, client_id: str, client_secret: str):
        if not client_id or not client_secret:
            raise ConfigError(
                "Spotify client ID and secret are required",
                details={'client_id_set': bool(client_id), 'client_secret_set': bool(client_secret)}
            )
        self._credentials = SpotifyClientCredentials(
            client_id=client_id,
            client_secret=client_secret
        )

    async def get_access_token(self) -> str:
        """
        Get a valid access token, refreshing it when necessary

        Raises:
            ProviderError: If Spotify refuses the credentials or is unreachable
        """
        try:
            return await asyncio.to_thread(self._credentials.get_access_token, as_dict=False)
        except SpotifyOauthError as e:
            raise ProviderError(f"Spotify rejected the client credentials: {e}") from e
        except OSError as e:
            raise ProviderError(
                f"Could not reach Spotify for an access token: {e}",
                is_transport_error=True
            ) from e


# Global provider instance, created on first use
_auth_instance: Optional[AccessTokenProvider] = None


def create_auth_from_settings() -> AccessTokenProvider:
    """
    Build the token provider the settings ask for

    A configured access token wins over client credentials.

    Raises:
        ConfigError: If neither a token nor client credentials are configured
    """
    settings = get_settings()

    if settings.spotify.access_token:
        return StaticAccessTokenProvider(settings.spotify.access_token)

    return SpotifyClientCredentialsProvider(
        settings.spotify.client_id,
        settings.spotify.client_secret
    )


def get_auth() -> AccessTokenProvider:
    """
    Get the global token provider (singleton pattern)

    Returns:
        The shared AccessTokenProvider
    """
    global _auth_instance
    if _auth_instance is None:
        _auth_instance = create_auth_from_settings()
    return _auth_instance


def reset_auth() -> None:
    """
    Forget the global token provider

    The next `get_auth()` builds a new one from the current settings, which
    is what tests and configuration reloads need.
    """
    global _auth_instance
    _auth_instance = None
