"""
Configuration management package for lyricsync

Two components live here:

1. Settings Management (settings.py):
   - Engine configuration from YAML files and environment variables
   - Settings validation
   - Configuration persistence and reloading

2. Access Tokens (auth.py):
   - The AccessTokenProvider interface consumed by the lyrics and metadata clients
   - A static provider for pre-issued tokens
   - A spotipy client-credentials provider

Usage:

    from lyricsync.config import get_settings, get_auth

    settings = get_settings()
    token = await get_auth().get_access_token()

Configuration sources, in order of precedence:
1. Environment variables (highest priority, for sensitive data)
2. YAML configuration files
3. Default values
"""

# Settings management imports
from .settings import get_settings, reload_settings, Settings

# Access token imports
from .auth import (
    get_auth,
    reset_auth,
    AccessTokenProvider,
    StaticAccessTokenProvider,
    SpotifyClientCredentialsProvider
)

__all__ = [
    # Settings management
    'get_settings',
    'reload_settings',
    'Settings',

    # Access tokens
    'get_auth',
    'reset_auth',
    'AccessTokenProvider',
    'StaticAccessTokenProvider',
    'SpotifyClientCredentialsProvider'
]
