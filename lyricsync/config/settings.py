"""
Configuration management for lyricsync

This module handles loading, validation, and management of engine settings
from multiple sources including YAML files and environment variables. It provides
a centralized configuration system that supports hot-reloading and validation.

The configuration is organized into logical sections using dataclasses:
- Remote services (primary lyrics service, LRCLIB fallback, track metadata host)
- Spotify credentials used to obtain access tokens
- Cache namespaces, schema versions and expirations
- Playback clock tuning (frame interval, resync schedule, tolerances)
- Logging, network and storage locations

Sensitive data (client secrets, access tokens) can be loaded from environment
variables, while everything else can be stored in YAML files.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from dotenv import load_dotenv

from ..exceptions import ConfigError

# Load environment variables from .env file if present
load_dotenv()


@dataclass
class ServicesConfig:
    """
    Remote lyrics services

    The primary service answers per-track structured lyrics; LRCLIB is the
    public fallback database queried by metadata search.
    """
    lyrics_service_url: str = "https://beautiful-lyrics.socalifornian.live"
    lrclib_url: str = "https://lrclib.net"
    lrclib_enabled_default: bool = True
    lrclib_rate_limit: int = 10       # requests per lrclib_rate_period
    lrclib_rate_period: float = 1.0   # seconds


@dataclass
class SpotifyConfig:
    """
    Spotify credentials and internal endpoints

    The credentials are only used to mint bearer tokens for the primary
    lyrics service and the track metadata endpoint. A pre-issued token can
    be supplied instead through `access_token`.
    """
    client_id: str = ""
    client_secret: str = ""
    access_token: str = ""
    metadata_host: str = "https://spclient.wg.spotify.com/metadata/4"


@dataclass
class CacheConfig:
    """
    Cache namespaces and their invalidation rules

    Each namespace carries a schema version that must be bumped whenever the
    stored shape changes, and an expiration written as "<count> <unit>".
    """
    backend: str = "json"  # json, memory
    directory: str = "~/.lyricsync/cache"
    provider_lyrics_version: int = 3
    provider_lyrics_expiration: str = "1 month"
    transformed_lyrics_version: int = 3
    transformed_lyrics_expiration: str = "1 month"
    lrclib_lyrics_version: int = 2
    lrclib_lyrics_expiration: str = "1 month"
    track_information_version: int = 2
    track_information_expiration: str = "2 weeks"
    fallback_settings_version: int = 1


@dataclass
class PlaybackConfig:
    """
    Playback clock tuning

    Controls how often the displayed timestamp advances, how often it is
    re-anchored against the authoritative position, and how much drift is
    tolerated before snapping.
    """
    frame_interval: float = 1 / 60
    steady_resync_interval: float = 1 / 30
    resync_timings: List[float] = field(default_factory=lambda: [0.05, 0.1, 0.15, 0.75])
    playing_tolerance: float = 0.075
    paused_tolerance: float = 0.05


@dataclass
class LoggingConfig:
    """
    Logging configuration and output settings

    Controls application logging behavior including log levels, file output,
    rotation, and console formatting.
    """
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class NetworkConfig:
    """
    Network and HTTP configuration settings

    Timeouts are enforced by the HTTP client; the engine never times out a
    request on its own.
    """
    user_agent: str = "lyricsync/1.0 (https://github.com/lyricsync/lyricsync)"
    request_timeout: int = 15


@dataclass
class SecurityConfig:
    """Where lyricsync keeps its own files"""
    config_directory: str = "~/.lyricsync/"


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from multiple sources (YAML files, environment variables)
    and provides a unified interface for accessing configuration throughout
    the engine.

    The class handles:
    - Loading configuration from YAML files
    - Overriding with environment variables
    - Creating the configuration directory
    - Validating configuration values
    - Saving configuration back to files
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file or environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".lyricsync"

        # Initialize all configuration objects with default values
        self.services = ServicesConfig()
        self.spotify = SpotifyConfig()
        self.cache = CacheConfig()
        self.playback = PlaybackConfig()
        self.logging = LoggingConfig()
        self.network = NetworkConfig()
        self.security = SecurityConfig()

        # Load configuration from various sources in order of precedence
        self._load_config()
        self._load_environment_variables()
        self._create_directories()

    def _sections(self) -> Dict[str, Any]:
        return {
            'services': self.services,
            'spotify': self.spotify,
            'cache': self.cache,
            'playback': self.playback,
            'logging': self.logging,
            'network': self.network,
            'security': self.security,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches for configuration files in multiple locations in order of
        precedence. The first file found will be used.
        """
        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except (OSError, yaml.YAMLError) as e:
                    print(f"Warning: Failed to load config from {path}: {e}")

        # Apply loaded configuration to dataclass instances
        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Maps configuration sections from the YAML file to the appropriate
        dataclass instances, updating only the attributes that exist in
        both the config file and the dataclass definition.

        Args:
            config_data: Dictionary containing configuration sections
        """
        if not isinstance(config_data, dict):
            return

        config_mapping = self._sections()

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'SPOTIFY_CLIENT_ID': lambda v: setattr(self.spotify, 'client_id', v),
            'SPOTIFY_CLIENT_SECRET': lambda v: setattr(self.spotify, 'client_secret', v),
            'LYRICSYNC_ACCESS_TOKEN': lambda v: setattr(self.spotify, 'access_token', v),
            'LYRICSYNC_LYRICS_SERVICE_URL': lambda v: setattr(self.services, 'lyrics_service_url', v),
            'LYRICSYNC_LRCLIB_URL': lambda v: setattr(self.services, 'lrclib_url', v),
            'LYRICSYNC_CACHE_DIR': lambda v: setattr(self.cache, 'directory', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def _create_directories(self) -> None:
        """
        Create the configuration directory

        The cache directory is created lazily by the JSON backend on first write.
        """
        directory = Path(self.security.config_directory).expanduser()
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            print(f"Warning: Failed to create directory {directory}: {e}")

    def get_config_directory(self) -> Path:
        """Get the expanded config directory path"""
        return Path(self.security.config_directory).expanduser()

    def get_cache_directory(self) -> Path:
        """Get the expanded cache directory path"""
        return Path(self.cache.directory).expanduser()

    def save_config(self, path: Optional[str] = None) -> None:
        """
        Save current configuration to file

        Serializes the current configuration to a YAML file, excluding
        secrets and tokens.

        Args:
            path: Custom path to save config, defaults to user config directory

        Raises:
            ConfigError: If the configuration cannot be saved
        """
        if not path:
            path = self.get_config_directory() / "config.yaml"
        else:
            path = Path(path)

        config_data = {
            name: self._dataclass_to_dict(section)
            for name, section in self._sections().items()
        }

        # Remove sensitive data from saved config
        config_data['spotify']['client_id'] = ""
        config_data['spotify']['client_secret'] = ""
        config_data['spotify']['access_token'] = ""

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigError(
                f"Failed to save config to {path}: {e}",
                details={'file_path': str(path), 'original_error': str(e)}
            ) from e

    def _dataclass_to_dict(self, obj) -> Dict[str, Any]:
        """Convert dataclass to dictionary for YAML output"""
        result = {}
        for key, value in obj.__dict__.items():
            result[key] = value
        return result

    def get_errors(self) -> List[str]:
        """
        Collect every configuration problem as a human-readable message

        Returns:
            List of error messages, empty when the configuration is valid
        """
        # Both packages import the logger, which imports this module
        from ..cache.store import Expiration
        from ..utils.helpers import is_valid_url

        errors = []

        for name in ('lyrics_service_url', 'lrclib_url'):
            if not is_valid_url(getattr(self.services, name)):
                errors.append(f"Invalid services.{name}: {getattr(self.services, name)}")

        if not is_valid_url(self.spotify.metadata_host):
            errors.append(f"Invalid spotify.metadata_host: {self.spotify.metadata_host}")

        if self.cache.backend not in ['json', 'memory']:
            errors.append(f"Invalid cache backend: {self.cache.backend}")

        for name in (
            'provider_lyrics_expiration',
            'transformed_lyrics_expiration',
            'lrclib_lyrics_expiration',
            'track_information_expiration',
        ):
            try:
                Expiration.parse(getattr(self.cache, name))
            except ValueError as e:
                errors.append(f"Invalid cache.{name}: {e}")

        if self.playback.frame_interval <= 0:
            errors.append("playback.frame_interval must be positive")

        if self.playback.steady_resync_interval <= 0:
            errors.append("playback.steady_resync_interval must be positive")

        if any(timing <= 0 for timing in self.playback.resync_timings):
            errors.append("playback.resync_timings must all be positive")

        if self.services.lrclib_rate_limit <= 0:
            errors.append("services.lrclib_rate_limit must be positive")

        if not self.spotify.access_token and not (self.spotify.client_id and self.spotify.client_secret):
            errors.append("Either spotify.access_token or spotify client_id/client_secret is required")

        return errors

    def validate(self) -> bool:
        """
        Validate current configuration

        Returns:
            True if configuration is valid, False otherwise
        """
        errors = self.get_errors()

        if errors:
            print("Configuration validation errors:")
            for error in errors:
                print(f"  - {error}")
            return False

        return True

    def __str__(self) -> str:
        sections = [
            f"Lyrics: {self.services.lyrics_service_url}",
            f"Fallback: {self.services.lrclib_url}",
            f"Cache: {self.cache.backend} @ {self.cache.directory}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance for singleton pattern
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Creates a new settings instance with updated configuration from files
    and environment variables.

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings
