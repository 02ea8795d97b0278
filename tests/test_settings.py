"""Tests for configuration loading and validation"""

from unittest.mock import patch

import pytest
import yaml

from lyricsync.cache.backends import JsonFileBackend, MemoryBackend, create_backend_from_settings
from lyricsync.config.auth import (
    SpotifyClientCredentialsProvider,
    StaticAccessTokenProvider,
    create_auth_from_settings
)
from lyricsync.config.settings import Settings
from lyricsync.exceptions import ConfigError


@pytest.fixture
def clean_env(monkeypatch):
    for name in ('SPOTIFY_CLIENT_ID', 'SPOTIFY_CLIENT_SECRET', 'LYRICSYNC_ACCESS_TOKEN',
                 'LYRICSYNC_LYRICS_SERVICE_URL', 'LYRICSYNC_LRCLIB_URL', 'LYRICSYNC_CACHE_DIR'):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config_file(tmp_path):
    def write(data):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return str(path)
    return write


class TestSettingsLoading:

    def test_yaml_values_override_defaults(self, clean_env, config_file, tmp_path):
        """Test YAML values override defaults"""
        settings = Settings(config_file({
            'cache': {'backend': 'memory', 'provider_lyrics_expiration': '2 weeks'},
            'playback': {'resync_timings': [0.1, 0.2]},
            'security': {'config_directory': str(tmp_path / "home")},
            'unknown_section': {'ignored': True},
        }))

        assert settings.cache.backend == 'memory'
        assert settings.cache.provider_lyrics_expiration == '2 weeks'
        assert settings.playback.resync_timings == [0.1, 0.2]
        assert settings.playback.frame_interval == pytest.approx(1 / 60)

    def test_environment_overrides_file(self, clean_env, config_file, tmp_path):
        """Test environment overrides file"""
        clean_env.setenv('LYRICSYNC_ACCESS_TOKEN', 'env-token')
        clean_env.setenv('LYRICSYNC_CACHE_DIR', str(tmp_path / "env-cache"))

        settings = Settings(config_file({
            'spotify': {'access_token': 'file-token'},
            'security': {'config_directory': str(tmp_path / "home")},
        }))

        assert settings.spotify.access_token == 'env-token'
        assert settings.get_cache_directory() == tmp_path / "env-cache"

    def test_save_config_strips_secrets(self, clean_env, config_file, tmp_path):
        """Test save config strips secrets"""
        settings = Settings(config_file({
            'spotify': {'client_id': 'id', 'client_secret': 'secret'},
            'security': {'config_directory': str(tmp_path / "home")},
        }))
        target = tmp_path / "saved" / "config.yaml"

        settings.save_config(str(target))
        saved = yaml.safe_load(target.read_text(encoding="utf-8"))

        assert saved['spotify']['client_secret'] == ""
        assert saved['spotify']['client_id'] == ""
        assert saved['cache']['backend'] == settings.cache.backend


class TestSettingsValidation:

    def test_valid_configuration(self, clean_env, config_file, tmp_path):
        """Test valid configuration"""
        settings = Settings(config_file({
            'spotify': {'access_token': 'token'},
            'security': {'config_directory': str(tmp_path / "home")},
        }))

        assert settings.get_errors() == []
        assert settings.validate()

    def test_every_problem_is_reported(self, clean_env, config_file, tmp_path):
        """Test every problem is reported"""
        settings = Settings(config_file({
            'services': {'lrclib_url': 'lrclib.net'},
            'cache': {'backend': 'redis', 'lrclib_lyrics_expiration': 'forever'},
            'playback': {'frame_interval': 0, 'resync_timings': [0.05, -1]},
            'security': {'config_directory': str(tmp_path / "home")},
        }))

        errors = settings.get_errors()

        assert any('services.lrclib_url' in error for error in errors)
        assert any('cache backend' in error for error in errors)
        assert any('cache.lrclib_lyrics_expiration' in error for error in errors)
        assert any('frame_interval' in error for error in errors)
        assert any('resync_timings' in error for error in errors)
        assert any('access_token' in error for error in errors)


class TestSettingsFactories:

    def _settings(self, clean_env, config_file, tmp_path, data):
        data.setdefault('security', {'config_directory': str(tmp_path / "home")})
        return Settings(config_file(data))

    def test_memory_backend(self, clean_env, config_file, tmp_path):
        """Test memory backend"""
        settings = self._settings(clean_env, config_file, tmp_path, {'cache': {'backend': 'memory'}})

        with patch('lyricsync.cache.backends.get_settings', return_value=settings):
            assert isinstance(create_backend_from_settings(), MemoryBackend)

    def test_json_backend_uses_cache_directory(self, clean_env, config_file, tmp_path):
        """Test JSON backend uses cache directory"""
        settings = self._settings(clean_env, config_file, tmp_path, {
            'cache': {'backend': 'json', 'directory': str(tmp_path / "cache")},
        })

        with patch('lyricsync.cache.backends.get_settings', return_value=settings):
            backend = create_backend_from_settings()

        assert isinstance(backend, JsonFileBackend)
        assert backend.path == tmp_path / "cache" / "store.json"

    def test_unknown_backend(self, clean_env, config_file, tmp_path):
        """Test unknown backend"""
        settings = self._settings(clean_env, config_file, tmp_path, {'cache': {'backend': 'redis'}})

        with patch('lyricsync.cache.backends.get_settings', return_value=settings):
            with pytest.raises(ConfigError):
                create_backend_from_settings()

    def test_access_token_wins(self, clean_env, config_file, tmp_path):
        """Test access token wins"""
        settings = self._settings(clean_env, config_file, tmp_path, {
            'spotify': {'access_token': 'token', 'client_id': 'id', 'client_secret': 'secret'},
        })

        with patch('lyricsync.config.auth.get_settings', return_value=settings):
            assert isinstance(create_auth_from_settings(), StaticAccessTokenProvider)

    def test_client_credentials(self, clean_env, config_file, tmp_path):
        """Test client credentials"""
        settings = self._settings(clean_env, config_file, tmp_path, {
            'spotify': {'client_id': 'id', 'client_secret': 'secret'},
        })

        with patch('lyricsync.config.auth.get_settings', return_value=settings):
            assert isinstance(create_auth_from_settings(), SpotifyClientCredentialsProvider)

    def test_missing_credentials(self, clean_env, config_file, tmp_path):
        """Test missing credentials"""
        settings = self._settings(clean_env, config_file, tmp_path, {})

        with patch('lyricsync.config.auth.get_settings', return_value=settings):
            with pytest.raises(ConfigError):
                create_auth_from_settings()

    @pytest.mark.asyncio
    async def test_static_token(self):
        """Test static token"""
        assert await StaticAccessTokenProvider("abc").get_access_token() == "abc"
