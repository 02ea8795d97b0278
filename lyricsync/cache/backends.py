"""
Storage backends for the cache stores

A backend is a plain asynchronous key/value substrate holding JSON-compatible
values. It knows nothing about expiry or schema versions; the stores layered
on top of it do. Backends raise CacheError when the substrate fails and the
stores decide how to recover.
"""

import asyncio
import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union

from ..config.settings import get_settings
from ..exceptions import CacheError, ConfigError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class StorageBackend(Protocol):
    """Asynchronous key/value contract used by ExpireStore and InstantStore"""

    async def get(self, key: str) -> Optional[Any]:
        ...

    async def set(self, key: str, value: Any) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class MemoryBackend:
    """
    In-process backend

    Values are deep-copied on the way in and out so callers can never mutate
    what is stored, mirroring a serializing substrate.
    """

    def __init__(self):
        self.data: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        value = self.data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileBackend:
    """
    Backend persisting every key in one JSON document on disk

    The document is read once on first access and rewritten after every
    change. Writes go to a temporary file first and are moved into place, so
    a crash never leaves a truncated document behind. File access runs in a
    worker thread to keep the event loop free.
    """

    def __init__(self, directory: Union[str, Path], filename: str = "store.json"):
        """
        Args:
            directory: Directory holding the document, created on first write
            filename: Name of the document inside the directory
        """
        self.directory = Path(directory).expanduser()
        self.path = self.directory / filename
        self._data: Optional[Dict[str, Any]] = None
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        data = await self._ensure_loaded()
        value = data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            data = await self._ensure_loaded()
            data[key] = copy.deepcopy(value)
            await asyncio.to_thread(self._write, dict(data))

    async def delete(self, key: str) -> None:
        async with self._lock:
            data = await self._ensure_loaded()
            if data.pop(key, None) is not None:
                await asyncio.to_thread(self._write, dict(data))

    async def _ensure_loaded(self) -> Dict[str, Any]:
        if self._data is None:
            self._data = await asyncio.to_thread(self._read)
        return self._data

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise CacheError(
                f"Failed to read cache file {self.path}: {e}",
                details={'file_path': str(self.path)}
            ) from e
        except json.JSONDecodeError as e:
            # A corrupt document is dropped rather than blocking every read
            logger.warning(f"Discarding corrupt cache file {self.path}: {e}")
            return {}

        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with open(temp_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(temp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise CacheError(
                f"Failed to write cache file {self.path}: {e}",
                details={'file_path': str(self.path)}
            ) from e


def create_backend_from_settings() -> Union[MemoryBackend, JsonFileBackend]:
    """
    Build the storage backend the settings ask for

    Raises:
        ConfigError: If the configured backend is unknown
    """
    settings = get_settings()
    backend = settings.cache.backend.lower()

    if backend == 'memory':
        return MemoryBackend()
    if backend == 'json':
        return JsonFileBackend(settings.get_cache_directory())

    raise ConfigError(
        f"Unknown cache backend: {settings.cache.backend}",
        details={'backend': settings.cache.backend}
    )
