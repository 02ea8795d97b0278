"""
Expiring and instant key/value stores

ExpireStore is the generational cache used for lyrics and track metadata:

1. Every entry records the schema version it was written under and the
   wall-clock time it expires at.
2. Reads evict lazily. An entry past its expiry, or written under a
   different schema version, is deleted and reported as a miss.
3. `False` is a legitimate cached value meaning "checked, found nothing".
   `None` is never stored and always means "not cached".
4. Reads never raise. A failing backend or an undecodable entry is a miss.
   Writes log failures and carry on.

InstantStore is the small settings store used for feature flags: a dict of
items with defaults, loaded once and written back explicitly.
"""

import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from .backends import StorageBackend
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class ExpirationUnit(Enum):
    """Expiration units and their length in seconds"""
    SECONDS = 1
    MINUTES = 60
    HOURS = 60 * 60
    DAYS = 24 * 60 * 60
    WEEKS = 7 * 24 * 60 * 60
    MONTHS = 30 * 24 * 60 * 60
    YEARS = 365 * 24 * 60 * 60


_UNIT_ALIASES = {
    'second': ExpirationUnit.SECONDS,
    'minute': ExpirationUnit.MINUTES,
    'hour': ExpirationUnit.HOURS,
    'day': ExpirationUnit.DAYS,
    'week': ExpirationUnit.WEEKS,
    'month': ExpirationUnit.MONTHS,
    'year': ExpirationUnit.YEARS,
}


@dataclass(frozen=True)
class Expiration:
    """How long an entry stays valid, e.g. Expiration(2, ExpirationUnit.WEEKS)"""
    duration: int
    unit: ExpirationUnit

    @property
    def seconds(self) -> float:
        return self.duration * self.unit.value

    @classmethod
    def parse(cls, text: str) -> 'Expiration':
        """
        Parse an expiration written as "<count> <unit>"

        Units may be singular or plural and any case ("1 month", "2 Weeks").

        Raises:
            ValueError: If the text is not a positive count followed by a known unit
        """
        match = re.match(r'^\s*(\d+)\s*([A-Za-z]+?)s?\s*$', str(text))
        if not match:
            raise ValueError(f"Invalid expiration: {text!r}")

        count, unit_name = int(match.group(1)), match.group(2).lower()
        unit = _UNIT_ALIASES.get(unit_name)
        if unit is None:
            raise ValueError(f"Unknown expiration unit in {text!r}")
        if count <= 0:
            raise ValueError(f"Expiration must be positive: {text!r}")

        return cls(count, unit)

    def __str__(self) -> str:
        unit = self.unit.name.lower()
        return f"{self.duration} {unit[:-1] if self.duration == 1 else unit}"


def _identity(value: Any) -> Any:
    return value


class ExpireStore(Generic[T]):
    """
    Namespaced key/value cache with time-to-live and schema-version eviction

    Args:
        namespace: Prefix separating this store's keys from other stores
        version: Schema version; entries written under another version are misses
        expiration: Lifetime of each entry from the moment it is written
        backend: Storage substrate
        encode: Converts a value to JSON-compatible data before storing
        decode: Converts stored data back into a value
        clock: Wall-clock source in seconds, injectable for tests
    """

    def __init__(
        self,
        namespace: str,
        version: int,
        expiration: Expiration,
        backend: StorageBackend,
        encode: Callable[[T], Any] = _identity,
        decode: Callable[[Any], T] = _identity,
        clock: Callable[[], float] = time.time
    ):
        self.namespace = namespace
        self.version = version
        self.expiration = expiration
        self.backend = backend
        self._encode = encode
        self._decode = decode
        self._clock = clock

    def _full_key(self, key: str) -> str:
        return f"{self.namespace}/{key}"

    async def get_item(self, key: str) -> Optional[T]:
        """
        Look up a cached value

        Returns:
            The cached value (possibly False), or None when missing, expired,
            version-mismatched or unreadable
        """
        full_key = self._full_key(key)

        try:
            entry = await self.backend.get(full_key)
        except Exception as e:
            logger.warning(f"Cache read failed for {full_key}: {e}")
            return None

        if entry is None:
            return None

        if (
            not isinstance(entry, dict)
            or entry.get('version') != self.version
            or not isinstance(entry.get('expires_at'), (int, float))
            or entry['expires_at'] <= self._clock()
        ):
            logger.debug(f"Evicting stale cache entry {full_key}")
            await self._evict(full_key)
            return None

        value = entry.get('value')
        if value is False:
            return False
        if value is None:
            return None

        try:
            return self._decode(value)
        except Exception as e:
            logger.warning(f"Discarding undecodable cache entry {full_key}: {e}")
            await self._evict(full_key)
            return None

    async def set_item(self, key: str, value: T) -> None:
        """
        Store a value (or False for a cached negative) for the configured lifetime

        Storing None is ignored since None means "not cached".
        """
        if value is None:
            return

        full_key = self._full_key(key)
        entry = {
            'version': self.version,
            'expires_at': self._clock() + self.expiration.seconds,
            'value': False if value is False else self._encode(value),
        }

        try:
            await self.backend.set(full_key, entry)
        except Exception as e:
            logger.warning(f"Cache write failed for {full_key}: {e}")

    async def remove_item(self, key: str) -> None:
        """Drop a cached value so the next lookup misses"""
        await self._evict(self._full_key(key))

    async def _evict(self, full_key: str) -> None:
        try:
            await self.backend.delete(full_key)
        except Exception as e:
            logger.debug(f"Cache eviction failed for {full_key}: {e}")


class InstantStore:
    """
    Small persistent settings dict with defaults

    `items` is usable immediately with the defaults; `load()` overlays
    whatever was saved under the same version. Changes are written only when
    `save_changes()` is called.
    """

    def __init__(
        self,
        namespace: str,
        version: int,
        defaults: Dict[str, Any],
        backend: StorageBackend
    ):
        self.namespace = namespace
        self.version = version
        self.defaults = dict(defaults)
        self.backend = backend
        self.items: Dict[str, Any] = dict(defaults)

    async def load(self) -> Dict[str, Any]:
        try:
            entry = await self.backend.get(self.namespace)
        except Exception as e:
            logger.warning(f"Failed to load settings store {self.namespace}: {e}")
            return self.items

        if isinstance(entry, dict) and entry.get('version') == self.version:
            stored = entry.get('items')
            if isinstance(stored, dict):
                self.items = {**self.defaults, **stored}

        return self.items

    async def save_changes(self) -> None:
        try:
            await self.backend.set(
                self.namespace,
                {'version': self.version, 'items': dict(self.items)}
            )
        except Exception as e:
            logger.warning(f"Failed to save settings store {self.namespace}: {e}")
