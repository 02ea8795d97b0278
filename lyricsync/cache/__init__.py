"""
Cache package: expiring stores, the instant settings store and their backends
"""

from .backends import StorageBackend, MemoryBackend, JsonFileBackend, create_backend_from_settings
from .store import Expiration, ExpirationUnit, ExpireStore, InstantStore

__all__ = [
    'StorageBackend',
    'MemoryBackend',
    'JsonFileBackend',
    'create_backend_from_settings',
    'Expiration',
    'ExpirationUnit',
    'ExpireStore',
    'InstantStore',
]
