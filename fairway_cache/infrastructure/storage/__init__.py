"""
Storage Module

String key/value backends behind the cache store, one per storage tier.
"""

from .base import BaseStorageBackend
from .file_storage import FileStorage
from .memory import MemoryStorage, SessionStorage
from .redis_storage import RedisStorage
from .registry import StorageRegistry

__all__ = [
    "BaseStorageBackend",
    "FileStorage",
    "MemoryStorage",
    "RedisStorage",
    "SessionStorage",
    "StorageRegistry",
]
