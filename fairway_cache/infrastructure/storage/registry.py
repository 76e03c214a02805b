"""
Storage Tier Registry

Maps each StorageTier to the backend serving it. The cache store and the
sweeper only ever talk to backends through this registry, so swapping the
durable backend (file, Redis, memory) never touches calling code.
"""

from collections.abc import Iterator

from fairway_cache.core.config.constants import StorageTier
from fairway_cache.core.config.settings import Settings
from fairway_cache.core.exceptions import ConfigurationError
from fairway_cache.core.interfaces.storage import StorageBackend

from .file_storage import FileStorage
from .memory import MemoryStorage, SessionStorage
from .redis_storage import RedisStorage


class StorageRegistry:
    """
    Tier -> backend lookup.

    Usage:
        registry = StorageRegistry({
            StorageTier.DURABLE: FileStorage("cache.json"),
            StorageTier.SESSION: SessionStorage(),
            StorageTier.MEMORY: MemoryStorage(),
        })
        backend = registry.backend(StorageTier.SESSION)
    """

    def __init__(self, backends: dict[StorageTier, StorageBackend]):
        missing = [tier.value for tier in StorageTier if tier not in backends]
        if missing:
            raise ConfigurationError(
                "Every storage tier needs a backend", details={"missing_tiers": missing}
            )
        self._backends = dict(backends)

    def backend(self, tier: StorageTier) -> StorageBackend:
        return self._backends[StorageTier(tier)]

    def tiers(self) -> list[StorageTier]:
        return list(self._backends)

    def __iter__(self) -> Iterator[tuple[StorageTier, StorageBackend]]:
        return iter(self._backends.items())

    @classmethod
    def in_memory(cls) -> "StorageRegistry":
        """Registry with every tier held in process memory (tests, non-persistent hosts)."""
        return cls({
            StorageTier.DURABLE: MemoryStorage(name="durable-memory"),
            StorageTier.SESSION: SessionStorage(),
            StorageTier.MEMORY: MemoryStorage(),
        })

    @classmethod
    def from_settings(cls, settings: Settings, namespace_match: str = "*") -> "StorageRegistry":
        """
        Build the registry described by settings.storage.

        Args:
            settings: Application settings
            namespace_match: SCAN pattern for the Redis backend
        """
        storage = settings.storage
        quota = storage.STORAGE_QUOTA_BYTES

        if storage.CACHE_DURABLE_BACKEND == "redis":
            durable: StorageBackend = RedisStorage.from_url(storage.REDIS_URL, match=namespace_match)
        elif storage.CACHE_DURABLE_BACKEND == "file":
            durable = FileStorage(storage.CACHE_DURABLE_PATH, quota_bytes=quota)
        else:
            durable = MemoryStorage(quota_bytes=quota, name="durable-memory")

        return cls({
            StorageTier.DURABLE: durable,
            StorageTier.SESSION: SessionStorage(quota_bytes=quota),
            StorageTier.MEMORY: MemoryStorage(),
        })
