"""
Key Namespace

Builds every raw storage key as "<prefix>_<version>_<logical_key>".

Bumping the version makes all entries written under the previous version
unreachable; the sweeper never sees them either, since enumeration is always
filtered by the current prefix.
"""

from fairway_cache.core.config.constants import (
    DEFAULT_CACHE_PREFIX,
    DEFAULT_CACHE_VERSION,
    KEY_SEPARATOR,
)
from fairway_cache.core.exceptions import ConfigurationError, InvalidCacheKeyError


class KeyNamespace:
    """
    Maps logical keys to namespaced raw keys.

    Usage:
        ns = KeyNamespace("golf_app", "v1.0.0")
        ns.key("featuredArticle")     # "golf_app_v1.0.0_featuredArticle"
        ns.owns("golf_app_v0.9.0_x")  # False
    """

    def __init__(self, prefix: str = DEFAULT_CACHE_PREFIX, version: str = DEFAULT_CACHE_VERSION):
        if not prefix or not version:
            raise ConfigurationError(
                "Cache namespace needs a prefix and a version",
                details={"prefix": prefix, "version": version},
            )
        self._app_prefix = prefix
        self._version = version
        self._prefix = f"{prefix}{KEY_SEPARATOR}{version}{KEY_SEPARATOR}"

    @property
    def version(self) -> str:
        return self._version

    @property
    def prefix(self) -> str:
        """Raw-key prefix shared by every key of this namespace."""
        return self._prefix

    def key(self, logical_key: str) -> str:
        """
        Build the raw key for a logical key.

        Raises:
            InvalidCacheKeyError: logical_key is empty or not a string
        """
        if not isinstance(logical_key, str) or not logical_key:
            raise InvalidCacheKeyError(
                "Logical cache key must be a non-empty string",
                details={"received_type": type(logical_key).__name__},
            )
        return self._prefix + logical_key

    def owns(self, raw_key: str) -> bool:
        return raw_key.startswith(self._prefix)

    def logical(self, raw_key: str) -> str:
        """Strip the namespace prefix from a raw key this namespace owns."""
        if not self.owns(raw_key):
            raise InvalidCacheKeyError(
                "Raw key is outside this namespace",
                cache_key=raw_key,
                details={"prefix": self._prefix},
            )
        return raw_key[len(self._prefix):]

    def with_version(self, version: str) -> "KeyNamespace":
        """Same application prefix, different version."""
        return KeyNamespace(self._app_prefix, version)

    def redis_match(self) -> str:
        """SCAN pattern matching this namespace."""
        return self._prefix + "*"

    def __repr__(self) -> str:
        return f"KeyNamespace(prefix='{self._app_prefix}', version='{self._version}')"
