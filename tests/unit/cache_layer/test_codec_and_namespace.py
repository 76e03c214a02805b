"""
Unit Tests for the Entry Codec and Key Namespace
"""

import orjson
import pytest

from fairway_cache.core.config.constants import CacheExpiration
from fairway_cache.core.exceptions import (
    CacheCorruptionError,
    ConfigurationError,
    InvalidCacheKeyError,
)
from fairway_cache.infrastructure.cache.codec import CacheEnvelope, decode, encode
from fairway_cache.infrastructure.cache.namespace import KeyNamespace


@pytest.mark.unit
class TestEntryCodec:
    """Test envelope encoding and validation."""

    def test_encoded_form(self):
        raw = encode({"title": "Masters"}, timestamp=1000, ttl=500)

        assert orjson.loads(raw) == {"data": {"title": "Masters"}, "timestamp": 1000, "ttl": 500}

    def test_decode_returns_envelope(self):
        envelope = decode('{"data": [1, 2], "timestamp": 10, "ttl": 20}')

        assert envelope == CacheEnvelope(data=[1, 2], timestamp=10, ttl=20)

    def test_missing_ttl_defaults_to_medium(self):
        envelope = decode('{"data": null, "timestamp": 10}')
        assert envelope.ttl == CacheExpiration.MEDIUM

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "[1, 2, 3]",
            '"just a string"',
            '{"timestamp": 10, "ttl": 20}',
            '{"data": 1, "ttl": 20}',
            '{"data": 1, "timestamp": "yesterday", "ttl": 20}',
            '{"data": 1, "timestamp": true, "ttl": 20}',
        ],
    )
    def test_corrupted_values_raise(self, raw):
        with pytest.raises(CacheCorruptionError):
            decode(raw)

    def test_validity_boundary(self):
        """Valid iff now - timestamp < ttl."""
        envelope = CacheEnvelope(data=1, timestamp=1000, ttl=100)

        assert envelope.is_valid(1099)
        assert envelope.is_expired(1100)

    def test_non_positive_ttl_is_already_expired(self):
        assert CacheEnvelope(data=1, timestamp=1000, ttl=0).is_expired(1000)
        assert CacheEnvelope(data=1, timestamp=1000, ttl=-5).is_expired(1000)

    def test_unserializable_payload_is_type_error(self):
        with pytest.raises(TypeError):
            encode(object(), timestamp=1, ttl=1)

    def test_envelope_is_frozen(self):
        envelope = CacheEnvelope(data=1, timestamp=1, ttl=1)
        with pytest.raises(Exception):
            envelope.ttl = 5


@pytest.mark.unit
class TestKeyNamespace:
    """Test raw key construction and ownership."""

    def test_key_format(self, namespace):
        assert namespace.key("featuredArticle") == "golf_app_v1.0.0_featuredArticle"

    @pytest.mark.parametrize("bad_key", ["", None, 42, b"bytes"])
    def test_malformed_keys_raise(self, namespace, bad_key):
        with pytest.raises(InvalidCacheKeyError):
            namespace.key(bad_key)

    def test_owns_only_current_version(self, namespace):
        assert namespace.owns("golf_app_v1.0.0_news")
        assert not namespace.owns("golf_app_v0.9.0_news")
        assert not namespace.owns("other_app_v1.0.0_news")

    def test_logical_round_trip(self, namespace):
        assert namespace.logical(namespace.key("profile_42")) == "profile_42"

    def test_logical_rejects_foreign_key(self, namespace):
        with pytest.raises(InvalidCacheKeyError):
            namespace.logical("golf_app_v0.9.0_news")

    def test_with_version(self, namespace):
        bumped = namespace.with_version("v1.0.1")

        assert bumped.prefix == "golf_app_v1.0.1_"
        assert not bumped.owns(namespace.key("news"))

    def test_redis_match(self, namespace):
        assert namespace.redis_match() == "golf_app_v1.0.0_*"

    def test_empty_prefix_rejected(self):
        with pytest.raises(ConfigurationError):
            KeyNamespace("", "v1")
