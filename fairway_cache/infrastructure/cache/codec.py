"""
Entry Codec

Turns cached payloads into the stored string form and back:

    {"data": <payload>, "timestamp": <epoch ms>, "ttl": <ms>}

STAGE-1.0: decode on read
STAGE-1.1: encode on write

Architectural Decision: orjson for speed, pydantic for shape
- orjson handles the JSON bytes (same library the rest of the stack uses)
- CacheEnvelope validates the decoded object; anything else is corruption
- Validity is a pure function of the envelope and "now", so it is trivially testable
"""

from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError

from fairway_cache.core.config.constants import DEFAULT_TTL_MS
from fairway_cache.core.exceptions import CacheCorruptionError


class CacheEnvelope(BaseModel):
    """
    One stored cache entry.

    Attributes:
        data: The cached payload (any JSON value)
        timestamp: When the entry was written, epoch milliseconds
        ttl: Lifetime in milliseconds
    """

    model_config = ConfigDict(frozen=True)

    data: Any = None
    timestamp: StrictInt
    ttl: StrictInt = DEFAULT_TTL_MS

    def is_valid(self, now_ms: int) -> bool:
        """True while the entry is younger than its ttl."""
        return now_ms - self.timestamp < self.ttl

    def is_expired(self, now_ms: int) -> bool:
        return not self.is_valid(now_ms)

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.timestamp


def encode(data: Any, timestamp: int, ttl: int = DEFAULT_TTL_MS) -> str:
    """
    Serialize a payload into its stored form.

    Args:
        data: JSON-serializable payload
        timestamp: Write time, epoch milliseconds
        ttl: Lifetime in milliseconds

    Returns:
        The envelope as a JSON string

    Raises:
        TypeError: If data is not JSON-serializable (caller bug)
    """
    try:
        raw = orjson.dumps({"data": data, "timestamp": int(timestamp), "ttl": int(ttl)})
    except orjson.JSONEncodeError as e:
        raise TypeError(f"Cache payload is not JSON-serializable: {e}") from e
    return raw.decode("utf-8")


def decode(raw: str | bytes) -> CacheEnvelope:
    """
    Parse a stored string back into an envelope.

    Raises:
        CacheCorruptionError: Not JSON, not an object, or fields missing / mistyped
    """
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise CacheCorruptionError.from_exception(e, message="Cache entry is not valid JSON") from e

    if not isinstance(payload, dict) or "data" not in payload:
        raise CacheCorruptionError(
            "Cache entry is not an envelope",
            details={"payload_type": type(payload).__name__},
        )

    try:
        return CacheEnvelope.model_validate(payload)
    except ValidationError as e:
        raise CacheCorruptionError(
            "Cache entry has invalid envelope fields",
            details={"errors": e.errors(include_url=False, include_input=False)},
        ) from e
