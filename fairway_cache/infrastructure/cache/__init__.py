"""
Cache Module

Namespaced, TTL-aware entry store over the storage tiers, plus the
maintenance sweeper that keeps it bounded.
"""

from .cache_store import CacheObserver, CacheStore, epoch_ms
from .codec import CacheEnvelope, decode, encode
from .namespace import KeyNamespace
from .sweeper import MaintenanceSweeper, SweepReport

__all__ = [
    "CacheEnvelope",
    "CacheObserver",
    "CacheStore",
    "KeyNamespace",
    "MaintenanceSweeper",
    "SweepReport",
    "decode",
    "encode",
    "epoch_ms",
]
