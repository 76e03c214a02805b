"""
Integration tests.

These exercise the cache against a live Redis server (REDIS_URL) and are
skipped when none is reachable.
"""
