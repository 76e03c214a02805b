"""
Resource Test Factory

Creates ResourceSpecs whose fetch_fresh follows a script, for driving the
orchestrator through success, failure and concurrency scenarios.
"""

import asyncio
from typing import Any

from fairway_cache.core.config.constants import StorageTier
from fairway_cache.revalidation.models import ErrorInfo, FetchErr, FetchOk, ResourceSpec


class ScriptedFetch:
    """
    fetch_fresh stand-in.

    Each call consumes the next scripted step; the last step repeats. A step
    is a FetchOk / FetchErr, an exception instance (raised), or any other
    value (wrapped in FetchOk). When a gate is set, calls wait on it first.
    """

    def __init__(self, *steps: Any, gate: asyncio.Event | None = None):
        self.steps = list(steps) or [FetchOk({"ok": True})]
        self.calls = 0
        self.gate = gate

    async def __call__(self):
        index = min(self.calls, len(self.steps) - 1)
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        step = self.steps[index]
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, (FetchOk, FetchErr)):
            return step
        return FetchOk(step)


class ResourceTestFactory:
    """Factory for ResourceSpecs backed by ScriptedFetch."""

    @staticmethod
    def network_error(message: str = "Failed to fetch") -> FetchErr:
        return FetchErr(ErrorInfo(kind="network", message=message))

    @staticmethod
    def spec(
        key: str = "news_list",
        *steps: Any,
        ttl_ms: int | None = 60_000,
        tier: StorageTier = StorageTier.DURABLE,
        gate: asyncio.Event | None = None,
    ) -> tuple[ResourceSpec, ScriptedFetch]:
        """Build a spec and return it with its fetch script."""
        fetch = ScriptedFetch(*steps, gate=gate)
        return ResourceSpec(key=key, fetch_fresh=fetch, ttl_ms=ttl_ms, tier=tier), fetch

    @staticmethod
    def succeeding(key: str = "news_list", data: Any = None, **kwargs) -> tuple[ResourceSpec, ScriptedFetch]:
        payload = data if data is not None else {"items": [key]}
        return ResourceTestFactory.spec(key, FetchOk(payload), **kwargs)

    @staticmethod
    def failing(key: str = "news_list", **kwargs) -> tuple[ResourceSpec, ScriptedFetch]:
        return ResourceTestFactory.spec(key, ResourceTestFactory.network_error(), **kwargs)
