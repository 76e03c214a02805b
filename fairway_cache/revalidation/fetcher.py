"""
HTTP Fetch Helper

Builds fetch_fresh callables over JSON HTTP endpoints.

STAGE-H: HTTP fetch

RETRY POLICY:
-------------
RETRIED (may succeed on the next attempt):
- Connection / transport errors
- Non-2xx responses

NOT RETRIED:
- Timeouts (the request already waited the full budget)
- Bodies that are not JSON

Backoff is exponential with jitter, starting at retry_delay_s.

GRACEFUL DEGRADATION:
---------------------
get_json() never raises for transport or HTTP problems. Failures come back as
FetchErr with an ErrorInfo the orchestrator can log and surface.

DE-DUPLICATION:
---------------
Concurrent get_json() calls for the same URL + params share one request.
"""

import asyncio
from typing import Any

import httpx
import orjson
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from fairway_cache.core.config.constants import (
    HTTP_RETRIES,
    HTTP_RETRY_BASE_DELAY,
    HTTP_RETRY_MAX_DELAY,
    HTTP_TIMEOUT_S,
    Stage,
    StorageTier,
)
from fairway_cache.core.config.settings import Settings
from fairway_cache.core.logging.logger import get_logger, log_stage
from fairway_cache.revalidation.models import ErrorInfo, FetchErr, FetchOk, FetchResult, ResourceSpec

logger = get_logger(__name__)


class HttpFetcher:
    """
    JSON GET client producing FetchResult values.

    Usage:
        async with HttpFetcher(base_url="https://api.example.com") as fetcher:
            spec = fetcher.resource("news_list", "/news", ttl_ms=CacheExpiration.SHORT)
            result = await orchestrator.load(spec)

    Args:
        base_url: Prefix for relative URLs
        timeout_s: Per-request timeout
        retries: Retries after the first attempt
        retry_delay_s: Initial backoff delay
        retry_max_delay_s: Backoff ceiling
        client: Pre-built httpx.AsyncClient (the fetcher does not close it)
        transport: httpx transport for the internally built client (tests)
    """

    def __init__(
        self,
        base_url: str = "",
        timeout_s: float = HTTP_TIMEOUT_S,
        retries: int = HTTP_RETRIES,
        retry_delay_s: float = HTTP_RETRY_BASE_DELAY,
        retry_max_delay_s: float = HTTP_RETRY_MAX_DELAY,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._retries = max(0, retries)
        self._retry_delay_s = retry_delay_s
        self._retry_max_delay_s = retry_max_delay_s
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_s),
            transport=transport,
        )
        self._pending: dict[str, asyncio.Task] = {}

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "HttpFetcher":
        http = settings.http
        kwargs.setdefault("base_url", http.HTTP_BASE_URL)
        return cls(
            timeout_s=http.HTTP_TIMEOUT_S,
            retries=http.HTTP_RETRIES,
            retry_delay_s=http.HTTP_RETRY_DELAY_S,
            retry_max_delay_s=http.HTTP_RETRY_MAX_DELAY_S,
            **kwargs,
        )

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def resource(
        self,
        key: str,
        url: str,
        params: dict[str, Any] | None = None,
        ttl_ms: int | None = None,
        tier: StorageTier = StorageTier.DURABLE,
    ) -> ResourceSpec:
        """Build a ResourceSpec whose fetch_fresh GETs url."""

        async def fetch_fresh() -> FetchResult:
            return await self.get_json(url, params)

        return ResourceSpec(key=key, fetch_fresh=fetch_fresh, ttl_ms=ttl_ms, tier=tier)

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> FetchResult:
        """
        GET url and decode its JSON body.

        Returns:
            FetchOk(data) or FetchErr(error)
        """
        request_key = url + (orjson.dumps(params, option=orjson.OPT_SORT_KEYS).decode() if params else "")
        task = self._pending.get(request_key)
        if task is None:
            task = asyncio.create_task(self._fetch(url, params))
            self._pending[request_key] = task
            task.add_done_callback(lambda _, k=request_key: self._pending.pop(k, None))
        return await asyncio.shield(task)

    async def _fetch(self, url: str, params: dict[str, Any] | None) -> FetchResult:
        try:
            data = await self._request_with_retry(url, params)
        except httpx.TimeoutException as e:
            return self._failure(url, ErrorInfo(kind="timeout", message=f"Request timed out: {e}"))
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            return self._failure(url, ErrorInfo(kind="http", message=f"HTTP error! status: {status}",
                                                status_code=status))
        except httpx.TransportError as e:
            return self._failure(url, ErrorInfo.from_exception(e, kind="network"))
        except orjson.JSONDecodeError as e:
            return self._failure(url, ErrorInfo(kind="invalid_response", message=f"Body is not JSON: {e}"))
        return FetchOk(data)

    async def _request_with_retry(self, url: str, params: dict[str, Any] | None) -> Any:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._retries + 1),
            wait=wait_exponential_jitter(initial=self._retry_delay_s, max=self._retry_max_delay_s),
            retry=(
                retry_if_exception_type((httpx.TransportError, httpx.HTTPStatusError))
                & retry_if_not_exception_type(httpx.TimeoutException)
            ),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._client.get(url, params=params)
                response.raise_for_status()
                return orjson.loads(response.content)

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        log_stage(
            logger,
            Stage.HTTP,
            "Request failed, retrying",
            level="debug",
            attempt=retry_state.attempt_number,
            error=str(exc),
            error_type=type(exc).__name__,
        )

    @staticmethod
    def _failure(url: str, error: ErrorInfo) -> FetchErr:
        log_stage(logger, Stage.HTTP, "Request failed", level="warning", url=url,
                  error_kind=error.kind, error=error.message, status_code=error.status_code)
        return FetchErr(error)
