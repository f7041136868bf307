from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

from vibesync.config.http_resilience import RateLimit, ResilienceConfig, RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

__all__ = [
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "build_retry",
]

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    """Translate a ``RetryPolicy`` into the transport's ``Retry`` settings."""

    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=sorted(policy.allowed_methods),
        status_forcelist=sorted(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


class ResilientClient:
    """JSON-oriented async client: transport retries for reads and a shared rate limit.

    ``transport`` replaces the network underneath the retry layer; tests pass an
    ``httpx.MockTransport`` here so the retry rules still apply.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else None
        )
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=dict(config.default_headers or {}),
            transport=RetryTransport(transport=transport, retry=build_retry(config.retry)),
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def send(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str | int] | None = None,
        json: Any = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        request = self._client.build_request(
            method,
            path,
            params=params,
            json=json,
            timeout=timeout if timeout is not None else self.config.timeout_seconds,
        )
        started = time.perf_counter()
        if self._limiter is None:
            response = await self._client.send(request)
        else:
            async with self._limiter:
                response = await self._client.send(request)
        log.debug(
            "%s %s %s -> %s in %.0fms",
            self.config.name,
            method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - started) * 1000,
        )
        return response

    async def get(
        self,
        path: str,
        *,
        params: Mapping[str, str | int] | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        return await self.send("GET", path, params=params, timeout=timeout)

    async def post(self, path: str, *, json: Any = None, timeout: float | None = None) -> httpx.Response:
        return await self.send("POST", path, json=json, timeout=timeout)

    async def patch(self, path: str, *, json: Any = None, timeout: float | None = None) -> httpx.Response:
        return await self.send("PATCH", path, json=json, timeout=timeout)

    async def delete(self, path: str, *, timeout: float | None = None) -> httpx.Response:
        return await self.send("DELETE", path, timeout=timeout)
