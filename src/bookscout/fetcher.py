"""Upstream HTML fetcher driven by an ordered list of fetch strategies.

A strategy is one combination of transport mode (direct request, or through
a raw-content proxy) and identity headers. The Fetcher tries strategies in
order and returns the first acceptable body. It never caches. The Fetcher
receives an httpx.AsyncClient via constructor injection; the lifespan owns
the client lifecycle.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal
from urllib.parse import quote

import httpx
import structlog

from bookscout.config import FetcherSettings
from bookscout.errors import FetchExhausted

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

log = structlog.get_logger()

TransportMode = Literal["direct", "proxied"]

# Sent with every identity so requests look like a regular browser visit
_BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass(frozen=True)
class FetchStrategy:
    """One attempt: how to reach the upstream and which identity to present."""

    mode: TransportMode
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def user_agent(self) -> str:
        return self.headers.get("User-Agent", "")


class StrategyFailed(Exception):
    """A response arrived but was not acceptable (status, empty, sentinel)."""


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    settings = settings or FetcherSettings()
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.request_timeout_ms / 1000),
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


def build_strategies(settings: FetcherSettings) -> list[FetchStrategy]:
    """Expand the configured transports and identities into an ordered strategy list.

    Every identity is tried on the first transport before moving on to the next
    transport: ``[(direct, ua1), (direct, ua2), ..., (proxied, ua1), ...]``.
    An empty identity pool still yields one strategy per transport, using the
    browser headers without a User-Agent override.
    """
    identities = settings.identity_header_pool or [None]
    strategies: list[FetchStrategy] = []
    for mode in settings.transport_strategies:
        for user_agent in identities:
            headers = dict(_BROWSER_HEADERS)
            if user_agent:
                headers["User-Agent"] = user_agent
            strategies.append(FetchStrategy(mode=mode, headers=headers))
    return strategies


def build_request_url(strategy: FetchStrategy, url: str, proxy_url_template: str) -> str:
    """Return the URL actually requested for ``url`` under ``strategy``."""
    if strategy.mode == "proxied":
        return proxy_url_template.format(url=quote(url, safe=""))
    return url


def check_body(response: httpx.Response, error_sentinels: list[str]) -> str:
    """Return the response text if acceptable, else raise StrategyFailed."""
    if not response.is_success:
        raise StrategyFailed(f"HTTP {response.status_code}")
    body = response.text
    if not body.strip():
        raise StrategyFailed("empty body")
    for sentinel in error_sentinels:
        if sentinel in body:
            raise StrategyFailed(f"upstream error sentinel {sentinel!r} in body")
    return body


class Fetcher:
    """Strategy executor: first acceptable body wins, all failures are aggregated."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: FetcherSettings | None = None,
        *,
        strategies: list[FetchStrategy] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._settings = settings or FetcherSettings()
        self._strategies = (
            strategies if strategies is not None else build_strategies(self._settings)
        )
        self._sleep = sleep

    @property
    def strategies(self) -> list[FetchStrategy]:
        return list(self._strategies)

    async def fetch(self, url: str) -> str:
        """Fetch ``url`` with each strategy in turn.

        Returns the first acceptable body. Raises FetchExhausted, carrying the
        last underlying error, when every strategy fails.
        """
        timeout_seconds = self._settings.request_timeout_ms / 1000
        backoff_seconds = self._settings.retry_backoff_ms / 1000
        last_error: Exception | None = None
        total = len(self._strategies)

        for index, strategy in enumerate(self._strategies, start=1):
            request_url = build_request_url(strategy, url, self._settings.proxy_url_template)
            try:
                response = await asyncio.wait_for(
                    self._client.get(request_url, headers=dict(strategy.headers)),
                    timeout=timeout_seconds,
                )
                body = check_body(response, self._settings.error_sentinels)
            except (httpx.HTTPError, StrategyFailed, TimeoutError) as exc:
                last_error = exc
                log.warning(
                    "fetch_strategy_failed",
                    url=url,
                    strategy=index,
                    of=total,
                    mode=strategy.mode,
                    reason=str(exc) or type(exc).__name__,
                )
                if index < total:
                    await self._sleep(backoff_seconds)
                continue

            log.info(
                "fetch_complete",
                url=url,
                strategy=index,
                mode=strategy.mode,
                status_code=response.status_code,
                content_length=len(body),
            )
            return body

        raise FetchExhausted(url, attempts=total, last_error=last_error) from last_error
