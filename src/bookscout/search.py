"""Search orchestration: cache lookup → strategy fetch → extraction → cache store.

``SearchOrchestrator.resolve`` is the single entry point tool handlers call.
The cache, fetcher and extractor are injected, so the orchestrator holds no
ambient state of its own.
"""

from __future__ import annotations

import hashlib
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import structlog

from bookscout.errors import InvalidQuery
from bookscout.models.book import SearchResponse, SearchResult
from bookscout.parser import parse_search_page

if TYPE_CHECKING:
    from bookscout.config import UpstreamSettings
    from bookscout.protocols import CacheProtocol, ExtractorProtocol, FetcherProtocol


def normalise_query(raw: str) -> str:
    """Collapse whitespace runs, trim, and lowercase a raw query."""
    return " ".join(raw.split()).lower()


def build_cache_key(normalised_query: str, page: int) -> str:
    """Deterministic key for one (query, page) pair."""
    query_hash = hashlib.sha256(normalised_query.encode()).hexdigest()
    return f"search:{query_hash}:{page}"


def build_search_url(upstream: UpstreamSettings, query: str, page: int) -> str:
    """``https://annas-archive.org/search?q=dune&page=2``"""
    base = upstream.base_url.rstrip("/")
    return f"{base}{upstream.search_path}?{urlencode({'q': query, 'page': page})}"


class SearchOrchestrator:
    """Resolves (query, page) to a SearchResult, serving repeats from the cache."""

    def __init__(
        self,
        *,
        cache: CacheProtocol,
        fetcher: FetcherProtocol,
        upstream: UpstreamSettings,
        extractor: ExtractorProtocol = parse_search_page,
    ) -> None:
        self._cache = cache
        self._fetcher = fetcher
        self._upstream = upstream
        self._extractor = extractor

    async def resolve(self, query: str, page: int = 1) -> SearchResponse:
        """Return books and pagination for ``query`` at ``page``.

        Raises InvalidQuery for a blank query or ``page < 1``. FetchExhausted
        and MalformedDocument propagate unchanged, and nothing is cached when
        they do.
        """
        normalised = normalise_query(query)
        if not normalised:
            raise InvalidQuery("query must not be empty")
        if page < 1:
            raise InvalidQuery(f"page must be >= 1, got {page}")

        log = structlog.get_logger().bind(query=normalised, page=page)
        cache_key = build_cache_key(normalised, page)

        cached = self._cache.get(cache_key)
        if cached is not None:
            log.info("cache_hit")
            return SearchResponse(result=cached, cached=True)

        # Upstream search is case-insensitive; keep the caller's casing in the URL
        display_query = " ".join(query.split())
        url = build_search_url(self._upstream, display_query, page)
        log.info("cache_miss_fetching", url=url)

        html = await self._fetcher.fetch(url)
        parsed = self._extractor(html, self._upstream.base_url)

        result = SearchResult(
            query=normalised,
            page=page,
            books=tuple(parsed.books),
            pagination=parsed.pagination,
            fetched_at=datetime.now(UTC),
        )
        self._cache.set(cache_key, result)
        log.info("search_complete", book_count=len(result.books), skipped=parsed.skipped)
        return SearchResponse(result=result, cached=False)
