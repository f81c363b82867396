"""Protocol interfaces for swappable components.

The orchestrator, summary provider and AppState reference these protocols,
not the concrete implementations. This allows:
- Tests to use lightweight fakes for the network and markup layers
- The HTML extractor to be replaced when the upstream markup changes,
  without touching caching or orchestration
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from bookscout.models.book import ParsedPage


class CacheProtocol(Protocol):
    """Interface for a TTL-bounded key/value store."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, payload: Any) -> None: ...

    def size(self) -> int: ...

    def purge_expired(self) -> int: ...

    def clear(self) -> None: ...


class FetcherProtocol(Protocol):
    """Interface for the upstream HTML fetcher."""

    async def fetch(self, url: str) -> str: ...


class ExtractorProtocol(Protocol):
    """Interface for turning a search results page into records."""

    def __call__(self, html: str, base_url: str) -> ParsedPage: ...
