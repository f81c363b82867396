"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan context
manager) and injected into every tool handler via the MCP Context object. The
lifespan owns every resource referenced here and tears them down on exit.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from bookscout.config import Settings
    from bookscout.protocols import CacheProtocol, FetcherProtocol
    from bookscout.search import SearchOrchestrator
    from bookscout.summary import SummaryProvider


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings

    http_client: httpx.AsyncClient | None = None
    search_cache: CacheProtocol | None = None
    summary_cache: CacheProtocol | None = None
    fetcher: FetcherProtocol | None = None
    orchestrator: SearchOrchestrator | None = None
    summarizer: SummaryProvider | None = None

    started_at: float = field(default_factory=time.monotonic)
