"""Background scheduler coroutine for cache sweeping."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from bookscout.state import AppState

log = structlog.get_logger()


def sweep_caches(state: AppState) -> int:
    """Purge expired entries from every cache on ``state``. Returns entries removed."""
    removed = 0
    for cache in (state.search_cache, state.summary_cache):
        if cache is not None:
            removed += cache.purge_expired()
    return removed


async def run_cache_cleanup_scheduler(state: AppState) -> None:
    """Sweep expired cache entries at startup and (HTTP mode) on the configured interval.

    Reads also expire entries lazily; the sweep covers keys nobody reads again.
    """
    interval_seconds = state.settings.cache.cleanup_interval_seconds

    # Both transports: run once at startup.
    sweep_caches(state)

    if state.settings.server.transport != "http":
        return

    # HTTP long-running mode: repeat on the configured interval.
    while True:
        await asyncio.sleep(interval_seconds)
        removed = sweep_caches(state)
        log.debug("cache_sweep_complete", removed=removed)
