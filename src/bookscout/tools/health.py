"""Tool handler for health: liveness, cache occupancy and summary mode."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from bookscout import __version__
from bookscout.models.tools import HealthOutput

if TYPE_CHECKING:
    from bookscout.state import AppState


async def handle(state: AppState) -> dict:
    api_key = state.settings.summary.api_key
    has_key = api_key is not None and bool(api_key.get_secret_value())

    output = HealthOutput(
        version=__version__,
        uptime_seconds=round(time.monotonic() - state.started_at, 3),
        search_cache_entries=state.search_cache.size() if state.search_cache is not None else 0,
        summary_cache_entries=state.summary_cache.size() if state.summary_cache is not None else 0,
        summary_backend="operational" if has_key else "fallback",
    )
    return output.model_dump(mode="json")
