"""Integration test fixtures.

Provides a fully wired AppState built the same way the server lifespan builds
it. HTTP traffic is intercepted per test with respx.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from bookscout.config import Settings
from bookscout.server import build_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from bookscout.state import AppState


@pytest.fixture()
def subprocess_env() -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Forces stdio transport, points the upstream at an unroutable address so no
    test can reach the real catalogue, and removes any summary API key.
    """
    env = {k: v for k, v in os.environ.items() if not k.startswith("BOOKSCOUT__")}
    env["BOOKSCOUT__SERVER__TRANSPORT"] = "stdio"
    env["BOOKSCOUT__LOGGING__LEVEL"] = "WARNING"
    env["BOOKSCOUT__UPSTREAM__BASE_URL"] = "http://127.0.0.1:1"
    env["BOOKSCOUT__FETCHER__TRANSPORT_STRATEGIES"] = '["direct"]'
    env["BOOKSCOUT__FETCHER__RETRY_BACKOFF_MS"] = "0"
    return env


@pytest.fixture()
async def app_state() -> AsyncGenerator[AppState, None]:
    """Full AppState wired for handler integration tests."""
    state = build_state(Settings(fetcher={"retry_backoff_ms": 0}, summary={"api_key": None}))
    try:
        yield state
    finally:
        assert state.http_client is not None
        await state.http_client.aclose()
