"""Streamable HTTP transport for the MCP server."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
import uvicorn

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP

    from bookscout.config import Settings

log = structlog.get_logger()


def run_http_server(mcp: FastMCP, settings: Settings) -> None:
    """Start the MCP server with Streamable HTTP transport."""
    log.info(
        "http_server_starting",
        host=settings.server.host,
        port=settings.server.port,
    )
    uvicorn.run(
        mcp.streamable_http_app(),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )
