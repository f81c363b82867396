"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager, suppress
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import bookscout.tools.health as t_health
import bookscout.tools.search_books as t_search
import bookscout.tools.summarize_book as t_summarize
from bookscout import __version__
from bookscout.cache import MemoryCache
from bookscout.config import Settings
from bookscout.errors import BookScoutError
from bookscout.fetcher import Fetcher, build_http_client
from bookscout.schedulers import run_cache_cleanup_scheduler
from bookscout.search import SearchOrchestrator
from bookscout.state import AppState
from bookscout.summary import SummaryProvider
from bookscout.transport import run_http_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_state(settings: Settings) -> AppState:
    """Construct every shared component from settings. No I/O happens here."""
    http_client = build_http_client(settings.fetcher)
    search_cache = MemoryCache(
        ttl_seconds=settings.cache.ttl_seconds,
        capacity=settings.cache.capacity,
        name="search",
    )
    summary_cache = MemoryCache(
        ttl_seconds=settings.cache.ttl_seconds,
        capacity=settings.cache.summary_capacity,
        name="summary",
    )
    fetcher = Fetcher(http_client, settings.fetcher)

    return AppState(
        settings=settings,
        http_client=http_client,
        search_cache=search_cache,
        summary_cache=summary_cache,
        fetcher=fetcher,
        orchestrator=SearchOrchestrator(
            cache=search_cache,
            fetcher=fetcher,
            upstream=settings.upstream,
        ),
        summarizer=SummaryProvider(http_client, summary_cache, settings.summary),
    )


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
    )

    state = build_state(settings)
    cache_cleanup_task = asyncio.create_task(run_cache_cleanup_scheduler(state))

    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        transports=settings.fetcher.transport_strategies,
        identities=len(settings.fetcher.identity_header_pool),
        summary_backend=settings.summary.api_key is not None,
    )

    try:
        yield state
    finally:
        cache_cleanup_task.cancel()
        with suppress(asyncio.CancelledError):
            await cache_cleanup_task
        if state.search_cache is not None:
            state.search_cache.clear()
        if state.summary_cache is not None:
            state.summary_cache.clear()
        if state.http_client is not None:
            await state.http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("bookscout", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg, so set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: BookScoutError) -> CallToolResult:
    """Convert a BookScoutError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


def _log_tool_error(tool: str, exc: BookScoutError) -> None:
    log.warning(
        "tool_error",
        tool=tool,
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
    )


@mcp.tool()
async def search_books(query: str, ctx: Context, page: int = 1) -> object:
    """Search the book catalogue.

    Returns the books found on the requested results page (title, author,
    format, size, poster and download link) and pagination details. Use
    pagination.page_list and has_next to request further pages.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_search.handle(query, page, state)
    except BookScoutError as exc:
        _log_tool_error("search_books", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="search_books", exc_info=True)
        raise


@mcp.tool()
async def summarize_book(title: str, author: str, ctx: Context) -> object:
    """Return a short natural-language summary of a book."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_summarize.handle(title, author, state)
    except BookScoutError as exc:
        _log_tool_error("summarize_book", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="summarize_book", exc_info=True)
        raise


@mcp.tool()
async def health(ctx: Context) -> object:
    """Report server version, uptime and cache occupancy."""
    state: AppState = ctx.request_context.lifespan_context
    return await t_health.handle(state)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()

    if settings.server.transport == "http":
        _setup_logging(settings)
        run_http_server(mcp, settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
