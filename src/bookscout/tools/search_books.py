"""Tool handler for search_books.

Receives AppState, validates input, delegates to the SearchOrchestrator, and
returns a structured dict. No MCP or FastMCP imports; server.py handles the
MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from bookscout.errors import InvalidQuery
from bookscout.models.tools import SearchBooksInput, SearchBooksOutput

if TYPE_CHECKING:
    from bookscout.state import AppState


async def handle(query: str, page: int, state: AppState) -> dict:
    """Handle a search_books tool call."""
    log = structlog.get_logger().bind(tool="search_books", query=query, page=page)
    log.info("handler_called")

    # Validate input
    try:
        validated = SearchBooksInput(query=query, page=page)
    except ValueError as exc:
        raise InvalidQuery(str(exc)) from exc

    if state.orchestrator is None:
        raise RuntimeError("Search orchestrator not initialized")

    response = await state.orchestrator.resolve(validated.query, validated.page)
    result = response.result
    log.info("search_handled", book_count=len(result.books), cached=response.cached)

    output = SearchBooksOutput(
        query=result.query,
        page=result.page,
        books=list(result.books),
        pagination=result.pagination,
        fetched_at=result.fetched_at,
        cached=response.cached,
    )
    return output.model_dump(mode="json")
