"""Tool handler for summarize_book.

Input validation is the only failure path; the summary provider itself
always returns text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from bookscout.errors import BookScoutError, ErrorCode
from bookscout.models.tools import SummarizeBookInput, SummarizeBookOutput

if TYPE_CHECKING:
    from bookscout.state import AppState


async def handle(title: str, author: str, state: AppState) -> dict:
    """Handle a summarize_book tool call."""
    log = structlog.get_logger().bind(tool="summarize_book")
    log.info("handler_called", title=title, author=author)

    try:
        validated = SummarizeBookInput(title=title, author=author)
    except ValueError as exc:
        raise BookScoutError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty title and author (max 500 chars each).",
            recoverable=False,
        ) from exc

    if state.summarizer is None:
        raise RuntimeError("Summary provider not initialized")

    text = await state.summarizer.summarize(validated.title, validated.author)

    output = SummarizeBookOutput(title=validated.title, author=validated.author, text=text)
    return output.model_dump(mode="json")
