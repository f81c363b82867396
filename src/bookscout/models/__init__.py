from __future__ import annotations

from bookscout.models.book import (
    BookRecord,
    Pagination,
    ParsedPage,
    SearchResponse,
    SearchResult,
)
from bookscout.models.cache import CacheEntry
from bookscout.models.summary import GeminiResponse
from bookscout.models.tools import (
    HealthOutput,
    SearchBooksInput,
    SearchBooksOutput,
    SummarizeBookInput,
    SummarizeBookOutput,
)

__all__ = [
    # books
    "BookRecord",
    "Pagination",
    "ParsedPage",
    "SearchResult",
    "SearchResponse",
    # cache
    "CacheEntry",
    # summary backend
    "GeminiResponse",
    # tools
    "SearchBooksInput",
    "SearchBooksOutput",
    "SummarizeBookInput",
    "SummarizeBookOutput",
    "HealthOutput",
]
