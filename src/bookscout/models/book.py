from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

PLACEHOLDER_POSTER_URL = "https://placehold.co/200x280/f7f4ed/2a2a2a?text=No+Image"
PLACEHOLDER_DESCRIPTION = "No description available."


class BookRecord(BaseModel):
    """Single search result extracted from a catalogue page."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    title: str
    author: str
    poster_url: str = PLACEHOLDER_POSTER_URL
    size_label: str = "N/A"  # e.g. "1.5 MB"
    format_label: str = "Unknown"  # e.g. "EPUB"
    description: str = PLACEHOLDER_DESCRIPTION
    download_url: str

    @field_validator("identifier", "title", "author")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v


class Pagination(BaseModel):
    """Current/total pages and the page numbers linked from a result page."""

    model_config = ConfigDict(frozen=True)

    current_page: int = 1
    total_pages: int = 1
    page_list: tuple[int, ...] = (1,)
    has_next: bool = False
    has_prev: bool = False

    @model_validator(mode="after")
    def validate_consistency(self) -> Pagination:
        if self.current_page < 1:
            raise ValueError("current_page must be >= 1")
        if self.total_pages < self.current_page:
            raise ValueError("total_pages must be >= current_page")
        if self.current_page not in self.page_list:
            raise ValueError("page_list must include current_page")
        if list(self.page_list) != sorted(set(self.page_list)):
            raise ValueError("page_list must be ascending and deduplicated")
        return self

    @classmethod
    def single(cls) -> Pagination:
        """The degenerate record used when a page has no pagination markup."""
        return cls()

    @classmethod
    def from_pages(cls, current_page: int, pages: set[int]) -> Pagination:
        """Build a consistent record from the current page and every linked page."""
        page_list = tuple(sorted(pages | {current_page}))
        total_pages = max(page_list)
        return cls(
            current_page=current_page,
            total_pages=total_pages,
            page_list=page_list,
            has_next=current_page < total_pages,
            has_prev=current_page > 1,
        )


class SearchResult(BaseModel):
    """The cached payload for one (query, page) resolution."""

    model_config = ConfigDict(frozen=True)

    query: str
    page: int
    books: tuple[BookRecord, ...]
    pagination: Pagination
    fetched_at: datetime


class SearchResponse(BaseModel):
    """A SearchResult plus whether it was served from the cache."""

    model_config = ConfigDict(frozen=True)

    result: SearchResult
    cached: bool


@dataclass
class ParsedPage:
    """Extractor output for one HTML document.

    ``skipped`` counts candidate cards dropped as malformed. It is a
    diagnostic only and is not carried into the cached payload.
    """

    books: list[BookRecord] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination.single)
    skipped: int = 0
