"""Input and output models for the MCP tool handlers."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from bookscout.models.book import BookRecord, Pagination

_MAX_TEXT_LENGTH = 500


def _require_text(value: str, name: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{name} must not be empty")
    if len(value) > _MAX_TEXT_LENGTH:
        raise ValueError(f"{name} must be at most {_MAX_TEXT_LENGTH} characters")
    return value


class SearchBooksInput(BaseModel):
    query: str
    page: int = Field(default=1, ge=1, le=1000)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v: str) -> str:
        return _require_text(v, "query")


class SearchBooksOutput(BaseModel):
    query: str
    page: int
    books: list[BookRecord]
    pagination: Pagination
    fetched_at: datetime
    cached: bool


class SummarizeBookInput(BaseModel):
    title: str
    author: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _require_text(v, "title")

    @field_validator("author")
    @classmethod
    def validate_author(cls, v: str) -> str:
        return _require_text(v, "author")


class SummarizeBookOutput(BaseModel):
    title: str
    author: str
    text: str


class HealthOutput(BaseModel):
    status: str = "ok"
    version: str
    uptime_seconds: float
    search_cache_entries: int
    summary_cache_entries: int
    # "fallback" when no API key is configured and summaries are templated
    summary_backend: Literal["operational", "fallback"]
