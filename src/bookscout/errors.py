from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    INVALID_QUERY = "INVALID_QUERY"
    INVALID_INPUT = "INVALID_INPUT"
    FETCH_EXHAUSTED = "FETCH_EXHAUSTED"
    MALFORMED_DOCUMENT = "MALFORMED_DOCUMENT"


class BookScoutError(Exception):
    """Raised for all expected failure conditions.

    Caught by server.py and serialised into the MCP error response.
    Never catch this inside business logic; let it propagate to the
    MCP layer so the agent receives a structured error with a suggestion.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


class InvalidQuery(BookScoutError):
    """The caller supplied an empty query or an out-of-range page."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.INVALID_QUERY,
            message=message,
            suggestion="Provide a non-empty search query and a page number >= 1.",
            recoverable=False,
        )


class FetchExhausted(BookScoutError):
    """Every fetch strategy failed. ``last_error`` holds the final cause."""

    def __init__(
        self,
        url: str,
        *,
        attempts: int,
        last_error: Exception | None = None,
    ) -> None:
        detail = ""
        if last_error is not None:
            detail = f": {str(last_error) or type(last_error).__name__}"
        super().__init__(
            code=ErrorCode.FETCH_EXHAUSTED,
            message=f"All {attempts} fetch strategies failed for {url}{detail}",
            suggestion="The catalogue may be temporarily unreachable. Try again later.",
            recoverable=True,
        )
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class MalformedDocument(BookScoutError):
    """The fetched body could not be parsed as an HTML document at all."""

    def __init__(self, message: str) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_DOCUMENT,
            message=message,
            suggestion="The catalogue returned an unexpected page. Try again later.",
            recoverable=True,
        )
