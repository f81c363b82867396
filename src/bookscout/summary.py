"""Book summary provider backed by a generative-text API, with templated fallback.

``summarize`` never raises: missing credentials, network errors, non-2xx
responses and malformed bodies all resolve to a deterministic fallback
paragraph. Whichever text is produced is cached under (title, author).
"""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import ValidationError

from bookscout.models.summary import GeminiResponse

if TYPE_CHECKING:
    from bookscout.config import SummarySettings
    from bookscout.protocols import CacheProtocol

log = structlog.get_logger()

_PROMPT_TEMPLATE = (
    'Provide a concise, informative summary of the book titled "{title}" by {author}. '
    "Focus on:\n"
    "1. Main themes and key concepts\n"
    "2. Target audience and genre\n"
    "3. Why this book is significant or popular\n"
    "4. Key takeaways for readers\n\n"
    "Keep the summary engaging and under 200 words."
)

_FALLBACK_TEMPLATE = (
    '"{title}" by {author} is a notable work that has captured readers\' attention. '
    "This book offers valuable insights and perspectives that resonate with its "
    "target audience.\n\n"
    "The author presents ideas in an engaging manner, making complex concepts "
    "accessible to readers. The work explores themes that are both timely and "
    "timeless, providing readers with material for reflection and discussion.\n\n"
    "For the most accurate and detailed summary, we recommend reading reviews from "
    "trusted sources or exploring the book's official description."
)


class BackendUnavailable(Exception):
    """The generative backend could not produce usable text."""


def build_prompt(title: str, author: str) -> str:
    return _PROMPT_TEMPLATE.format(title=title, author=author)


def fallback_summary(title: str, author: str) -> str:
    return _FALLBACK_TEMPLATE.format(title=title, author=author)


def build_summary_cache_key(title: str, author: str) -> str:
    digest = hashlib.sha256(f"{title}\0{author}".encode()).hexdigest()
    return f"summary:{digest}"


class SummaryProvider:
    """Produces a summary paragraph for a (title, author) pair."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        cache: CacheProtocol,
        settings: SummarySettings,
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings

    async def summarize(self, title: str, author: str) -> str:
        log = structlog.get_logger().bind(title=title, author=author)
        cache_key = build_summary_cache_key(title, author)

        cached = self._cache.get(cache_key)
        if cached is not None:
            log.info("cache_hit")
            return cached

        try:
            text = await self._generate(title, author)
            log.info("summary_generated", length=len(text))
        except BackendUnavailable as exc:
            log.info("summary_fallback", reason=str(exc))
            text = fallback_summary(title, author)

        self._cache.set(cache_key, text)
        return text

    async def _generate(self, title: str, author: str) -> str:
        """Call the backend once. Raises BackendUnavailable on any failure."""
        if self._settings.api_key is None or not self._settings.api_key.get_secret_value():
            raise BackendUnavailable("api key not configured")

        payload = {
            "contents": [
                {"role": "user", "parts": [{"text": build_prompt(title, author)}]},
            ]
        }
        try:
            response = await self._client.post(
                self._settings.api_endpoint,
                params={"key": self._settings.api_key.get_secret_value()},
                json=payload,
                timeout=self._settings.timeout_seconds,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise BackendUnavailable(f"request failed: {type(exc).__name__}") from exc

        if not response.is_success:
            raise BackendUnavailable(f"HTTP {response.status_code}")

        try:
            parsed = GeminiResponse.model_validate_json(response.text)
        except ValidationError as exc:
            raise BackendUnavailable("malformed response body") from exc

        text = parsed.first_text()
        if text is None:
            raise BackendUnavailable("response contained no text")
        return text
