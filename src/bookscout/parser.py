"""Search results page extractor.

Turns a catalogue search page into ``BookRecord`` items plus ``Pagination``.
Upstream class names are generated and change between deployments, so result
cards are recognised by the shape of their descendants (a heading plus an
image or a small caption label) rather than by an exact class string, and
class tokens are matched by pattern (``truncate``, ``lg:truncate``,
``text-[10px]`` ...).

This matching is inherently tied to the upstream markup. Everything that
depends on it lives in this module behind ``parse_search_page`` so it can be
replaced without touching caching or orchestration.

Failure policy: a card that cannot be extracted is skipped and counted; only
a document that cannot be parsed at all raises ``MalformedDocument``.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING
from urllib.parse import parse_qs, urljoin, urlparse

import structlog
from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from bookscout.errors import MalformedDocument
from bookscout.models.book import (
    PLACEHOLDER_DESCRIPTION,
    PLACEHOLDER_POSTER_URL,
    BookRecord,
    Pagination,
    ParsedPage,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

log = structlog.get_logger()

KNOWN_FORMATS = ("azw3", "cbr", "cbz", "djvu", "epub", "fb2", "mobi", "pdf", "txt")

_COMMENT_DELIMITER_RE = re.compile(r"<!--|-->")
_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
_SIZE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(KB|MB|GB)\b", re.IGNORECASE)
_FORMAT_RE = re.compile(rf"\b({'|'.join(KNOWN_FORMATS)})\b", re.IGNORECASE)
_PAGINATION_LABEL_RE = re.compile(r"^\s*pagination\s*$", re.IGNORECASE)

# Class tokens may carry responsive/state prefixes: "lg:truncate", "max-lg:text-xs"
_TRUNCATE_CLASS_RE = re.compile(r"^(?:[\w-]+:)*truncate$")
_ITALIC_CLASS_RE = re.compile(r"^(?:[\w-]+:)*italic$")
_CAPTION_CLASS_RE = re.compile(r"^(?:[\w-]+:)*text-(?:xs|\[\d+(?:\.\d+)?px\])$")


def strip_comment_delimiters(html: str) -> str:
    """Remove ``<!--`` and ``-->`` so comment-wrapped markup becomes live markup."""
    return _COMMENT_DELIMITER_RE.sub("", html)


def parse_search_page(html: str, base_url: str) -> ParsedPage:
    """Extract result cards and pagination from a search results page.

    ``base_url`` is the upstream origin used to resolve relative links and
    image sources.
    """
    soup = _parse_document(html)

    books: list[BookRecord] = []
    seen_identifiers: set[str] = set()
    skipped = 0
    for card in _iter_result_cards(soup):
        try:
            book = _extract_card(card, base_url)
        except Exception:
            log.debug("card_extraction_error", exc_info=True)
            book = None
        if book is None:
            skipped += 1
            log.debug("card_skipped", href=card.get("href"))
            continue
        if book.identifier in seen_identifiers:
            skipped += 1
            log.debug("card_duplicate", identifier=book.identifier)
            continue
        seen_identifiers.add(book.identifier)
        books.append(book)

    pagination = _parse_pagination(soup, base_url)

    log.info(
        "page_extracted",
        book_count=len(books),
        skipped=skipped,
        current_page=pagination.current_page,
        total_pages=pagination.total_pages,
    )
    return ParsedPage(books=books, pagination=pagination, skipped=skipped)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def _parse_document(html: str) -> BeautifulSoup:
    if not html or not html.strip():
        raise MalformedDocument("Received an empty document")

    try:
        soup = BeautifulSoup(strip_comment_delimiters(html), "html.parser")
    except (ParserRejectedMarkup, AssertionError, ValueError) as exc:
        raise MalformedDocument(f"Could not parse document: {exc}") from exc

    # An explicit body, even an empty one, is a parsed page with no results
    if soup.body is None and soup.find(True) is None:
        raise MalformedDocument("Document contains no HTML elements")
    return soup


# ---------------------------------------------------------------------------
# Result cards
# ---------------------------------------------------------------------------


def _class_tokens(tag: Tag) -> list[str]:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        return classes.split()
    return list(classes)


def _has_class(tag: Tag, pattern: re.Pattern[str]) -> bool:
    return any(pattern.match(token) for token in _class_tokens(tag))


def _is_heading(tag: Tag) -> bool:
    return tag.name in _HEADING_TAGS


def _inside_heading(tag: Tag) -> bool:
    return any(parent.name in _HEADING_TAGS for parent in tag.parents)


def _is_caption(tag: Tag) -> bool:
    return _has_class(tag, _CAPTION_CLASS_RE)


def _is_author_label(tag: Tag) -> bool:
    return (
        _has_class(tag, _TRUNCATE_CLASS_RE)
        and not _is_heading(tag)
        and not _inside_heading(tag)
    )


def _is_italic_label(tag: Tag) -> bool:
    if _is_heading(tag) or _inside_heading(tag):
        return False
    return tag.name in ("i", "em") or _has_class(tag, _ITALIC_CLASS_RE)


def _looks_like_result_card(anchor: Tag) -> bool:
    """Structural signature: a heading plus an image or a small caption label."""
    if anchor.find(_HEADING_TAGS) is None:
        return False
    return anchor.find("img") is not None or anchor.find(_is_caption) is not None


def _iter_result_cards(soup: BeautifulSoup) -> Iterator[Tag]:
    accepted: set[int] = set()
    for anchor in soup.find_all("a", href=True):
        if any(id(parent) in accepted for parent in anchor.parents):
            continue
        if _looks_like_result_card(anchor):
            accepted.add(id(anchor))
            yield anchor


def _text(tag: Tag | None) -> str:
    if tag is None:
        return ""
    return " ".join(tag.get_text(" ").split())


def _absolute_http_url(base_url: str, ref: str) -> str | None:
    """Resolve ``ref`` against ``base_url``; None unless the result is http(s)."""
    ref = ref.strip()
    if not ref:
        return None
    resolved = urljoin(base_url.rstrip("/") + "/", ref)
    parsed = urlparse(resolved)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return resolved


def parse_size_label(details: str) -> str:
    """``"English, .epub, 1.5mb"`` → ``"1.5 MB"``; ``"N/A"`` when absent."""
    match = _SIZE_RE.search(details)
    if match is None:
        return "N/A"
    return f"{match.group(1)} {match.group(2).upper()}"


def parse_format_label(details: str) -> str:
    """``"English, .epub, 1.5mb"`` → ``"EPUB"``; ``"Unknown"`` when absent."""
    match = _FORMAT_RE.search(details)
    if match is None:
        return "Unknown"
    return match.group(1).upper()


def _extract_card(card: Tag, base_url: str) -> BookRecord | None:
    """Build a BookRecord from one card, or None if a required field is missing."""
    href = str(card.get("href", ""))
    download_url = _absolute_http_url(base_url, href)
    if download_url is None:
        return None
    identifier = urlparse(download_url).path.rstrip("/").rsplit("/", 1)[-1]

    title = _text(card.find(_HEADING_TAGS))
    author_tag = card.find(_is_author_label)
    author = _text(author_tag)
    if not identifier or not title or not author:
        return None

    details = _text(card.find(_is_caption))

    description = ""
    for tag in card.find_all(_is_italic_label):
        if tag is author_tag:
            continue
        description = _text(tag)
        break

    poster_url = None
    image = card.find("img")
    if image is not None:
        poster_url = _absolute_http_url(base_url, str(image.get("src") or ""))

    return BookRecord(
        identifier=identifier,
        title=title,
        author=author,
        poster_url=poster_url or PLACEHOLDER_POSTER_URL,
        size_label=parse_size_label(details),
        format_label=parse_format_label(details),
        description=description or PLACEHOLDER_DESCRIPTION,
        download_url=download_url,
    )


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def _page_param(href: str, base_url: str) -> int | None:
    """Read the ``page`` query parameter of a link. Link text is never used."""
    query = urlparse(urljoin(base_url.rstrip("/") + "/", href)).query
    values = parse_qs(query).get("page")
    if not values:
        return None
    try:
        page = int(values[0])
    except ValueError:
        return None
    return page if page >= 1 else None


def _parse_pagination(soup: BeautifulSoup, base_url: str) -> Pagination:
    nav = soup.find("nav", attrs={"aria-label": _PAGINATION_LABEL_RE})
    if nav is None:
        return Pagination.single()

    pages: set[int] = set()
    for link in nav.find_all("a", href=True):
        page = _page_param(str(link["href"]), base_url)
        if page is not None:
            pages.add(page)

    current_page = 1
    current = nav.find(attrs={"aria-current": "page"})
    if current is not None:
        text = _text(current)
        if text.isdigit() and int(text) >= 1:
            current_page = int(text)
        elif current.get("href"):
            current_page = _page_param(str(current["href"]), base_url) or 1

    return Pagination.from_pages(current_page, pages)
