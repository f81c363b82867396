"""Shared test fixtures for the bookscout test suite.

HTML fixtures mimic the upstream catalogue markup: generated utility class
names, result cards as anchors, and an ``aria-label="Pagination"`` nav.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from bookscout.config import Settings

BASE_URL = "https://annas-archive.org"


def _card(
    identifier: str,
    title: str | None,
    author: str | None,
    details: str = "English [en], .epub, 🚀/lgli/zlib, 1.5MB, 📗 Book (unknown)",
    *,
    description: str | None = None,
    poster: str | None = "https://covers.example.org/{id}.jpg",
) -> str:
    image = f'<img class="relative inline-block" src="{poster.format(id=identifier)}" alt="">' if poster else ""
    title_html = (
        f'<h3 class="max-lg:line-clamp-[2] lg:truncate leading-[1.2] text-md lg:text-xl font-bold">'
        f"{title}</h3>"
        if title is not None
        else ""
    )
    author_html = (
        f'<div class="max-lg:line-clamp-[2] lg:truncate leading-[1.2] max-lg:text-sm italic">'
        f"{author}</div>"
        if author is not None
        else ""
    )
    description_html = (
        f'<div class="line-clamp-[3] text-sm italic text-gray-600">{description}</div>'
        if description is not None
        else ""
    )
    return (
        f'<a href="/md5/{identifier}" class="js-vim-focus custom-a flex items-center '
        f'relative left-[-10px] px-2.5 outline-offset-[-2px] hover:bg-black/6.7">'
        f'<div class="flex-none">{image}</div>'
        f'<div class="relative top-[-1] pl-4 grow overflow-hidden">'
        f'<div class="line-clamp-[2] leading-[1.2] text-[10px] lg:text-xs text-gray-500">'
        f"{details}</div>"
        f"{title_html}{author_html}{description_html}"
        f"</div></a>"
    )


def _pagination(pages: list[int], current: int, query: str = "dune") -> str:
    links = []
    if current > 1:
        links.append(f'<a href="/search?q={query}&amp;page={current - 1}" rel="prev">‹</a>')
    for page in pages:
        marker = ' aria-current="page"' if page == current else ""
        links.append(f'<a href="/search?q={query}&amp;page={page}"{marker}>{page}</a>')
    if current < max(pages):
        links.append(f'<a href="/search?q={query}&amp;page={current + 1}" rel="next">›</a>')
    return f'<nav aria-label="Pagination" class="flex gap-1">{"".join(links)}</nav>'


def _page(cards: list[str], pagination: str = "", *, comment_wrap: bool = False) -> str:
    body = "".join(
        f'<div class="h-[110px] flex flex-col justify-center">{"<!--" + card + "-->" if comment_wrap else card}</div>'
        for card in cards
    )
    return (
        "<!DOCTYPE html><html><head><title>Search</title></head><body>"
        '<header><a href="/">Home</a><a href="/search">Search</a></header>'
        f"<main>{body}{pagination}</main>"
        "</body></html>"
    )


@pytest.fixture()
def build_card() -> Callable[..., str]:
    return _card


@pytest.fixture()
def build_pagination() -> Callable[..., str]:
    return _pagination


@pytest.fixture()
def build_page() -> Callable[..., str]:
    return _page


@pytest.fixture()
def search_page_html() -> str:
    """Three valid books on page 2 of a result set linking pages {1, 2, 3, 5}."""
    cards = [
        _card("a1b2c3", "Dune", "Frank Herbert", description="Desert planet epic."),
        _card("d4e5f6", "Dune Messiah", "Frank Herbert", "English [en], .pdf, 12.3 mb"),
        _card("0a9b8c", "Children of Dune", "Frank Herbert", "English [en], .mobi", poster=None),
    ]
    return _page(cards, _pagination([1, 2, 3, 5], current=2))


@pytest.fixture()
def settings() -> Settings:
    """Defaults with retry backoff disabled so strategy tests run instantly."""
    return Settings(fetcher={"retry_backoff_ms": 0})
